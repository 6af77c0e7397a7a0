"""Reserved label channel.

Canvas position, attachment handles and link identity travel through the YAML
document as labels under ``topobuilder.eda.labs/``. These helpers are the only
place that knows the key names; everything else goes through them.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Tuple
import math

from .constants import (
    LABEL_EDGE_ID,
    LABEL_MEMBER_INDEX,
    LABEL_NAME_PREFIX,
    LABEL_POS_X,
    LABEL_POS_Y,
    LABEL_PREFIX,
    LABEL_SOURCE_HANDLE,
    LABEL_TARGET_HANDLE,
)


def round_coord(value: float) -> int:
    # half-up, matching how the canvas rounds (-0.5 -> 0, 2.5 -> 3)
    return int(math.floor(float(value) + 0.5))


def is_reserved(key: str) -> bool:
    return str(key).startswith(LABEL_PREFIX)


def filter_user_labels(labels: Optional[Mapping[str, str]]) -> Dict[str, str]:
    if not labels:
        return {}
    return {str(k): str(v) for k, v in labels.items() if not is_reserved(k)}


def position_labels(x: float, y: float) -> Dict[str, str]:
    return {
        LABEL_POS_X: str(round_coord(x)),
        LABEL_POS_Y: str(round_coord(y)),
    }


def extract_position(labels: Optional[Mapping[str, str]]) -> Optional[Tuple[float, float]]:
    if not labels:
        return None
    raw_x = labels.get(LABEL_POS_X)
    raw_y = labels.get(LABEL_POS_Y)
    if raw_x in (None, "") or raw_y in (None, ""):
        return None
    try:
        return float(raw_x), float(raw_y)
    except (TypeError, ValueError):
        return None


def link_labels(
    edge_id: str,
    member_index: int,
    source_handle: Optional[str] = None,
    target_handle: Optional[str] = None,
) -> Dict[str, str]:
    out = {
        LABEL_EDGE_ID: edge_id,
        LABEL_MEMBER_INDEX: str(int(member_index)),
    }
    if source_handle:
        out[LABEL_SOURCE_HANDLE] = source_handle
    if target_handle:
        out[LABEL_TARGET_HANDLE] = target_handle
    return out


def extract_edge_id(labels: Optional[Mapping[str, str]]) -> Optional[str]:
    if not labels:
        return None
    value = labels.get(LABEL_EDGE_ID)
    return str(value) if value else None


def extract_member_index(labels: Optional[Mapping[str, str]]) -> Optional[int]:
    if not labels:
        return None
    value = labels.get(LABEL_MEMBER_INDEX)
    if value in (None, ""):
        return None
    try:
        return int(str(value))
    except ValueError:
        return None


def extract_handles(labels: Optional[Mapping[str, str]]) -> Tuple[Optional[str], Optional[str]]:
    if not labels:
        return None, None
    src = labels.get(LABEL_SOURCE_HANDLE) or None
    dst = labels.get(LABEL_TARGET_HANDLE) or None
    return (str(src) if src else None), (str(dst) if dst else None)


def name_prefix(annotations: Optional[Mapping[str, str]]) -> Optional[str]:
    """Name prefix configured on a node template, if any."""
    if not annotations:
        return None
    value = annotations.get(LABEL_NAME_PREFIX)
    return str(value) if value else None


def merge_labels(user: Optional[Mapping[str, str]], reserved: Mapping[str, str]) -> Dict[str, str]:
    """User labels first, reserved keys last (and always winning)."""
    out = filter_user_labels(user)
    out.update(reserved)
    return out
