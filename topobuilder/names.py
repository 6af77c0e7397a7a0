from __future__ import annotations

from typing import Collection, Optional
import re

from .constants import NAME_MAX_LENGTH


_ENTITY_TITLES = {
    "node": "Node",
    "simNode": "SimNode",
    "link": "Link",
    "template": "Template",
}


def name_error(name: Optional[str]) -> Optional[str]:
    """DNS-label check. Returns a user-facing reason or None when valid."""
    if not name:
        return "name cannot be empty"
    if len(name) > NAME_MAX_LENGTH:
        return f"name must be {NAME_MAX_LENGTH} characters or less"
    if not re.match(r"^[a-z0-9]", name):
        return "name must start with a lowercase letter or number"
    if not re.search(r"[a-z0-9]$", name):
        return "name must end with a lowercase letter or number"
    if re.search(r"[A-Z]", name):
        return "name must be lowercase"
    if re.search(r"[^a-z0-9-]", name):
        return "name can only contain lowercase letters, numbers, and hyphens"
    return None


def validate_name(name: Optional[str], existing: Collection[str], entity: str = "node") -> Optional[str]:
    err = name_error(name)
    if err:
        return err
    if name in existing:
        title = _ENTITY_TITLES.get(entity, entity.capitalize())
        return f'{title} name "{name}" already exists'
    return None


def unique_name(prefix: str, existing: Collection[str], start: int = 1) -> str:
    n = start
    name = f"{prefix}{n}"
    while name in existing:
        n += 1
        name = f"{prefix}{n}"
    return name


def copy_name(original: str, existing: Collection[str]) -> str:
    """``leaf1`` -> ``leaf1-copy``, then ``leaf1-copy1``, ``leaf1-copy2`` ..."""
    base = re.sub(r"-copy(\d+)?$", "", original)
    candidate = f"{base}-copy"
    n = 1
    while candidate in existing:
        candidate = f"{base}-copy{n}"
        n += 1
    return candidate


def replace_name_token(text: str, old: str, new: str) -> str:
    """Swap ``old`` for ``new`` where it appears as a whole hyphen-delimited run.

    ``leaf1-spine1-1`` renames cleanly, while ``leaf10`` survives a rename of ``leaf1``.
    """
    if not text or not old or old == new:
        return text
    pattern = re.compile(r"(^|-)" + re.escape(old) + r"(?=-|$)")
    return pattern.sub(lambda m: m.group(1) + new, text)


# ───────────────────────────── Interfaces ─────────────────────────────

def port_number(iface: Optional[str]) -> int:
    if not iface:
        return 0
    m = re.search(r"ethernet-1-(\d+)", iface)
    if m:
        return int(m.group(1))
    m = re.search(r"eth(\d+)", iface)
    if m:
        return int(m.group(1))
    return 0


def format_interface(port: int, sim: bool = False) -> str:
    return f"eth{port}" if sim else f"ethernet-1-{port}"


# ───────────────────────────── Link / LAG naming ─────────────────────────────

def member_link_name(target: str, source: str, n: int) -> str:
    return f"{target}-{source}-{n}"


def lag_name(target: str, source: str, n: int) -> str:
    return f"{target}-{source}-lag-{n}"


def lag_id(edge_id: str, n: int) -> str:
    return f"lag-{edge_id}-{n}"


def esi_lag_name(common: str, n: int) -> str:
    return f"{common}-esi-lag-{n}"


def pair_key(a: str, b: str) -> tuple:
    return (a, b) if a <= b else (b, a)
