from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import json

from .constants import LOG_MAX_EVENTS

# event kinds that mean an edit or import was refused
REJECTION_KINDS = ("error", "import_yaml_failed")


@dataclass
class SessionEvent:
    ts: str
    kind: str
    data: Dict[str, Any]


class SessionLogger:
    """Bounded in-memory event log for one topology editing session.

    Event kinds are the graph operation names (``add_node``, ``connect``,
    ``create_lag`` ...). A refused edit is logged as ``error`` with the
    operation in ``op``; a refused document as ``import_yaml_failed``.
    """

    def __init__(self, max_events: int = LOG_MAX_EVENTS):
        self.max_events = max(1, int(max_events))
        self.events: List[SessionEvent] = []

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def add(self, kind: str, /, **data: Any) -> SessionEvent:
        ev = SessionEvent(ts=self._now(), kind=str(kind), data=dict(data))
        self.events.append(ev)
        if len(self.events) > self.max_events:
            self.events = self.events[-self.max_events :]
        return ev

    def of_kind(self, kind: str) -> List[SessionEvent]:
        return [e for e in self.events if e.kind == kind]

    def last(self, kind: Optional[str] = None) -> Optional[SessionEvent]:
        for ev in reversed(self.events):
            if kind is None or ev.kind == kind:
                return ev
        return None

    def rejections(self, op: Optional[str] = None) -> List[SessionEvent]:
        """Refused edits, optionally only those of graph operation ``op``."""
        found = [e for e in self.events if e.kind in REJECTION_KINDS]
        if op is not None:
            found = [e for e in found if e.data.get("op") == op]
        return found

    def clear(self) -> None:
        self.events.clear()

    def to_dict(self, topology: Optional[str] = None) -> Dict[str, Any]:
        return {
            "schema": "topobuilder-session-log/v1",
            "topology": topology,
            "eventCount": len(self.events),
            "rejectedCount": len(self.rejections()),
            "events": [asdict(e) for e in self.events],
        }

    def save_json(self, path: str, topology: Optional[str] = None) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(topology), f, indent=2, ensure_ascii=False, default=str)
