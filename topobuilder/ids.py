from __future__ import annotations

from typing import Dict, Iterable, Optional
import re


_PREFIXES: Dict[str, str] = {
    "node": "node-",
    "edge": "edge-",
    "sim": "sim-",
    "annotation": "a",
}


def id_suffix(entity_id: str, prefix: str) -> Optional[int]:
    """Numeric suffix of an id like ``node-12`` (prefix ``node-``), else None."""
    if not entity_id or not entity_id.startswith(prefix):
        return None
    m = re.fullmatch(r"(\d+)", entity_id[len(prefix):])
    if not m:
        return None
    return int(m.group(1))


class IdAllocator:
    """Issues monotonically increasing ids per entity kind.

    Owned by a graph session, never module-global, so two graphs never share
    counters and tests start from ``node-1`` / ``edge-1`` every time.
    """

    def __init__(self):
        self._next: Dict[str, int] = {kind: 1 for kind in _PREFIXES}

    def next(self, kind: str) -> str:
        n = self._next[kind]
        self._next[kind] = n + 1
        return f"{_PREFIXES[kind]}{n}"

    def peek(self, kind: str) -> int:
        return self._next[kind]

    def owns(self, kind: str, entity_id: str) -> bool:
        return id_suffix(entity_id, _PREFIXES[kind]) is not None

    def ensure_above(self, kind: str, n: int) -> None:
        if n + 1 > self._next[kind]:
            self._next[kind] = n + 1

    def claim(self, kind: str, entity_id: str) -> None:
        """Make sure ``entity_id`` will never be minted again."""
        n = id_suffix(entity_id, _PREFIXES[kind])
        if n is not None:
            self.ensure_above(kind, n)

    def reseed(self, kind: str, ids: Iterable[str]) -> None:
        best = 0
        for entity_id in ids:
            n = id_suffix(entity_id, _PREFIXES[kind])
            if n is not None and n > best:
                best = n
        self._next[kind] = best + 1

    def reset(self) -> None:
        for kind in self._next:
            self._next[kind] = 1

    def copy(self) -> "IdAllocator":
        other = IdAllocator()
        other._next = dict(self._next)
        return other

    def restore(self, other: "IdAllocator") -> None:
        self._next = dict(other._next)
