"""Bounded memory of recently generated solution shapes."""

from __future__ import annotations

from collections import deque
from typing import Deque, FrozenSet, Iterable, Optional

from board.paths import path_signature
from project_config import get_section

_HISTORY_CFG = get_section("history", {})


def puzzle_key(seed: int, kinds: Iterable) -> str:
    names = sorted(getattr(kind, "value", str(kind)) for kind in kinds)
    return f"{seed}:{','.join(names)}"


class GenerationHistory:
    """FIFO-evicted record of path signatures and generated puzzle keys.

    The generator asks it which signatures to steer away from.  Asking again
    for a key that was already generated turns avoidance off, so replaying a
    seed reproduces the same puzzle as long as nothing else was generated in
    between.
    """

    def __init__(
        self,
        signature_limit: Optional[int] = None,
        avoid_window: Optional[int] = None,
        key_limit: Optional[int] = None,
        relax_last: Optional[int] = None,
    ) -> None:
        self.signature_limit = int(signature_limit or _HISTORY_CFG.get("path_signature_limit", 40))
        self.avoid_window = int(avoid_window or _HISTORY_CFG.get("avoid_window", 18))
        self.relax_last = int(relax_last or _HISTORY_CFG.get("relax_last_attempts", 14))
        self._signatures: Deque[str] = deque(maxlen=self.signature_limit)
        self._keys: Deque[str] = deque(maxlen=int(key_limit or _HISTORY_CFG.get("puzzle_key_limit", 140)))

    def __len__(self) -> int:
        return len(self._signatures)

    def seen(self, key: str) -> bool:
        return key in self._keys

    def avoid_signatures(self, key: str, attempt: int, budget: int) -> FrozenSet[str]:
        if self.seen(key) or attempt >= budget - self.relax_last:
            return frozenset()
        recent = list(self._signatures)[-self.avoid_window:]
        return frozenset(recent)

    def record(self, key: str, path) -> None:
        if path:
            self._signatures.append(path_signature(path))
        if key not in self._keys:
            self._keys.append(key)

    def clear(self) -> None:
        self._signatures.clear()
        self._keys.clear()


__all__ = ["GenerationHistory", "puzzle_key"]
