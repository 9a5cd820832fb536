import itertools
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from .errors import IndexOutOfRange
from .logging_setup import log
from .models import Watch


class WatchStore:
    """In-memory registry of watches, partitioned by owner.

    Every mutation swaps in a new per-owner list instead of editing the old one,
    so a caller iterating over a `list()` result is never affected by a
    concurrent create/delete. State lives for the process lifetime only.
    """

    def __init__(self):
        self._by_owner: Dict[int, List[Watch]] = {}
        self._ids = itertools.count(1)

    def create(self, owner_id: int, watch: Watch) -> str:
        watch_id = f"w{next(self._ids)}"
        stored = replace(watch, id=watch_id, owner_id=owner_id)
        self._by_owner[owner_id] = self._by_owner.get(owner_id, []) + [stored]
        log.info(f"Watch created | owner={owner_id} id={watch_id} kind={stored.kind.value} token={stored.token_symbol}")
        return watch_id

    def list(self, owner_id: int) -> List[Watch]:
        return list(self._by_owner.get(owner_id, ()))

    def get(self, owner_id: int, watch_id: str) -> Optional[Watch]:
        for w in self._by_owner.get(owner_id, ()):
            if w.id == watch_id: return w
        return None

    def count(self, owner_id: int) -> int:
        return len(self._by_owner.get(owner_id, ()))

    def owners(self) -> List[int]:
        return [o for o, ws in list(self._by_owner.items()) if ws]

    def delete_at(self, owner_id: int, index: int) -> Watch:
        current = self._by_owner.get(owner_id, [])
        if not 0 <= index < len(current):
            raise IndexOutOfRange(index, len(current))
        removed = current[index]
        self._by_owner[owner_id] = current[:index] + current[index+1:]
        log.info(f"Watch deleted | owner={owner_id} id={removed.id}")
        return removed

    def delete_all(self, owner_id: int) -> int:
        removed = self._by_owner.pop(owner_id, [])
        if removed:
            log.info(f"All watches deleted | owner={owner_id} count={len(removed)}")
        return len(removed)

    def mutate(self, owner_id: int, watch_id: str, fn: Callable[[Watch], Watch]) -> Optional[Watch]:
        """Replace the watch with fn(watch). Returns None if it was deleted meanwhile."""
        current = self._by_owner.get(owner_id, [])
        for i, w in enumerate(current):
            if w.id == watch_id:
                updated = fn(w)
                self._by_owner[owner_id] = current[:i] + [updated] + current[i+1:]
                return updated
        return None
