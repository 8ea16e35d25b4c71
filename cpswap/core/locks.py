"""
Scoped exclusive access to a set of pairs.

A settlement holds every pair of its path for its whole duration. Locks are
taken in sorted pair-id order so two paths sharing pairs cannot deadlock, and
a thread that already holds a pair may not take it again: a nested settle on
the same pair is a reentrancy bug and fails loudly.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Set

from ..state.pairs import PairId
from .errors import ValidationError


class PairLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[PairId, threading.Lock] = {}
        self._local = threading.local()

    def _lock_for(self, pair_id: PairId) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(pair_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[pair_id] = lock
            return lock

    def _held(self) -> Set[PairId]:
        held = getattr(self._local, "held", None)
        if held is None:
            held = set()
            self._local.held = held
        return held

    def is_held(self, pair_id: PairId) -> bool:
        return pair_id in self._held()

    @contextmanager
    def hold(self, pair_ids: Iterable[PairId]) -> Iterator[None]:
        """Acquire every pair in `pair_ids`; released on all exit paths."""
        ordered = sorted(set(pair_ids))
        held = self._held()
        reentered = [pid for pid in ordered if pid in held]
        if reentered:
            raise ValidationError(f"reentrant access to pair {reentered[0]}")

        acquired: List[threading.Lock] = []
        try:
            for pid in ordered:
                lock = self._lock_for(pid)
                lock.acquire()
                acquired.append(lock)
                held.add(pid)
            yield
        finally:
            for pid, lock in zip(reversed(ordered[: len(acquired)]), reversed(acquired)):
                held.discard(pid)
                lock.release()
