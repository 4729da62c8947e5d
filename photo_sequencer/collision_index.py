import logging
from typing import Dict, Generic, Hashable, Iterable, List, TypeVar

K = TypeVar('K', bound=Hashable)
V = TypeVar('V')


class CollisionIndex(Generic[K, V]):
    """
    Multi-map that reports key collisions (two or more values under one key).

    Keys keep their insertion order, as do values within a key, so the
    collision groups come back in the same order the values went in.
    The index holds references only; it never copies or alters a value.
    """

    def __init__(self):
        self._buckets: Dict[K, List[V]] = {}

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, key) -> bool:
        return key in self._buckets

    def keys(self) -> List[K]:
        return list(self._buckets)

    def get(self, key: K) -> List[V]:
        return list(self._buckets.get(key, []))

    def insert(self, key: K, value: V):
        """Adds value under key. Re-inserting the same pair is a no-op."""
        entries = self._buckets.setdefault(key, [])
        if value not in entries:
            entries.append(value)
            if len(entries) > 1:
                logging.debug(f"Key {key} has {len(entries)} entries")

    def insert_all(self, pairs: Iterable):
        for key, value in pairs:
            self.insert(key, value)

    def retract(self, key: K, value: V) -> bool:
        """
        Removes value from the bucket for key.

        A miss is an internal inconsistency, not a failure of the run:
        it is logged and False is returned.
        """
        entries = self._buckets.get(key)
        if entries is None or value not in entries:
            logging.error(f"Cannot retract k [{key}] and v [{value}]")
            return False
        entries.remove(value)
        return True

    def collisions(self) -> List[V]:
        """All values whose key is shared with at least one other value."""
        return [v for group in self.grouped_collisions() for v in group]

    def grouped_collisions(self) -> List[List[V]]:
        """Colliding values, one list per key."""
        return [list(entries) for entries in self._buckets.values() if len(entries) > 1]
