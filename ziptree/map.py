from __future__ import annotations

import operator
from collections.abc import MutableMapping
from typing import Any, Iterator, List, Optional, Tuple, TypeVar, Union

from .base import ZipTree
from .iter import NONE, MapIterator, TreeIter
from .ordering import LessFn, Ordering
from .rank import RankGenerator, RngLike, unpack_rank

K = TypeVar("K")
V = TypeVar("V")

_MISSING = object()


class ZipTreeMap(ZipTree, MutableMapping):
    """An ordered mapping backed by a Zip-Zip tree.

    Values are kept in a list aligned slot-for-slot with the tree's node
    arena; the alignment is maintained inside the tree's compaction step.
    """

    def __init__(
        self,
        less: Union[LessFn, Ordering] = operator.lt,
        rng: Union[RngLike, RankGenerator] = None,
    ):
        self._values: List[V] = []
        super().__init__(less, rng, MapIterator)

    def _compact_slot(self, idx: int, last: int):
        values = self._values
        if idx != last:
            values[idx] = values[last]
        values.pop()

    def _print_node(self, idx: int) -> str:
        node = self._entries[idx]
        r1, r2 = unpack_rank(node.rank)
        return "Key: {}, Value: {}, Rank: ({}, {}), Count: {}".format(
            node.key, self._values[idx], r1, r2, node.count
        )

    def insert(self, key: K):
        raise TypeError(
            "{} requires a value for every key; use put(key, value)".format(
                self.__class__.__name__
            )
        )

    def put(self, key: K, value: V) -> bool:
        """Associate `value` with `key`.

        Returns True if a new entry was created, False if an existing
        entry's value was replaced.
        """
        found = self._find(key)
        if found == NONE:
            self._insert(key)
            self._values.append(value)
            return True

        self._values[found] = value
        return False

    def min(self) -> Tuple[K, V]:
        idx = self._minimum()
        if idx == NONE:
            raise IndexError("Tree is empty")
        return (self._entries[idx].key, self._values[idx])

    def max(self) -> Tuple[K, V]:
        idx = self._maximum()
        if idx == NONE:
            raise IndexError("Tree is empty")
        return (self._entries[idx].key, self._values[idx])

    def pop_min(self) -> Tuple[K, V]:
        r = self.min()
        self._delete_internal(self._minimum())
        return r

    def pop_max(self) -> Tuple[K, V]:
        r = self.max()
        self._delete_internal(self._maximum())
        return r

    def pop(self, key: K, default: Any = _MISSING) -> Optional[V]:
        idx = self._find(key)
        if idx == NONE:
            if default is _MISSING:
                raise KeyError(key)
            return default

        val = self._values[idx]
        self._delete_internal(idx)
        return val

    def clear(self):
        self._values.clear()
        super().clear()

    def items(
        self,
        left_bound: Optional[K] = None,
        right_bound: Optional[K] = None,
        reverse: bool = False,
    ) -> Iterator[Tuple[K, V]]:
        return self._do_iter(TreeIter.ITEMS, left_bound, right_bound, reverse)

    def values(
        self,
        left_bound: Optional[K] = None,
        right_bound: Optional[K] = None,
        reverse: bool = False,
    ) -> Iterator[V]:
        return self._do_iter(TreeIter.VALS, left_bound, right_bound, reverse)

    def __getitem__(self, key: K) -> V:
        idx = self._find(key)
        if idx == NONE:
            raise KeyError(key)
        return self._values[idx]

    def __setitem__(self, key: K, val: V):
        self.put(key, val)

    def __delitem__(self, key: K):
        if not self.delete(key):
            raise KeyError(key)

    def __repr__(self) -> str:
        return "{}({{{}}})".format(
            self.__class__.__name__,
            ", ".join("{!r}: {!r}".format(k, v) for k, v in self.items()),
        )
