from __future__ import annotations

import operator
from typing import Callable, Generic, TypeVar

K = TypeVar("K")

LessFn = Callable[[K, K], bool]


class Ordering(Generic[K]):
    """Derives the full set of comparisons from a single "less than"
    predicate.

    The predicate must be a strict weak ordering; every tree invariant
    depends on it.
    """

    def __init__(self, less: LessFn = operator.lt):
        self._less: LessFn = less

    @property
    def less(self) -> LessFn:
        return self._less

    def lt(self, a: K, b: K) -> bool:
        return self._less(a, b)

    def gt(self, a: K, b: K) -> bool:
        # a > b -> b < a
        return self._less(b, a)

    def le(self, a: K, b: K) -> bool:
        # a <= b -> !(b < a)
        return not self._less(b, a)

    def ge(self, a: K, b: K) -> bool:
        # a >= b -> !(a < b)
        return not self._less(a, b)

    def eq(self, a: K, b: K) -> bool:
        return not self._less(a, b) and not self._less(b, a)

    def reverse(self) -> Ordering[K]:
        """The same ordering, flipped."""
        less = self._less
        return Ordering(lambda a, b: less(b, a))
