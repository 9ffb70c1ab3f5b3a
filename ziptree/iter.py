from __future__ import annotations

from typing import TYPE_CHECKING, Generic, Optional, TypeVar

if TYPE_CHECKING:
    from .base import ZipTree
    from .map import ZipTreeMap

K = TypeVar("K")
V = TypeVar("V")

# Reserved "no node" handle. Slot handles are 32-bit, so the all-ones value
# can never name a live slot.
NONE = 0xFFFFFFFF


class ZipIterator(Generic[K]):
    """A cursor onto one slot of a tree's arena.

    Cursors are views: they borrow the tree's arena and do not keep it
    alive in any particular shape. Any insertion of a new key or any
    deletion on the tree (other than one made through this cursor with
    `ZipTree.delete_iter`) invalidates every outstanding cursor, which from
    then on reports itself empty.
    """

    def __init__(self, tree: ZipTree[K], index: int = NONE):
        self._tree: ZipTree[K] = tree
        self._index: int = index
        self._version: int = tree._version

    def _is_stale(self) -> bool:
        return self._version != self._tree._version

    def _invalidate(self):
        self._index = NONE

    def is_empty(self) -> bool:
        return self._index == NONE or self._is_stale()

    @property
    def index(self) -> int:
        """Arena slot this cursor points at, or `NONE`."""
        if self._is_stale():
            return NONE
        return self._index

    @property
    def key(self) -> Optional[K]:
        if self.is_empty():
            return None
        return self._tree._entries[self._index].key

    @property
    def parent(self) -> int:
        """Arena slot of the current node's parent (diagnostic)."""
        if self.is_empty():
            return NONE
        return self._tree._entries[self._index].parent

    def next(self):
        """Step forward to the in-order successor."""
        if self.is_empty():
            return
        entries = self._tree._entries
        cur = self._index

        if entries[cur].right != NONE:
            # leftmost node of the right subtree
            cur = entries[cur].right
            while entries[cur].left != NONE:
                cur = entries[cur].left
            self._index = cur
        else:
            parent = entries[cur].parent
            while parent != NONE and entries[parent].right == cur:
                cur = parent
                parent = entries[parent].parent
            self._index = parent

    def prev(self):
        """Step backward to the in-order predecessor."""
        if self.is_empty():
            return
        entries = self._tree._entries
        cur = self._index

        if entries[cur].left != NONE:
            # rightmost node of the left subtree
            cur = entries[cur].left
            while entries[cur].right != NONE:
                cur = entries[cur].right
            self._index = cur
        else:
            parent = entries[cur].parent
            while parent != NONE and entries[parent].left == cur:
                cur = parent
                parent = entries[parent].parent
            self._index = parent

    def copy(self) -> ZipIterator[K]:
        ret = self.__class__(self._tree, self._index)
        ret._version = self._version
        return ret

    def __repr__(self) -> str:
        if self.is_empty():
            return "<{} empty>".format(self.__class__.__name__)
        return "<{} index={} key={!r}>".format(
            self.__class__.__name__, self._index, self.key
        )


class MapIterator(ZipIterator[K], Generic[K, V]):
    """Cursor over a `ZipTreeMap`; also exposes the slot's value."""

    _tree: ZipTreeMap

    @property
    def value(self) -> Optional[V]:
        if self.is_empty():
            return None
        return self._tree._values[self._index]


class TreeIter(object):
    """Python iterator over an inclusive range of cursors."""

    KEYS = 0
    VALS = 1
    ITEMS = 2
    CURSORS = 3

    def __init__(
        self,
        mode: int,
        lower: ZipIterator,
        upper: ZipIterator,
        rev: bool,
    ):
        self._rev: bool = rev
        self._mode: int = mode
        self._cur: Optional[ZipIterator] = None
        self._end: Optional[ZipIterator] = None

        if lower.is_empty() or upper.is_empty():
            return

        ordering = lower._tree._ordering
        if ordering.le(lower.key, upper.key):
            if not rev:
                self._cur = lower.copy()
                self._end = upper.copy()
            else:
                self._cur = upper.copy()
                self._end = lower.copy()

    def __iter__(self) -> TreeIter:
        return self

    def __reversed__(self) -> TreeIter:
        ret = TreeIter.__new__(TreeIter)
        ret._rev = not self._rev
        ret._mode = self._mode
        ret._cur = None if self._end is None else self._end.copy()
        ret._end = None if self._cur is None else self._cur.copy()
        return ret

    def __next__(self):
        if self._cur is None:
            raise StopIteration()

        cur = self._cur
        if cur.is_empty():
            raise RuntimeError("tree mutated during iteration")

        index = cur.index
        ret = self._emit(cur)

        if index != self._end.index:
            if not self._rev:
                cur.next()
            else:
                cur.prev()
        else:
            self._cur = None
            self._end = None

        return ret

    def _emit(self, cur: ZipIterator):
        if self._mode == TreeIter.KEYS:
            return cur.key
        elif self._mode == TreeIter.VALS:
            return cur.value
        elif self._mode == TreeIter.ITEMS:
            return (cur.key, cur.value)
        elif self._mode == TreeIter.CURSORS:
            return cur.copy()
