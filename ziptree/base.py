from __future__ import annotations

import logging
import operator
from typing import Generic, Iterator, List, Optional, Type, TypeVar, Union

from .iter import NONE, TreeIter, ZipIterator
from .ordering import LessFn, Ordering
from .rank import RankGenerator, RngLike, make_rank_generator, unpack_rank

logger = logging.getLogger(__name__)

K = TypeVar("K")

NOT_FOUND = 0xFFFFFFFF
MAX_ENTRIES = NONE - 1


class ZipNode(Generic[K]):
    __slots__ = ("key", "left", "right", "parent", "rank", "count")

    def __init__(self, key: K, rank: int):
        self.key: K = key
        self.left: int = NONE
        self.right: int = NONE
        self.parent: int = NONE
        self.rank: int = rank
        self.count: int = 1


class ZipTree(Generic[K]):
    """An ordered set backed by a Zip-Zip tree.

    Nodes live in a dense list (the arena) and refer to each other by slot
    index. Deleting a node moves the arena's last node into the freed slot,
    so slot indices are only stable between structural mutations.
    """

    def __init__(
        self,
        less: Union[LessFn, Ordering] = operator.lt,
        rng: Union[RngLike, RankGenerator] = None,
        cursor_class: Type[ZipIterator] = ZipIterator,
    ):
        if isinstance(less, Ordering):
            self._ordering: Ordering[K] = less
        else:
            self._ordering = Ordering(less)
        self._ranks: RankGenerator = make_rank_generator(rng)
        self._cursor_cls = cursor_class

        self._entries: List[ZipNode[K]] = []
        self._root: int = NONE
        # bumped on every structural change; cursors compare against it
        self._version: int = 0

        logger.debug(
            "created %s (seeded: %s)", self.__class__.__name__, rng is not None
        )

    @property
    def ordering(self) -> Ordering[K]:
        return self._ordering

    # arena internals:

    def _find(self, key: K) -> int:
        lt = self._ordering.lt
        entries = self._entries
        cur = self._root
        while cur != NONE:
            node = entries[cur]
            if lt(key, node.key):
                cur = node.left
            elif lt(node.key, key):
                cur = node.right
            else:
                break
        return cur

    def _insert(self, key: K) -> int:
        """Add a node for a key known to be absent; returns its slot."""
        entries = self._entries
        lt = self._ordering.lt

        idx = len(entries)
        if idx >= MAX_ENTRIES:
            raise OverflowError("tree is full ({} entries)".format(idx))

        rank = self._ranks.draw(idx)
        new_node = ZipNode(key, rank)
        entries.append(new_node)
        self._version += 1

        # Descend past every node that outranks the new one. Equal ranks
        # keep the smaller key on top.
        root = self._root
        cur = root
        prev = NONE
        while cur != NONE and (
            rank < entries[cur].rank
            or (rank == entries[cur].rank and lt(entries[cur].key, key))
        ):
            prev = cur
            if lt(key, entries[cur].key):
                cur = entries[cur].left
            else:
                cur = entries[cur].right

        if cur == root:
            self._root = idx
        else:
            if lt(key, entries[prev].key):
                entries[prev].left = idx
            else:
                entries[prev].right = idx
            new_node.parent = prev

        if cur != NONE:
            self._unzip(idx, cur)
        self._fixup_count(idx, NONE)
        return idx

    def _unzip(self, idx: int, cur: int):
        """Split the subtree displaced by node `idx` into the chain of keys
        below the new key and the chain of keys above it."""
        entries = self._entries
        lt = self._ordering.lt
        key = entries[idx].key

        if lt(key, entries[cur].key):
            entries[idx].right = cur
        else:
            entries[idx].left = cur
        entries[cur].parent = idx

        prev = idx
        while cur != NONE:
            fix = prev
            if lt(entries[cur].key, key):
                while cur != NONE and not lt(key, entries[cur].key):
                    prev = cur
                    cur = entries[cur].right
            else:
                while cur != NONE and not lt(entries[cur].key, key):
                    prev = cur
                    cur = entries[cur].left

            if lt(key, entries[fix].key) or (
                fix == idx and lt(key, entries[prev].key)
            ):
                entries[fix].left = cur
            else:
                entries[fix].right = cur
            if cur != NONE:
                entries[cur].parent = fix
            self._fixup_count(fix, idx)

    def _delete_index(self, idx: int):
        """Unlink node `idx` from the tree, zipping its subtrees together.

        The slot itself stays in the arena; see `_compact`.
        """
        entries = self._entries
        victim = entries[idx]
        prev = victim.parent
        left, right = victim.left, victim.right

        if left == NONE:
            cur = right
        elif right == NONE:
            cur = left
        elif entries[left].rank >= entries[right].rank:
            cur = left
        else:
            cur = right

        if self._root == idx:
            self._root = cur
        elif self._ordering.lt(victim.key, entries[prev].key):
            entries[prev].left = cur
        else:
            entries[prev].right = cur

        if cur != NONE:
            entries[cur].parent = prev

        while left != NONE and right != NONE:
            left_rank = entries[left].rank
            right_rank = entries[right].rank

            if left_rank >= right_rank:
                while left != NONE and entries[left].rank >= right_rank:
                    prev = left
                    left = entries[left].right
                entries[prev].right = right
                entries[right].parent = prev
            else:
                while right != NONE and left_rank < entries[right].rank:
                    prev = right
                    right = entries[right].left
                entries[prev].left = left
                entries[left].parent = prev

        self._fixup_count(prev, NONE)

    def _compact(self, idx: int):
        """Fill slot `idx` with the arena's last node and shrink the arena."""
        entries = self._entries
        last = len(entries) - 1

        if idx != last:
            moved = entries[last]
            entries[idx] = moved

            if moved.left != NONE:
                entries[moved.left].parent = idx
            if moved.right != NONE:
                entries[moved.right].parent = idx
            if moved.parent != NONE:
                parent = entries[moved.parent]
                if parent.left == last:
                    parent.left = idx
                else:
                    parent.right = idx
            if self._root == last:
                self._root = idx

            logger.debug("moved slot %d -> %d", last, idx)

        self._compact_slot(idx, last)
        entries.pop()

    def _delete_internal(self, idx: int) -> bool:
        if idx == NONE:
            return False
        self._delete_index(idx)
        self._compact(idx)
        self._version += 1
        return True

    def _fixup_count(self, cur: int, limit: int):
        entries = self._entries
        while cur != limit:
            node = entries[cur]
            count = 1
            if node.left != NONE:
                count += entries[node.left].count
            if node.right != NONE:
                count += entries[node.right].count
            node.count = count
            cur = node.parent

    def _left_most(self) -> int:
        entries = self._entries
        cur = self._root
        while entries[cur].left != NONE:
            cur = entries[cur].left
        return cur

    def _right_most(self) -> int:
        entries = self._entries
        cur = self._root
        while entries[cur].right != NONE:
            cur = entries[cur].right
        return cur

    def _minimum(self) -> int:
        if self._root == NONE:
            return NONE
        return self._left_most()

    def _maximum(self) -> int:
        if self._root == NONE:
            return NONE
        return self._right_most()

    def _floor(self, key: K) -> int:
        lt = self._ordering.lt
        entries = self._entries
        res = NONE
        cur = self._root
        while cur != NONE:
            if lt(key, entries[cur].key):
                cur = entries[cur].left
            else:
                res = cur
                cur = entries[cur].right
        return res

    def _ceiling(self, key: K) -> int:
        lt = self._ordering.lt
        entries = self._entries
        res = NONE
        cur = self._root
        while cur != NONE:
            if lt(entries[cur].key, key):
                cur = entries[cur].right
            else:
                res = cur
                cur = entries[cur].left
        return res

    def _upper_bound(self, key: K) -> int:
        ge = self._ordering.ge
        entries = self._entries
        res = NONE
        cur = self._root
        while cur != NONE:
            if ge(key, entries[cur].key):
                cur = entries[cur].right
            else:
                res = cur
                cur = entries[cur].left
        return res

    def _lower_bound(self, key: K) -> int:
        return self._ceiling(key)

    def _at_index(self, i: int) -> int:
        if i < 0:
            return NONE
        entries = self._entries
        cur = self._root
        while cur != NONE:
            left = entries[cur].left
            left_count = entries[left].count if left != NONE else 0
            if i < left_count:
                cur = left
            elif i > left_count:
                i -= left_count + 1
                cur = entries[cur].right
            else:
                break
        return cur

    def _iterator(self, idx: int) -> ZipIterator[K]:
        return self._cursor_cls(self, idx)

    # methods for subclasses to override:

    def _compact_slot(self, idx: int, last: int):
        """Called by `_compact` while slot `last` is moved into `idx`."""
        pass

    def _print_node(self, idx: int) -> str:
        node = self._entries[idx]
        r1, r2 = unpack_rank(node.rank)
        return "Key: {}, Rank: ({}, {}), Count: {}".format(
            node.key, r1, r2, node.count
        )

    # public interface:

    def insert(self, key: K) -> bool:
        """Add `key` to the tree.

        Returns True if a new node was created, False if the key was
        already present (in which case nothing changes).
        """
        if self._find(key) != NONE:
            return False
        self._insert(key)
        return True

    def delete(self, key: K) -> bool:
        """Remove `key`; returns False if it was not present."""
        return self._delete_internal(self._find(key))

    def delete_iter(self, cursor: ZipIterator[K]) -> bool:
        """Remove the entry a cursor points at.

        Returns False for an empty or stale cursor. The cursor is empty
        afterwards.
        """
        if cursor._tree is not self:
            raise ValueError("cursor belongs to a different tree")
        deleted = self._delete_internal(cursor.index)
        cursor._invalidate()
        return deleted

    def find(self, key: K) -> ZipIterator[K]:
        return self._iterator(self._find(key))

    def floor(self, key: K) -> ZipIterator[K]:
        """Cursor at the largest key not greater than `key`."""
        return self._iterator(self._floor(key))

    def ceiling(self, key: K) -> ZipIterator[K]:
        """Cursor at the smallest key not less than `key`."""
        return self._iterator(self._ceiling(key))

    def lower_bound(self, key: K) -> ZipIterator[K]:
        """Cursor at the first key not ordered before `key`."""
        return self._iterator(self._lower_bound(key))

    def upper_bound(self, key: K) -> ZipIterator[K]:
        """Cursor at the first key ordered after `key`."""
        return self._iterator(self._upper_bound(key))

    def minimum(self) -> ZipIterator[K]:
        return self._iterator(self._minimum())

    def maximum(self) -> ZipIterator[K]:
        return self._iterator(self._maximum())

    def at_index(self, i: int) -> ZipIterator[K]:
        """Cursor at the `i`-th smallest key (0-based)."""
        return self._iterator(self._at_index(i))

    def index_of(self, key: K) -> int:
        """Position of `key` in ascending order, or `NOT_FOUND`."""
        lt = self._ordering.lt
        entries = self._entries
        cur = self._root
        res = 0
        while cur != NONE:
            node = entries[cur]
            if lt(key, node.key):
                cur = node.left
                continue

            if node.left != NONE:
                res += entries[node.left].count
            if lt(node.key, key):
                res += 1
                cur = node.right
            else:
                break

        if cur == NONE:
            return NOT_FOUND
        return res

    def new_iterator(self) -> ZipIterator[K]:
        return self.minimum()

    def new_reverse_iterator(self) -> ZipIterator[K]:
        return self.maximum()

    def size(self) -> int:
        return len(self._entries)

    def count(self) -> int:
        if self._root == NONE:
            return 0
        return self._entries[self._root].count

    def min(self) -> K:
        idx = self._minimum()
        if idx == NONE:
            raise IndexError("Tree is empty")
        return self._entries[idx].key

    def max(self) -> K:
        idx = self._maximum()
        if idx == NONE:
            raise IndexError("Tree is empty")
        return self._entries[idx].key

    def clear(self):
        self._entries.clear()
        self._root = NONE
        self._version += 1
        logger.debug("cleared %s", self.__class__.__name__)

    def _do_iter(
        self,
        mode: int,
        left_bound: Optional[K] = None,
        right_bound: Optional[K] = None,
        reverse: bool = False,
    ) -> TreeIter:
        if (
            left_bound is not None
            and right_bound is not None
            and self._ordering.gt(left_bound, right_bound)
        ):
            return self._do_iter(mode, right_bound, left_bound, reverse)

        if left_bound is not None:
            lower = self._ceiling(left_bound)
        else:
            lower = self._minimum()

        if right_bound is not None:
            upper = self._floor(right_bound)
        else:
            upper = self._maximum()

        return TreeIter(mode, self._iterator(lower), self._iterator(upper), reverse)

    def keys(
        self,
        left_bound: Optional[K] = None,
        right_bound: Optional[K] = None,
        reverse: bool = False,
    ) -> Iterator[K]:
        """Iterate keys in order, optionally restricted to the inclusive
        range [left_bound, right_bound]."""
        return self._do_iter(TreeIter.KEYS, left_bound, right_bound, reverse)

    def cursors(
        self,
        left_bound: Optional[K] = None,
        right_bound: Optional[K] = None,
        reverse: bool = False,
    ) -> Iterator[ZipIterator[K]]:
        return self._do_iter(TreeIter.CURSORS, left_bound, right_bound, reverse)

    def print(self) -> str:
        """Pre-order dump of the tree, one node per line."""
        if self._root == NONE:
            return "<empty tree>"
        lines: List[str] = []
        self._display_tree(self._root, "", False, False, lines)
        return "".join(lines)

    def _display_tree(
        self, idx: int, prefix: str, is_left: bool, has_both: bool, lines: List[str]
    ):
        if idx == NONE:
            return

        node = self._entries[idx]
        fork = is_left and has_both
        lines.append(
            "{}{}Idx: {}, {}, Parent: {}\n".format(
                prefix, "├── " if fork else "└── ", idx, self._print_node(idx), node.parent
            )
        )

        child_prefix = prefix + ("│   " if fork else "    ")
        both = node.left != NONE and node.right != NONE
        self._display_tree(node.left, child_prefix, True, both, lines)
        self._display_tree(node.right, child_prefix, False, both, lines)

    def display_in_order(self) -> str:
        """One line per node in ascending key order."""
        lines = []
        cursor = self.new_iterator()
        while not cursor.is_empty():
            lines.append(self._print_node(cursor.index) + "\n")
            cursor.next()
        return "".join(lines)

    def __str__(self) -> str:
        return self.print()

    def __repr__(self) -> str:
        return "{}({!r})".format(self.__class__.__name__, list(self))

    def __contains__(self, key: K) -> bool:
        return self._find(key) != NONE

    def __iter__(self) -> Iterator[K]:
        return self.keys()

    def __reversed__(self) -> Iterator[K]:
        return self.keys(reverse=True)

    def __len__(self) -> int:
        return len(self._entries)
