from hypothesis import given, strategies as st
from hypothesis.stateful import Bundle, RuleBasedStateMachine, rule, invariant
import pytest

from ziptree.base import ZipTree, NOT_FOUND
from ziptree.iter import NONE
from ziptree.map import ZipTreeMap


@st.composite
def dict_and_key(draw, keys=st.integers(), values=st.uuids()):
    d = draw(st.dictionaries(keys, values, min_size=1))
    key = draw(st.sampled_from(list(d.keys())))
    return (d, key)


@st.composite
def dict_and_subset(draw, keys=st.integers(), values=st.uuids()):
    d = draw(st.dictionaries(keys, values, min_size=1))
    subset = sorted(d.keys())

    i1 = draw(st.integers(min_value=0, max_value=len(subset) - 1))
    subset = subset[i1:]

    i2 = draw(st.integers(min_value=1, max_value=len(subset)))
    subset = subset[:i2]

    return (d, subset, subset[0], subset[-1])


def verify_node_integrity(tree: ZipTree, idx: int, seen: dict) -> int:
    entries = tree._entries
    node = entries[idx]
    assert idx not in seen, "encountered loop in tree links at slot " + str(idx)
    seen[idx] = node.key

    count = 1
    for child, is_left in ((node.left, True), (node.right, False)):
        if child == NONE:
            continue

        child_node = entries[child]
        assert (
            child_node.parent == idx
        ), "parent <> child link broken at slot {} (child = {})".format(idx, child)

        if is_left:
            assert child_node.key < node.key, "BST order violated at key " + str(
                node.key
            )
            # equal ranks may only hang off a right edge
            assert (
                child_node.rank < node.rank
            ), "heap order violated at key {} (left child {})".format(
                node.key, child_node.key
            )
        else:
            assert child_node.key > node.key, "BST order violated at key " + str(
                node.key
            )
            assert (
                child_node.rank <= node.rank
            ), "heap order violated at key {} (right child {})".format(
                node.key, child_node.key
            )

        count += verify_node_integrity(tree, child, seen)

    assert node.count == count, "stale subtree count at key {} ({} != {})".format(
        node.key, node.count, count
    )
    return count


def verify_tree_integrity(tree: ZipTree, items):
    seen = {}
    if tree._root != NONE:
        assert tree._entries[tree._root].parent == NONE, "root has a parent"
        verify_node_integrity(tree, tree._root, seen)

    # every arena slot is reachable from the root exactly once
    assert sorted(seen.keys()) == list(
        range(len(tree._entries))
    ), "arena has unreachable slots"

    assert len(seen) == len(
        items
    ), "tree traversal returned incorrect number of items (got {}, expected {})".format(
        len(seen), len(items)
    )
    assert len(tree) == tree.size() == tree.count() == len(items)

    if isinstance(tree, ZipTreeMap):
        assert len(tree._values) == len(tree._entries), "value array out of step"
        for idx, k in seen.items():
            assert (
                tree._values[idx] == items[k]
            ), "found incorrect key-value mapping during tree traversal (key {}: got {}, expected {})".format(
                str(k), str(tree._values[idx]), str(items[k])
            )
    else:
        assert set(seen.values()) == set(items)


def forward_keys(tree):
    keys = []
    cursor = tree.new_iterator()
    while not cursor.is_empty():
        keys.append(cursor.key)
        cursor.next()
    return keys


def backward_keys(tree):
    keys = []
    cursor = tree.new_reverse_iterator()
    while not cursor.is_empty():
        keys.append(cursor.key)
        cursor.prev()
    return keys


class TreeStateMachine(RuleBasedStateMachine):
    def __init__(self):
        super().__init__()
        self.tree = ZipTreeMap(rng=0)
        self.model = {}

    keys = Bundle("keys")
    values = Bundle("values")

    @invariant()
    def check_integrity(self):
        verify_tree_integrity(self.tree, self.model)

    @rule(target=keys, k=st.integers())
    def add_key(self, k):
        return k

    @rule(target=values, v=st.uuids())
    def add_value(self, v):
        return v

    @rule(k=keys, v=values)
    def setitem(self, k, v):
        self.tree[k] = v
        self.model[k] = v

    @rule(k=keys, v=values)
    def put(self, k, v):
        assert self.tree.put(k, v) == (k not in self.model)
        self.model[k] = v

    @rule(k=keys)
    def getitem(self, k):
        if k not in self.model:
            with pytest.raises(KeyError):
                self.tree[k]
        else:
            assert self.tree[k] == self.model[k]

    @rule(k=keys)
    def delitem(self, k):
        if k not in self.model:
            with pytest.raises(KeyError):
                del self.tree[k]
        else:
            del self.tree[k]
            del self.model[k]

    @rule(k=keys)
    def delete(self, k):
        assert self.tree.delete(k) == (k in self.model)
        self.model.pop(k, None)

    @rule(k=keys)
    def contains(self, k):
        assert (k in self.tree) == (k in self.model)

    @rule(k=keys)
    def pop(self, k):
        if k not in self.model:
            with pytest.raises(KeyError):
                self.tree.pop(k)
        else:
            assert self.tree.pop(k) == self.model.pop(k)

    @rule()
    def min(self):
        if len(self.model) == 0:
            with pytest.raises(IndexError):
                self.tree.min()
        else:
            k = min(self.model)
            assert self.tree.min() == (k, self.model[k])

    @rule()
    def max(self):
        if len(self.model) == 0:
            with pytest.raises(IndexError):
                self.tree.max()
        else:
            k = max(self.model)
            assert self.tree.max() == (k, self.model[k])

    @rule()
    def pop_min(self):
        if len(self.model) == 0:
            with pytest.raises(IndexError):
                self.tree.pop_min()
        else:
            k = min(self.model)
            assert self.tree.pop_min() == (k, self.model.pop(k))

    @rule()
    def pop_max(self):
        if len(self.model) == 0:
            with pytest.raises(IndexError):
                self.tree.pop_max()
        else:
            k = max(self.model)
            assert self.tree.pop_max() == (k, self.model.pop(k))

    @rule(data=st.data())
    def delete_iter_at_index(self, data):
        if len(self.model) == 0:
            assert self.tree.at_index(0).is_empty()
            return

        i = data.draw(st.integers(min_value=0, max_value=len(self.model) - 1))
        cursor = self.tree.at_index(i)
        k = sorted(self.model)[i]
        assert cursor.key == k
        assert cursor.value == self.model[k]
        assert self.tree.delete_iter(cursor)
        assert cursor.is_empty()
        del self.model[k]

    @rule(k=keys)
    def index_of(self, k):
        if k not in self.model:
            assert self.tree.index_of(k) == NOT_FOUND
        else:
            i = sorted(self.model).index(k)
            assert self.tree.index_of(k) == i
            assert self.tree.at_index(i).key == k

    @rule(k=keys)
    def get(self, k):
        assert self.tree.get(k) == self.model.get(k)


TestTreeStateMachine = TreeStateMachine.TestCase


@pytest.mark.parametrize("tree_type", [ZipTree, ZipTreeMap])
@given(st.lists(st.integers(), unique=True), st.integers(min_value=0))
def test_in_order_is_sorted(tree_type, keys, seed):
    tree = tree_type(rng=seed)
    for k in keys:
        if tree_type is ZipTreeMap:
            assert tree.put(k, str(k))
        else:
            assert tree.insert(k)

    verify_tree_integrity(tree, {k: str(k) for k in keys})
    assert forward_keys(tree) == sorted(keys)
    assert backward_keys(tree) == sorted(keys, reverse=True)
    assert list(tree) == sorted(keys)
    assert list(reversed(tree)) == sorted(keys, reverse=True)


@given(dict_and_key(), st.integers(min_value=0))  # pylint: disable=no-value-for-parameter
def test_insert_duplicate(givens, seed):
    items, test_key = givens
    tree = ZipTreeMap(rng=seed)

    for k, v in items.items():
        assert tree.put(k, v)

    size = tree.size()
    assert not tree.put(test_key, "updated")
    assert tree.size() == tree.count() == size
    assert tree[test_key] == "updated"


@given(dict_and_key())  # pylint: disable=no-value-for-parameter
def test_delete(givens):
    items, test_key = givens
    tree = ZipTreeMap()

    for k, v in items.items():
        tree[k] = v

    size = tree.size()
    assert tree.delete(test_key)
    del items[test_key]

    assert tree.size() == size - 1
    assert tree.find(test_key).is_empty()
    verify_tree_integrity(tree, items)


@given(dict_and_key())  # pylint: disable=no-value-for-parameter
def test_nonexistent_key(givens):
    items, test_key = givens
    tree = ZipTreeMap()

    for k, v in items.items():
        tree[k] = v
    del tree[test_key]
    del items[test_key]

    with pytest.raises(KeyError):
        tree[test_key]

    with pytest.raises(KeyError):
        del tree[test_key]

    assert not tree.delete(test_key)
    assert test_key not in tree
    assert tree.index_of(test_key) == NOT_FOUND
    verify_tree_integrity(tree, items)


@given(st.lists(st.integers(), unique=True), st.randoms())
def test_insert_then_delete_all(keys, rnd):
    tree = ZipTree(rng=rnd.getrandbits(32))
    for k in keys:
        tree.insert(k)

    order = list(keys)
    rnd.shuffle(order)
    remaining = set(keys)
    for k in order:
        assert tree.delete(k)
        remaining.discard(k)
        verify_tree_integrity(tree, remaining)

    assert tree._root == NONE
    assert tree.size() == 0
    assert tree.count() == 0
    assert tree.minimum().is_empty()
    assert tree.maximum().is_empty()


@given(st.lists(st.integers(), unique=True, min_size=1))
def test_order_statistics(keys):
    tree = ZipTree()
    for k in keys:
        tree.insert(k)

    for i, k in enumerate(sorted(keys)):
        assert tree.at_index(i).key == k
        assert tree.index_of(k) == i
        assert tree.at_index(tree.index_of(k)).key == k

    assert tree.at_index(len(keys)).is_empty()
    assert tree.at_index(-1).is_empty()


@given(st.lists(st.integers(), unique=True, min_size=1), st.integers())
def test_bounds_match_sorted_list(keys, target):
    tree = ZipTree()
    for k in keys:
        tree.insert(k)
    s = sorted(keys)

    below = [k for k in s if k <= target]
    above = [k for k in s if k >= target]
    after = [k for k in s if k > target]

    assert tree.floor(target).key == (below[-1] if below else None)
    assert tree.ceiling(target).key == (above[0] if above else None)
    assert tree.lower_bound(target).key == (above[0] if above else None)
    assert tree.upper_bound(target).key == (after[0] if after else None)


@given(dict_and_subset())  # pylint: disable=no-value-for-parameter
def test_iter_bounds(givens):
    items, subset, lower_bound, upper_bound = givens
    tree = ZipTreeMap()

    for k, v in items.items():
        assert tree.put(k, v)

    ret = list(tree.items(left_bound=lower_bound, right_bound=upper_bound))

    assert len(ret) == len(subset)
    for k1, kv in zip(subset, ret):
        assert k1 == kv[0]
        assert items[k1] == kv[1]

    # bounds given the wrong way round are swapped
    assert list(tree.keys(upper_bound, lower_bound)) == subset


@given(dict_and_subset())  # pylint: disable=no-value-for-parameter
def test_iter_bounds_reverse(givens):
    items, subset, lower_bound, upper_bound = givens
    tree = ZipTreeMap()

    for k, v in items.items():
        assert tree.put(k, v)

    ret = list(
        tree.items(left_bound=lower_bound, right_bound=upper_bound, reverse=True)
    )

    assert len(ret) == len(subset)
    for k1, kv in zip(reversed(subset), ret):
        assert k1 == kv[0]
        assert items[k1] == kv[1]

    assert list(tree.values(lower_bound, upper_bound, reverse=True)) == [
        items[k] for k in reversed(subset)
    ]


def test_iter_bounds_between_keys():
    tree = ZipTree()
    for k in [1, 5, 9]:
        tree.insert(k)

    assert list(tree.keys(2, 4)) == []
    assert list(tree.keys(2, 9)) == [5, 9]
    assert list(tree.keys(left_bound=6)) == [9]
    assert list(tree.keys(right_bound=5, reverse=True)) == [5, 1]
    assert list(reversed(tree.keys(1, 5))) == [5, 1]


def test_custom_ordering():
    tree = ZipTree(lambda a, b: a > b, rng=7)
    for k in [3, 1, 4, 1, 5, 9, 2, 6]:
        tree.insert(k)

    assert list(tree) == [9, 6, 5, 4, 3, 2, 1]
    assert tree.min() == 9
    assert tree.max() == 1
    assert tree.floor(7).key == 9
    assert tree.ceiling(7).key == 6
    assert tree.index_of(9) == 0


def test_string_keys():
    tree = ZipTreeMap(rng=3)
    for word in ["pear", "apple", "fig", "kiwi"]:
        tree[word] = len(word)

    assert list(tree.items()) == [("apple", 5), ("fig", 3), ("kiwi", 4), ("pear", 4)]
    assert tree.at_index(2).value == 4
    assert tree.upper_bound("fig").key == "kiwi"
