"""Integration tests for Vector over MemoryStore.

Tests cover the sparse-array invariants:
1. Size is the last stored index + 1
2. Sparse slots read as the default
3. The last slot is always stored
4. Clear removes everything
"""

import pytest

from kv_vector import (
    DirectoryLayer,
    InvalidIndexError,
    Kind,
    MemoryStore,
    OutOfRangeError,
    UnsupportedTypeError,
    Value,
    Vector,
)


@pytest.fixture
def store():
    """Create an empty store."""
    return MemoryStore()


@pytest.fixture
def vector(store):
    """Create a vector in its own directory."""
    subspace = store.transact(DirectoryLayer().create_or_open, "tests", "vector")
    return Vector(subspace)


@pytest.fixture
def tx(store):
    """Open a transaction committed at the end of the test."""
    with store.create_transaction() as tx:
        yield tx


def stored_indices(vector, tx):
    """Return the indices that physically have a key."""
    begin, end = vector.subspace.range()
    return [vector.subspace.decode(key) for key, _ in tx.get_range(begin, end)]


def test_empty_vector(vector, tx):
    """Test a fresh vector has size 0."""
    assert vector.size(tx) == 0
    assert vector.empty(tx)


def test_size(vector, tx):
    """Test size after a single set."""
    vector.set(0, "a", tx)
    assert vector.size(tx) == 1
    assert not vector.empty(tx)


def test_size_tracks_max_index(vector, tx):
    """Test size is max(index) + 1 over any sequence of sets."""
    seen = []
    for index in [5, 2, 9, 0, 9, 3]:
        vector.set(index, index * 10, tx)
        seen.append(index)
        assert vector.size(tx) == max(seen) + 1


def test_clear(vector, tx):
    """Test clear empties the vector."""
    vector.set(0, "a", tx)
    vector.set(1, "b", tx)
    assert vector.size(tx) == 2

    vector.clear(tx)
    assert vector.size(tx) == 0
    with pytest.raises(OutOfRangeError):
        vector.get(0, tx)


def test_clear_then_reuse(vector, tx):
    """Test a cleared vector can be filled again."""
    vector.push("a", tx)
    vector.clear(tx)
    vector.push("b", tx)
    assert vector.size(tx) == 1
    assert vector.get(0, tx) == Value.of_text("b")


def test_push_pop(vector, tx):
    """Test pop returns pushed values in reverse order."""
    vector.push("a", tx)
    vector.push("b", tx)

    assert vector.pop(tx) == Value.of_text("b")
    assert vector.pop(tx) == Value.of_text("a")
    assert vector.size(tx) == 0


def test_push_then_pop_restores_size(vector, tx):
    """Test push immediately followed by pop is a no-op on size."""
    vector.set(4, 1.5, tx)
    before = vector.size(tx)

    vector.push(42, tx)
    assert vector.size(tx) == before + 1
    assert vector.pop(tx) == Value.of_int(42)
    assert vector.size(tx) == before


def test_sparsity(vector, tx):
    """Test sparse reads and default materialization on pop."""
    vector.set(3, "a", tx)
    assert vector.size(tx) == 4

    assert vector.get(1, tx) == Value.empty()
    assert vector.get(2, tx).is_empty
    assert vector.get(3, tx) == Value.of_text("a")

    assert vector.pop(tx) == Value.of_text("a")
    assert vector.size(tx) == 3

    # Index 2 was sparse, so the first pop wrote the default there
    assert vector.pop(tx) == vector.default
    assert vector.pop(tx) == Value.of_text("")
    assert vector.size(tx) == 1


def test_pop_materializes_predecessor(vector, tx):
    """Test the new last slot is written when it was sparse."""
    vector.set(0, "x", tx)
    vector.set(5, "y", tx)
    assert stored_indices(vector, tx) == [0, 5]

    vector.pop(tx)
    assert stored_indices(vector, tx) == [0, 4]
    assert vector.size(tx) == 5


def test_pop_skips_materialization_when_dense(vector, tx):
    """Test no default is written when the predecessor exists."""
    vector.set(1, "x", tx)
    vector.set(2, "y", tx)

    vector.pop(tx)
    assert stored_indices(vector, tx) == [1]
    assert vector.get(1, tx) == Value.of_text("x")


def test_pop_single_entry_at_zero(vector, tx):
    """Test popping index 0 leaves an empty vector."""
    vector.set(0, 7, tx)
    assert vector.pop(tx) == Value.of_int(7)
    assert stored_indices(vector, tx) == []
    assert vector.size(tx) == 0


def test_pop_empty_returns_empty_value(vector, tx):
    """Test pop on an empty vector returns the sentinel instead of raising."""
    assert vector.pop(tx) == Value.empty()
    assert vector.size(tx) == 0


def test_back_and_front(vector, tx):
    """Test reading both ends."""
    assert vector.back(tx) == Value.empty()
    with pytest.raises(OutOfRangeError):
        vector.front(tx)

    vector.push(1, tx)
    vector.push(2.5, tx)
    vector.push("three", tx)
    assert vector.front(tx) == Value.of_int(1)
    assert vector.back(tx) == Value.of_text("three")


def test_front_sparse(vector, tx):
    """Test front on a sparse first slot."""
    vector.set(2, "x", tx)
    assert vector.front(tx) == Value.empty()


def test_get_out_of_range(vector, tx):
    """Test reads past the end and negative reads."""
    vector.push("a", tx)
    with pytest.raises(OutOfRangeError):
        vector.get(1, tx)
    with pytest.raises(InvalidIndexError):
        vector.get(-1, tx)


def test_set_does_not_check_bounds(vector, tx):
    """Test set writes any int64 index, negative ones included."""
    vector.set(-1, "a", tx)
    assert tx.get(vector.subspace.encode(-1)) is not None

    vector.set(10, "b", tx)
    assert vector.size(tx) == 11
    assert vector.get(10, tx) == Value.of_text("b")

    # Only indices the key codec cannot represent are refused
    with pytest.raises(InvalidIndexError):
        vector.set(2**63, "c", tx)


def test_out_of_range_is_index_error(vector, tx):
    """Test callers can catch the builtin IndexError."""
    with pytest.raises(IndexError):
        vector.get(0, tx)


def test_set_overwrites(vector, tx):
    """Test set replaces a value and may change its kind."""
    vector.set(0, "a", tx)
    vector.set(0, 9, tx)
    assert vector.get(0, tx) == Value.of_int(9)


def test_stored_default_is_not_sparse(vector, tx):
    """Test an explicitly stored zero value is distinguishable from a hole."""
    vector.set(0, 0, tx)
    vector.set(2, "", tx)
    assert vector.get(0, tx) == Value.of_int(0)
    assert vector.get(1, tx) == Value.empty()
    assert vector.get(2, tx) == Value.of_text("")


def test_unsupported_value_leaves_no_effect(vector, tx):
    """Test encoding errors are raised before any write."""
    with pytest.raises(UnsupportedTypeError):
        vector.set(0, object(), tx)
    with pytest.raises(UnsupportedTypeError):
        vector.push([1, 2], tx)
    assert vector.size(tx) == 0


def test_custom_default(store):
    """Test a non-text default is materialized on pop."""
    subspace = store.transact(DirectoryLayer().create_or_open, "numbers")
    numbers = Vector(subspace, default=-1)
    assert numbers.default == Value.of_int(-1)

    with store.create_transaction() as tx:
        numbers.set(2, 5, tx)
        assert numbers.get(0, tx).or_default(numbers.default) == Value.of_int(-1)
        numbers.pop(tx)
        assert numbers.back(tx) == Value.of_int(-1)


def test_invalid_default(store):
    """Test an unencodable default is rejected up front."""
    subspace = store.transact(DirectoryLayer().create_or_open, "bad")
    with pytest.raises(UnsupportedTypeError):
        Vector(subspace, default=None)


def test_value_default_keeps_kind(store):
    """Test a FLOAT default given an int payload stays a float when stored."""
    subspace = store.transact(DirectoryLayer().create_or_open, "floats")
    floats = Vector(subspace, default=Value.of_float(0))
    assert floats.default.is_float

    with store.create_transaction() as tx:
        floats.set(2, Value.of_float(5), tx)
        assert floats.get(2, tx).is_float
        assert floats.pop(tx) == Value.of_float(5.0)
        last = floats.back(tx)
        assert last.is_float
        assert last == Value.of_float(0.0)

    with pytest.raises(UnsupportedTypeError):
        Vector(subspace, default=Value(Kind.TEXT, 5))


def test_resize_grow(vector, tx):
    """Test growing adds sparse slots and stores the new last slot."""
    vector.push("a", tx)
    vector.resize(4, tx)
    assert vector.size(tx) == 4
    assert stored_indices(vector, tx) == [0, 3]
    assert vector.get(2, tx) == Value.empty()
    assert vector.get(3, tx) == vector.default


def test_resize_shrink(vector, tx):
    """Test shrinking drops the tail and stores the new last slot."""
    vector.set(0, "a", tx)
    vector.set(6, "b", tx)
    vector.resize(3, tx)
    assert vector.size(tx) == 3
    assert stored_indices(vector, tx) == [0, 2]

    vector.resize(1, tx)
    assert stored_indices(vector, tx) == [0]
    assert vector.get(0, tx) == Value.of_text("a")

    vector.resize(0, tx)
    assert vector.empty(tx)


def test_resize_negative(vector, tx):
    """Test a negative length is rejected."""
    with pytest.raises(InvalidIndexError):
        vector.resize(-1, tx)


def test_vectors_are_isolated(store):
    """Test vectors in different directories do not see each other."""
    directory = DirectoryLayer()
    with store.create_transaction() as tx:
        left = Vector(directory.create_or_open(tx, "left"))
        right = Vector(directory.create_or_open(tx, "right"))
        left.push("l", tx)
        right.set(9, "r", tx)

    with store.create_transaction() as tx:
        assert left.size(tx) == 1
        assert right.size(tx) == 10
        left.clear(tx)
        assert right.size(tx) == 10


def test_state_persists_across_transactions(store, vector):
    """Test committed vector state is visible to later transactions."""
    store.transact(lambda tx: vector.push("a", tx))
    store.transact(lambda tx: vector.push("b", tx))

    assert store.transact(vector.size) == 2
    assert store.transact(vector.pop) == Value.of_text("b")
    assert store.transact(vector.size) == 1
