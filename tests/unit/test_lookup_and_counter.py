"""Tests for the bidirectional lookup table and the counter table."""

from nlp_feature_harness.utils.counter_table import CounterTable
from nlp_feature_harness.utils.lookup import BidirectionalLookupTable


def test_lookup_round_trip():
    table = BidirectionalLookupTable({"a": 0, "b": 1})
    table.put("c", 2)

    for key, value in [("a", 0), ("b", 1), ("c", 2)]:
        assert table.get(key) == value
        assert table.reverse_get(value) == key
    assert len(table) == 3


def test_lookup_contains_never_raises():
    table = BidirectionalLookupTable()
    assert not table.contains_key("missing")
    assert not table.reverse_contains_key(5)
    assert "missing" not in table


def test_lookup_overwrite_keeps_bijection():
    table = BidirectionalLookupTable({"a": 0, "b": 1})

    previous = table.put("a", 1)

    assert previous == 0
    assert table.get("a") == 1
    assert table.reverse_get(1) == "a"
    assert not table.contains_key("b")
    assert not table.reverse_contains_key(0)
    assert table.size() == 1


def test_counter_prune_and_index():
    counter = CounterTable()
    for key, times in {"a": 3, "b": 1, "c": 2}.items():
        for _ in range(times):
            counter.increment(key)

    removed = counter.prune_below(2)
    index = counter.build_index()

    assert removed == 1
    assert set(index) == {"a", "c"}
    assert set(index.values()) == {0, 1}


def test_counter_index_is_stable_for_fixed_state():
    counter = CounterTable()
    for key in ["x", "y", "x", "z"]:
        counter.increment(key)

    assert counter.build_index() == counter.build_index()


def test_counter_sorted_by_count():
    counter = CounterTable()
    for key in ["a", "a", "a", "b", "c", "c", "d"]:
        counter.increment(key)

    grouped = counter.sorted_by_count()

    assert list(grouped) == [1, 2, 3]
    assert sorted(grouped[1]) == ["b", "d"]
    assert grouped[2] == ["c"]
    assert grouped[3] == ["a"]
    assert counter.get("a") == 3
    assert counter.get("missing") == 0
