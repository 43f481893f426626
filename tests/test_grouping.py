# tests/test_grouping.py
"""Tests for group_by / tally / top_k."""

import pytest

from conftest import at, ev
from telelink.errors import ConfigurationError
from telelink.events import event_pair
from telelink.grouping import Tally, group_by, tally, top_k


class TestGroupBy:

    def test_groups_in_first_occurrence_order(self):
        events = [ev("B", "X", 0), ev("A", "X", 1), ev("B", "Y", 2)]
        groups = group_by(events, lambda e: e.subject)
        assert list(groups) == ["B", "A"]
        assert [e.counterpart for e in groups["B"]] == ["X", "Y"]

    def test_none_keys_left_out(self):
        events = [ev("A", None, 0), ev("A", "B", 1)]
        assert list(group_by(events, event_pair)) == [("A", "B")]

    def test_empty_input(self):
        assert group_by([], lambda e: e.subject) == {}


class TestTally:

    def test_count_total_and_bounds(self):
        events = [
            ev("A", "B", 30, measure=10),
            ev("B", "A", 0, measure=5),
            ev("A", "B", 10, measure=None),
            ev("A", "B", 20, measure=float("nan")),
            ev("A", "B", None, measure=7),
        ]
        result = tally(events, event_pair)
        assert result == {("A", "B"): Tally(count=5, total=22.0, first_seen=at(0), last_seen=at(30))}

    def test_untimed_only_group_has_no_bounds(self):
        result = tally([ev(minutes=None, measure=3)], lambda e: e.subject)
        assert result["A"] == Tally(count=1, total=3.0, first_seen=None, last_seen=None)

    def test_custom_measure_fn(self):
        events = [ev(measure=10), ev(measure=20)]
        result = tally(events, lambda e: e.subject, measure_fn=lambda e: 1)
        assert result["A"].total == 2.0

    def test_empty_input(self):
        assert tally([], lambda e: e.subject) == {}


class TestTopK:

    def _tallies(self):
        return {
            "c": Tally(3, 10.0, None, None),
            "a": Tally(3, 50.0, None, None),
            "b": Tally(5, 1.0, None, None),
            "d": Tally(1, 99.0, None, None),
        }

    def test_ranks_by_count_with_key_tie_break(self):
        assert [k for k, _ in top_k(self._tallies())] == ["b", "a", "c", "d"]

    def test_k_limits_result(self):
        assert [k for k, _ in top_k(self._tallies(), k=2)] == ["b", "a"]
        assert top_k(self._tallies(), k=0) == []

    def test_order_by_total(self):
        assert [k for k, _ in top_k(self._tallies(), order_by="total")] == ["d", "a", "c", "b"]

    def test_order_by_callable(self):
        ranked = top_k(self._tallies(), order_by=lambda t: -t.count)
        assert [k for k, _ in ranked] == ["d", "a", "c", "b"]

    def test_invalid_arguments(self):
        with pytest.raises(ConfigurationError):
            top_k(self._tallies(), k=-1)
        with pytest.raises(ConfigurationError):
            top_k(self._tallies(), order_by="median")

    def test_empty_input(self):
        assert top_k({}) == []
