"""
Tests for edge materialization: visibility filtering, grouping by ordered
pair, symmetric offsets and per-call identifiers.
"""

import pytest

from fsm_core.edges import edge_groups, group_offsets, materialize
from fsm_core.graph import Transition
from fsm_core.transitions import dedupe


class TestGroupOffsets:
    def test_single_edge_has_zero_offset(self):
        assert group_offsets(1) == [0.0]

    def test_pair(self):
        assert group_offsets(2) == pytest.approx([-0.25, 0.25])

    def test_five(self):
        assert group_offsets(5) == pytest.approx([-1.0, -0.5, 0.0, 0.5, 1.0])

    def test_custom_step(self):
        assert group_offsets(3, step=2.0) == pytest.approx([-2.0, 0.0, 2.0])


class TestMaterialize:
    def test_parallel_pair_after_dedupe(self):
        raw = [Transition("A", "B", "x"), Transition("A", "B", "x"), Transition("A", "B", "y")]
        edges = materialize({"A", "B"}, dedupe(raw))

        assert [(e.label, e.offset) for e in edges] == [("x", pytest.approx(-0.25)), ("y", pytest.approx(0.25))]

    def test_only_visible_endpoints(self, transitions):
        visible = {"A", "B"}
        edges = materialize(visible, dedupe(transitions))

        assert edges
        for e in edges:
            assert e.source in visible and e.target in visible
        assert {e.label for e in edges} == {"x", "y", "back"}

    def test_nothing_visible(self, transitions):
        assert materialize(set(), transitions) == []

    def test_direction_forms_separate_groups(self):
        edges = materialize({"A", "B"}, [Transition("A", "B", "go"), Transition("B", "A", "go")])
        assert [e.offset for e in edges] == [0.0, 0.0]

    def test_encounter_order_and_interleaving(self):
        ts = [
            Transition("A", "B", "1"),
            Transition("B", "C", "solo"),
            Transition("A", "B", "2"),
            Transition("A", "B", "3"),
        ]
        edges = materialize({"A", "B", "C"}, ts)

        assert [e.label for e in edges] == ["1", "solo", "2", "3"]
        assert [e.offset for e in edges] == pytest.approx([-0.5, 0.0, 0.0, 0.5])

    def test_sequential_ids_per_call(self, transitions):
        edges = materialize({"A", "B", "C", "D"}, dedupe(transitions))
        assert [e.id for e in edges] == [f"e-{i}" for i in range(len(edges))]

        fewer = materialize({"B", "C"}, dedupe(transitions))
        assert [e.id for e in fewer] == ["e-0"]
        assert fewer[0].label == "next"

    def test_custom_step(self):
        ts = [Transition("A", "B", str(i)) for i in range(3)]
        edges = materialize({"A", "B"}, ts, step=10.0)
        assert [e.offset for e in edges] == pytest.approx([-10.0, 0.0, 10.0])

    def test_edge_groups(self, transitions):
        groups = edge_groups(materialize({"A", "B", "C"}, dedupe(transitions)))
        assert list(groups) == [("A", "B"), ("B", "A"), ("B", "C")]
        assert [e.label for e in groups[("A", "B")]] == ["x", "y"]
