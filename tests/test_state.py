# Copyright (c) Microsoft. All rights reserved.

"""Unit tests for EvaluationState."""

import pytest

from wizard_engine import ActionResult, EvaluationState


class TestEvaluationStateSerialization:
    """Tests for from_dict / to_dict."""

    def test_empty_initialization(self):
        state = EvaluationState()
        assert state.current_step_values == {}
        assert state.all_step_values == {}
        assert state.component_states == {}
        assert state.local_contexts == {}
        assert state.foreach_stack == []
        assert state.group_index_stack == []

    def test_from_dict_reads_wire_names(self):
        state = EvaluationState.from_dict({
            "currentStepValues": {"name": "Ada"},
            "allStepValues": {"A": {"name": "Ada"}},
            "componentStates": {"name": {"visible": True}},
            "localContexts": {"total": 3},
            "forEachStacks": [{"name": "rows", "index": 1, "item": "b", "array": ["a", "b"]}],
            "groupIndexStack": [0, 2],
        })
        assert state.current_step_values == {"name": "Ada"}
        assert state.all_step_values == {"A": {"name": "Ada"}}
        assert state.component_states["name"] == {"visible": True}
        assert state.local_contexts == {"total": 3}
        assert state.find_frame("rows").item == "b"
        assert state.current_group_index() == 2

    def test_from_none(self):
        assert EvaluationState.from_dict(None).to_dict()["currentStepValues"] == {}

    def test_to_dict_round_trip(self):
        wire = {
            "currentStepValues": {"a": 1},
            "allStepValues": {},
            "componentStates": {},
            "localContexts": {"k": "v"},
            "forEachStacks": [{"name": "rows", "index": 0, "item": 1, "array": [1]}],
            "groupIndexStack": [],
        }
        assert EvaluationState.from_dict(wire).to_dict() == wire


class TestLoopFrames:
    """Tests for the FOREACH frame stack."""

    def test_loop_frame_pushes_and_pops(self):
        state = EvaluationState()
        with state.loop_frame("rows", 0, "a", ["a"]) as frame:
            assert state.foreach_stack == [frame]
            assert state.find_frame("rows") is frame
        assert state.foreach_stack == []
        assert state.find_frame("rows") is None

    def test_loop_frame_pops_on_error(self):
        state = EvaluationState()
        with pytest.raises(RuntimeError), state.loop_frame("rows", 0, "a", ["a"]):
            raise RuntimeError("boom")
        assert state.foreach_stack == []

    def test_find_frame_returns_innermost(self):
        state = EvaluationState()
        with state.loop_frame("rows", 0, "outer", ["outer"]), state.loop_frame("rows", 3, "inner", ["inner"]):
            assert state.find_frame("rows").item == "inner"

    def test_current_group_index(self):
        state = EvaluationState(group_index_stack=[1, 4])
        assert state.current_group_index() == 4
        assert EvaluationState().current_group_index() is None


class TestLocalScope:
    """Tests for with_local_scope."""

    def test_scope_sees_parent_and_bindings(self):
        state = EvaluationState(local_contexts={"a": 1})
        scoped = state.with_local_scope({"b": 2})
        assert scoped.local_contexts == {"a": 1, "b": 2}

    def test_scope_does_not_leak(self):
        state = EvaluationState(local_contexts={"a": 1})
        scoped = state.with_local_scope({"a": 10, "b": 2})
        scoped.local_contexts["c"] = 3
        assert state.local_contexts == {"a": 1}

    def test_scope_shares_other_slices(self):
        state = EvaluationState(current_step_values={"x": 1})
        scoped = state.with_local_scope({})
        scoped.current_step_values["y"] = 2
        assert state.current_step_values == {"x": 1, "y": 2}
        assert scoped.foreach_stack is state.foreach_stack


class TestActionResult:
    """Tests for ActionResult."""

    def test_to_dict_omits_unset_fields(self):
        assert ActionResult("INIT_STEP_VALUES").to_dict() == {"type": "INIT_STEP_VALUES"}

    def test_error_result(self):
        result = ActionResult("SET_VALUE", error="targetName required for SET_VALUE")
        assert not result.ok
        assert result.to_dict() == {"type": "SET_VALUE", "error": "targetName required for SET_VALUE"}
