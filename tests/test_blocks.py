# Copyright (c) Microsoft. All rights reserved.

"""Tests for block execution and event dispatch."""

import pytest

from wizard_engine import EvaluationState, EventType, NotFoundError, ResolutionError, list_block_handlers


def _log(message: str, order: int = 0) -> dict:
    return {"type": "CONSOLE_LOG", "message": message, "order": order}


def _messages(results) -> list:
    return [result.payload["message"] for result in results]


class TestOrdering:
    """Tests for sibling ordering."""

    def test_block_types_registered(self):
        assert set(list_block_handlers()) == {"ACTIONS", "CONDITIONAL", "FOREACH", "SCHEDULE_TASK"}

    @pytest.mark.asyncio
    async def test_actions_run_in_order(self, engine, state):
        block = {"type": "ACTIONS", "actions": [_log("c", 3), _log("a", 1), _log("b", 2)]}
        assert _messages(await engine.execute_block(block, state)) == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_blocks_run_in_order(self, engine, state):
        blocks = [
            {"order": 2, "actions": [_log("second")]},
            {"order": 1, "actions": [_log("first")]},
        ]
        assert _messages(await engine.execute_blocks(blocks, state)) == ["first", "second"]

    @pytest.mark.asyncio
    async def test_ties_keep_document_order(self, engine, state):
        block = {"type": "ACTIONS", "actions": [_log("x", 1), _log("y", 1), {"type": "CONSOLE_LOG", "message": "z"}]}
        assert _messages(await engine.execute_block(block, state)) == ["z", "x", "y"]

    @pytest.mark.asyncio
    async def test_empty_and_typeless_blocks(self, engine, state):
        assert await engine.execute_block({}, state) == []
        assert _messages(await engine.execute_block({"actions": [_log("bare")]}, state)) == ["bare"]
        assert _messages(await engine.execute_block({"type": "FUTURE", "actions": [_log("f")]}, state)) == ["f"]


class TestConditionalBlocks:
    """Tests for CONDITIONAL blocks."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("conditions", "branch"), [(True, "then"), (False, "else")])
    async def test_exactly_one_branch_runs(self, engine, state, conditions, branch):
        block = {
            "conditions": conditions,
            "actions": [_log("always")],
            "then": [{"actions": [_log("then")]}],
            "else": [{"actions": [_log("else")]}],
        }
        assert _messages(await engine.execute_block(block, state)) == ["always", branch]

    @pytest.mark.asyncio
    async def test_absent_conditions_mean_true(self, engine, state):
        block = {"type": "CONDITIONAL", "then": [{"actions": [_log("then")]}]}
        assert _messages(await engine.execute_block(block, state)) == ["then"]

    @pytest.mark.asyncio
    async def test_missing_branch_produces_nothing(self, engine, state):
        assert await engine.execute_block({"conditions": False, "then": [{"actions": [_log("then")]}]}, state) == []

    @pytest.mark.asyncio
    async def test_condition_errors_propagate(self, engine, state):
        with pytest.raises(ResolutionError):
            await engine.execute_block({"conditions": {"context": {"type": "GROUP_INDEX"}}}, state)

    @pytest.mark.asyncio
    async def test_local_context_visible_to_nested_condition(self, engine, state):
        block = {
            "type": "ACTIONS",
            "actions": [{"type": "SET_LOCAL_CONTEXT", "contextName": "ready", "value": True}],
        }
        nested = {
            "order": 1,
            "conditions": {"context": {"type": "LOCAL_CONTEXT", "key": "ready"}},
            "then": [{"actions": [_log("ready")]}],
        }
        results = await engine.execute_blocks([block, nested], state)
        assert [result.type for result in results] == ["SET_LOCAL_CONTEXT", "CONSOLE_LOG"]


class TestForEachBlocks:
    """Tests for FOREACH blocks."""

    @pytest.mark.asyncio
    async def test_iterates_items(self, engine):
        state = EvaluationState(current_step_values={"rows": [{"n": "a"}, {"n": "b"}]})
        block = {
            "type": "FOREACH",
            "name": "rows",
            "context": {"type": "CURRENT_STEP_VALUES", "fieldName": "rows"},
            "actions": [
                {
                    "type": "CONSOLE_LOG",
                    "message": "{{ row.index }}:{{ row.item.n }}",
                    "contexts": [{"key": "row", "type": "FOREACH", "forEachName": "rows"}],
                }
            ],
        }
        assert _messages(await engine.execute_block(block, state)) == ["0:a", "1:b"]
        assert state.foreach_stack == []

    @pytest.mark.asyncio
    async def test_frames_balanced_when_actions_fail(self, engine, state):
        block = {
            "type": "FOREACH",
            "name": "rows",
            "context": {"type": "VALUE", "value": [1, 2, 3]},
            "actions": [{"type": "SET_VALUE"}],
        }
        results = await engine.execute_block(block, state)
        assert len(results) == 3
        assert all(result.error for result in results)
        assert state.foreach_stack == []

    @pytest.mark.asyncio
    async def test_nested_loops_are_lifo(self, engine, state):
        block = {
            "type": "FOREACH",
            "name": "outer",
            "context": {"type": "VALUE", "value": ["a", "b"]},
            "blocks": [
                {
                    "type": "FOREACH",
                    "name": "inner",
                    "context": {"type": "VALUE", "value": [1, 2]},
                    "actions": [
                        {
                            "type": "CONSOLE_LOG",
                            "message": "{{ o }}{{ i }}",
                            "contexts": [
                                {"key": "o", "type": "FOREACH", "forEachName": "outer", "expression": "item"},
                                {"key": "i", "type": "FOREACH", "forEachName": "inner", "expression": "item"},
                            ],
                        }
                    ],
                }
            ],
        }
        assert _messages(await engine.execute_block(block, state)) == ["a1", "a2", "b1", "b2"]
        assert state.foreach_stack == []

    @pytest.mark.asyncio
    async def test_non_list_iterates_nothing(self, engine, state):
        block = {"type": "FOREACH", "name": "rows", "context": {"type": "VALUE", "value": "abc"}, "actions": [_log("x")]}
        assert await engine.execute_block(block, state) == []

    @pytest.mark.asyncio
    async def test_requires_name_and_context(self, engine, state):
        with pytest.raises(ResolutionError):
            await engine.execute_block({"type": "FOREACH", "context": {"type": "VALUE", "value": []}}, state)
        with pytest.raises(ResolutionError):
            await engine.execute_block({"type": "FOREACH", "name": "rows"}, state)


class TestScheduleTask:
    """Tests for SCHEDULE_TASK blocks."""

    @pytest.mark.asyncio
    async def test_runs_nested_blocks_immediately(self, engine, state):
        block = {
            "type": "SCHEDULE_TASK",
            "delays": [1000],
            "blocks": [{"order": 1, "actions": [_log("later")]}, {"order": 0, "actions": [_log("sooner")]}],
        }
        assert _messages(await engine.execute_block(block, state)) == ["sooner", "later"]


class TestSoftFailureIsolation:
    """A failing action does not stop its siblings."""

    @pytest.mark.asyncio
    async def test_failure_then_success(self, engine, state):
        block = {
            "type": "ACTIONS",
            "actions": [
                {"type": "ADD_ERROR", "order": 0},
                {"type": "GO_TO_STEP", "order": 1, "stepName": "B"},
            ],
        }
        results = await engine.execute_block(block, state)
        assert [result.type for result in results] == ["ADD_ERROR", "GO_TO_STEP"]
        assert results[0].error
        assert results[1].ok
        assert results[1].payload == {"stepName": "B"}

    @pytest.mark.asyncio
    async def test_unknown_action_does_not_stop_block(self, engine, state):
        block = {"type": "ACTIONS", "actions": [{"type": "NOPE"}, _log("after", 1)]}
        results = await engine.execute_block(block, state)
        assert results[0].type == "UNKNOWN"
        assert results[1].payload == {"message": "after"}


class TestDispatchEvent:
    """End-to-end tests through dispatch_event."""

    @pytest.mark.asyncio
    async def test_empty_name_adds_error(self, engine):
        state = EvaluationState(current_step_values={})
        results = await engine.dispatch_event("A", EventType.ON_CLICK, state, component_name="next")
        assert [result.type for result in results] == ["ADD_ERROR"]
        assert results[0].payload == {"fieldName": "name", "errorMessage": "Validation error"}

    @pytest.mark.asyncio
    async def test_filled_name_saves_and_navigates(self, engine):
        state = EvaluationState(current_step_values={"name": "x"})
        results = await engine.dispatch_event("A", "ON_CLICK", state, component_name="next")
        assert [result.type for result in results] == ["SAVE_STEP_VALUES", "GO_TO_STEP"]
        assert results[0].payload == {"values": {"name": "x"}}
        assert results[1].payload == {"stepName": "B"}

    @pytest.mark.asyncio
    async def test_step_event(self, engine, state):
        results = await engine.dispatch_event("A", EventType.ON_MOUNTED, state)
        assert [result.type for result in results] == ["INIT_STEP_VALUES"]

    @pytest.mark.asyncio
    async def test_undeclared_event(self, engine, state):
        assert await engine.dispatch_event("B", EventType.ON_BLUR, state) == []

    @pytest.mark.asyncio
    async def test_unknown_step_or_component(self, engine, state):
        with pytest.raises(NotFoundError):
            await engine.dispatch_event("Z", EventType.ON_CLICK, state)
        with pytest.raises(NotFoundError):
            await engine.dispatch_event("A", EventType.ON_CLICK, state, component_name="missing")
