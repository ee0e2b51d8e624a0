# Copyright (c) Microsoft. All rights reserved.

"""The wizard engine: entry point for evaluating contexts, conditions, actions and blocks.

Handlers for each descriptor family live in ``_contexts``, ``_conditions``, ``_actions``
and ``_blocks``; the engine dispatches to them through the registries in ``_handlers``.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from ._handlers import (
    EngineContext,
    get_action_handler,
    get_block_handler,
    get_condition_evaluator,
    get_context_resolver,
    list_condition_evaluators,
)
from ._logging import get_logger
from ._models import EventType, Wizard
from ._remote import RemoteActionClient, RemoteActionResult
from ._settings import WizardEngineSettings
from ._state import ActionResult, EvaluationState
from .exceptions import NotFoundError, ResolutionError

__all__ = ["WizardEngine"]

logger = get_logger("wizard_engine.engine")

UNKNOWN_ACTION_TYPE = "UNKNOWN"


def _order_key(item: Mapping[str, Any]) -> float:
    order = item.get("order")
    if isinstance(order, bool) or not isinstance(order, (int, float)):
        return 0
    return order


def sort_by_order(items: Sequence[Mapping[str, Any]] | None) -> list[Mapping[str, Any]]:
    """Sort sibling actions or blocks by ``order``; ties keep their document position."""
    return sorted(items or [], key=_order_key)


class WizardEngine:
    """Interprets the declarative logic of one wizard document.

    The engine holds no session data: every call takes the caller-owned
    ``EvaluationState`` it should read and write. A single engine can therefore serve
    many sessions, as long as each session's triggers are serialized by the caller.

    Examples:
        .. code-block:: python

            from wizard_engine import EvaluationState, WizardEngine, load_wizard

            wizard = load_wizard(document)
            state = EvaluationState(current_step_values={"age": 17})

            async with WizardEngine(wizard) as engine:
                results = await engine.dispatch_event("profile", EventType.ON_CLICK, state, component_name="next")
    """

    def __init__(
        self,
        wizard: Wizard,
        *,
        remote_client: RemoteActionClient | None = None,
        settings: WizardEngineSettings | None = None,
    ):
        """Create a WizardEngine.

        Args:
            wizard: The validated wizard document.

        Keyword Args:
            remote_client: Client used for remote actions. One is created from ``settings``
                when omitted, and closed by ``close()``.
            settings: Engine settings, see ``load_engine_settings``.
        """
        self.wizard = wizard
        self._owns_remote_client = remote_client is None
        self.remote_client = remote_client or RemoteActionClient(settings)

    async def close(self) -> None:
        if self._owns_remote_client:
            await self.remote_client.close()

    async def __aenter__(self) -> "WizardEngine":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # region Contexts

    async def resolve_context(self, context: Mapping[str, Any], state: EvaluationState) -> Any:
        """Resolve a context descriptor to its runtime value.

        Nested ``contexts`` are resolved first, in order, and bound both as query
        bindings and as local contexts visible only to this resolution.

        Raises:
            ResolutionError: If the type is unknown, a required field is missing or a
                referenced name does not exist (``NotFoundError``).
        """
        if not isinstance(context, Mapping):
            raise ResolutionError(f"Context must be an object, got {type(context).__name__}")

        context_type = context.get("type")
        resolver = get_context_resolver(context_type) if isinstance(context_type, str) else None
        if resolver is None:
            raise ResolutionError(f"Unknown context type: {context_type}")

        bindings = await self.resolve_contexts(context.get("contexts"), state)
        scoped = state.with_local_scope(bindings) if bindings else state
        return await resolver(EngineContext(self, scoped), context, bindings)

    async def resolve_contexts(
        self, contexts: Sequence[Mapping[str, Any]] | None, state: EvaluationState
    ) -> dict[str, Any]:
        """Resolve a list of contexts into a mapping keyed by each context's ``key``.

        Later entries overwrite earlier ones with the same key.
        """
        resolved: dict[str, Any] = {}
        for context in contexts or []:
            key = context.get("key") if isinstance(context, Mapping) else None
            if not key:
                raise ResolutionError("Nested context requires a 'key'")
            resolved[key] = await self.resolve_context(context, state)
        return resolved

    # endregion

    # region Conditions

    async def evaluate_condition(self, condition: Any, state: EvaluationState) -> bool:
        """Evaluate a condition descriptor.

        Boolean literals evaluate to themselves. For objects, the first recognized
        predicate key wins; an object without one evaluates to False.

        Raises:
            ResolutionError: If the condition is neither a boolean nor an object, or a
                context it depends on cannot be resolved.
        """
        if isinstance(condition, bool):
            return condition
        if not isinstance(condition, Mapping):
            raise ResolutionError(f"Condition must be a boolean or an object, got {type(condition).__name__}")

        ctx = EngineContext(self, state)
        for key in list_condition_evaluators():
            operand = condition.get(key)
            if operand is None:
                continue
            evaluator = get_condition_evaluator(key)
            if evaluator is not None:
                return await evaluator(ctx, operand)

        logger.debug(f"Condition has no recognized key: {sorted(condition)}")
        return False

    # endregion

    # region Actions and blocks

    async def execute_action(self, action: Mapping[str, Any], state: EvaluationState) -> ActionResult:
        """Execute one action. Never raises; failures are reported on the result."""
        action_type = action.get("type") if isinstance(action, Mapping) else None
        handler = get_action_handler(action_type) if isinstance(action_type, str) else None
        if handler is None:
            logger.warning(f"Unknown action type: {action_type}")
            return ActionResult(UNKNOWN_ACTION_TYPE, error=f"Unknown action type: {action_type}")

        try:
            return await handler(EngineContext(self, state), action)
        except Exception as ex:
            logger.warning(f"Action {action_type} failed: {ex}")
            return ActionResult(action_type, error=str(ex))

    async def execute_actions(
        self, actions: Sequence[Mapping[str, Any]] | None, state: EvaluationState
    ) -> list[ActionResult]:
        """Execute sibling actions sequentially in ascending ``order``."""
        return [await self.execute_action(action, state) for action in sort_by_order(actions)]

    async def execute_block(self, block: Mapping[str, Any], state: EvaluationState) -> list[ActionResult]:
        """Execute one control-flow block and return the results of every action it ran.

        The block type is its ``type`` field, or CONDITIONAL when absent and ``conditions``
        is present. Blocks with no recognized type run their ``actions``, if any.
        """
        block_type = block.get("type")
        if block_type is None and "conditions" in block:
            block_type = "CONDITIONAL"

        handler = get_block_handler(block_type) if isinstance(block_type, str) else None
        if handler is None:
            return await self.execute_actions(block.get("actions"), state)
        return await handler(EngineContext(self, state), block)

    async def execute_blocks(
        self, blocks: Sequence[Mapping[str, Any]] | None, state: EvaluationState
    ) -> list[ActionResult]:
        """Execute sibling blocks in ascending ``order``, concatenating their results."""
        results: list[ActionResult] = []
        for block in sort_by_order(blocks):
            results.extend(await self.execute_block(block, state))
        return results

    async def dispatch_event(
        self,
        step_name: str,
        event_type: EventType | str,
        state: EvaluationState,
        *,
        component_name: str | None = None,
    ) -> list[ActionResult]:
        """Run the blocks a step or one of its components declares for an event.

        Args:
            step_name: The step the event happened on.
            event_type: The event that fired.
            state: The session state.

        Keyword Args:
            component_name: The component that fired the event; the step itself when omitted.

        Returns:
            The action results; empty when nothing handles the event.

        Raises:
            NotFoundError: If the step or component does not exist.
        """
        step = self.wizard.get_step(step_name)
        if step is None:
            raise NotFoundError(f"Step '{step_name}' not found")

        events = step.events
        if component_name is not None:
            component = step.get_component(component_name)
            if component is None:
                raise NotFoundError(f"Component '{component_name}' not found in step '{step_name}'")
            events = component.events

        blocks = events.get(EventType(event_type), [])
        logger.debug(f"Dispatching {EventType(event_type).value} on {step_name}/{component_name or '-'}")
        return await self.execute_blocks(blocks, state)

    # endregion

    async def run_remote_action(self, name: str, contexts: Mapping[str, Any]) -> RemoteActionResult:
        """Invoke a declared remote action with a flat context mapping.

        Raises:
            NotFoundError: If the wizard declares no remote action with this name.
            RemoteActionError: If the request cannot be built or fails in transport.
        """
        action = self.wizard.get_remote_action(name)
        if action is None:
            raise NotFoundError(f"Remote action '{name}' not found")
        return await self.remote_client.run(action, contexts)
