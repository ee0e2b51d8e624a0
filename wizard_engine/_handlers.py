# Copyright (c) Microsoft. All rights reserved.

"""Handler registries for the engine's descriptor families.

Contexts, conditions and actions are tagged mappings. Each tag has one handler,
registered with the matching decorator:

- ``@context_resolver("VALUE")`` for context ``type`` tags
- ``@condition_evaluator("isEmpty")`` for condition predicate keys
- ``@action_handler("GO_TO_STEP")`` for action ``type`` tags
- ``@block_handler("FOREACH")`` for block ``type`` tags
"""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from ._logging import get_logger
from ._state import ActionResult, EvaluationState

if TYPE_CHECKING:
    from ._engine import WizardEngine
    from ._models import Wizard

__all__ = [
    "ActionHandler",
    "BlockHandler",
    "ConditionEvaluator",
    "ContextResolver",
    "EngineContext",
    "action_handler",
    "block_handler",
    "condition_evaluator",
    "context_resolver",
    "get_action_handler",
    "get_block_handler",
    "get_condition_evaluator",
    "get_context_resolver",
    "list_action_handlers",
    "list_block_handlers",
    "list_condition_evaluators",
    "list_context_resolvers",
]

logger = get_logger("wizard_engine.handlers")


@dataclass
class EngineContext:
    """Context passed to every handler.

    Gives access to the evaluation state, the wizard document, and callbacks into
    the engine for nested resolution (sub-contexts, nested conditions).
    """

    engine: "WizardEngine"
    """The engine running the evaluation."""

    state: EvaluationState
    """The state visible to this evaluation (possibly a scoped view)."""

    @property
    def wizard(self) -> "Wizard":
        return self.engine.wizard

    async def resolve(self, context: Mapping[str, Any]) -> Any:
        """Resolve a nested context against this evaluation's state."""
        return await self.engine.resolve_context(context, self.state)

    async def resolve_all(self, contexts: Sequence[Mapping[str, Any]] | None) -> dict[str, Any]:
        """Resolve a list of contexts into a mapping keyed by each context's ``key``."""
        return await self.engine.resolve_contexts(contexts, self.state)

    async def evaluate(self, condition: Any) -> bool:
        """Evaluate a nested condition against this evaluation's state."""
        return await self.engine.evaluate_condition(condition, self.state)

    async def execute_actions(self, actions: Sequence[Mapping[str, Any]] | None) -> list[ActionResult]:
        """Execute sibling actions in ``order`` against this evaluation's state."""
        return await self.engine.execute_actions(actions, self.state)

    async def execute_blocks(self, blocks: Sequence[Mapping[str, Any]] | None) -> list[ActionResult]:
        """Execute sibling blocks in ``order`` against this evaluation's state."""
        return await self.engine.execute_blocks(blocks, self.state)


@runtime_checkable
class ContextResolver(Protocol):
    """Protocol for context resolvers.

    Receives the engine context, the context descriptor and the already resolved
    nested ``contexts`` bindings, and returns the runtime value.
    """

    def __call__(
        self,
        ctx: EngineContext,
        context: Mapping[str, Any],
        bindings: dict[str, Any],
    ) -> Awaitable[Any]: ...


@runtime_checkable
class ConditionEvaluator(Protocol):
    """Protocol for condition evaluators.

    Receives the engine context and the value stored under the predicate key.
    """

    def __call__(self, ctx: EngineContext, operand: Any) -> Awaitable[bool]: ...


@runtime_checkable
class ActionHandler(Protocol):
    """Protocol for action handlers.

    Action handlers may raise; the engine converts any exception into an error result.
    """

    def __call__(self, ctx: EngineContext, action: Mapping[str, Any]) -> Awaitable[ActionResult]: ...


@runtime_checkable
class BlockHandler(Protocol):
    """Protocol for block handlers.

    Returns the results of every action executed under the block, in execution order.
    """

    def __call__(self, ctx: EngineContext, block: Mapping[str, Any]) -> Awaitable[list[ActionResult]]: ...


# Global registries
_CONTEXT_RESOLVERS: dict[str, ContextResolver] = {}
_CONDITION_EVALUATORS: dict[str, ConditionEvaluator] = {}
_ACTION_HANDLERS: dict[str, ActionHandler] = {}
_BLOCK_HANDLERS: dict[str, BlockHandler] = {}


def context_resolver(*context_types: str) -> Callable[[ContextResolver], ContextResolver]:
    """Decorator to register a resolver for one or more context types.

    Example:
        @context_resolver("VALUE")
        async def resolve_value(ctx: EngineContext, context: Mapping[str, Any], bindings: dict[str, Any]) -> Any:
            return context.get("value")
    """

    def decorator(func: ContextResolver) -> ContextResolver:
        for context_type in context_types:
            _CONTEXT_RESOLVERS[context_type] = func
            logger.debug(f"Registered context resolver for '{context_type}'")
        return func

    return decorator


def condition_evaluator(key: str) -> Callable[[ConditionEvaluator], ConditionEvaluator]:
    """Decorator to register an evaluator for a condition predicate key.

    Predicates are probed in registration order.
    """

    def decorator(func: ConditionEvaluator) -> ConditionEvaluator:
        _CONDITION_EVALUATORS[key] = func
        logger.debug(f"Registered condition evaluator for '{key}'")
        return func

    return decorator


def action_handler(action_type: str) -> Callable[[ActionHandler], ActionHandler]:
    """Decorator to register an action handler for a specific action type.

    Example:
        @action_handler("TAKE_PHOTO")
        async def handle_take_photo(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
            return ActionResult("TAKE_PHOTO", payload={"fieldName": action["fieldName"]})
    """

    def decorator(func: ActionHandler) -> ActionHandler:
        _ACTION_HANDLERS[action_type] = func
        logger.debug(f"Registered action handler for '{action_type}'")
        return func

    return decorator


def get_context_resolver(context_type: str) -> ContextResolver | None:
    return _CONTEXT_RESOLVERS.get(context_type)


def get_condition_evaluator(key: str) -> ConditionEvaluator | None:
    return _CONDITION_EVALUATORS.get(key)


def get_action_handler(action_type: str) -> ActionHandler | None:
    """Get the registered handler for an action type.

    Args:
        action_type: The action type to look up

    Returns:
        The registered ActionHandler, or None if not found
    """
    return _ACTION_HANDLERS.get(action_type)


def list_context_resolvers() -> list[str]:
    return list(_CONTEXT_RESOLVERS.keys())


def list_condition_evaluators() -> list[str]:
    """List registered condition keys in probing order."""
    return list(_CONDITION_EVALUATORS.keys())


def list_action_handlers() -> list[str]:
    return list(_ACTION_HANDLERS.keys())


def block_handler(block_type: str) -> Callable[[BlockHandler], BlockHandler]:
    """Decorator to register a handler for a block type."""

    def decorator(func: BlockHandler) -> BlockHandler:
        _BLOCK_HANDLERS[block_type] = func
        logger.debug(f"Registered block handler for '{block_type}'")
        return func

    return decorator


def get_block_handler(block_type: str) -> BlockHandler | None:
    return _BLOCK_HANDLERS.get(block_type)


def list_block_handlers() -> list[str]:
    return list(_BLOCK_HANDLERS.keys())
