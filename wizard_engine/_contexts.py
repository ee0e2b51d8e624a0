# Copyright (c) Microsoft. All rights reserved.

"""Context resolvers.

This module implements resolvers for every context type:
- VALUE: A literal value
- CURRENT_STEP_VALUES / ALL_STEP_VALUES / COMPONENT_VALUES: Slices of the session state
- TEMPLATE: A rendered template, parsed back to JSON when possible
- REMOTE_ACTION: The reduced result of a remote action call
- FOREACH: The active loop frame for a named FOREACH block
- GROUP_INDEX: The innermost repeatable group index
- LOCAL_CONTEXT (alias LOCAL): A local context binding
"""

from collections.abc import Mapping
from typing import Any

from ._handlers import EngineContext, context_resolver
from ._logging import get_logger
from ._query import evaluate_query
from ._templates import parse_rendered, render_template
from .exceptions import NotFoundError, ResolutionError

logger = get_logger("wizard_engine.contexts")


def _require(context: Mapping[str, Any], field: str) -> Any:
    value = context.get(field)
    if value is None or value == "":
        raise ResolutionError(f"{field} required for {context.get('type')} context")
    return value


def _query_or_value(expression: str | None, data: Any, bindings: Mapping[str, Any]) -> Any:
    if not expression:
        return data
    return evaluate_query(expression, data, bindings)


@context_resolver("VALUE")
async def resolve_value(ctx: EngineContext, context: Mapping[str, Any], bindings: dict[str, Any]) -> Any:
    """Return the literal ``value`` verbatim."""
    return context.get("value")


@context_resolver("CURRENT_STEP_VALUES")
async def resolve_current_step_values(
    ctx: EngineContext, context: Mapping[str, Any], bindings: dict[str, Any]
) -> Any:
    """Query the current step values.

    Context schema:
        type: CURRENT_STEP_VALUES
        expression: query  # optional, falls back to fieldName
        fieldName: name  # optional
        contexts: [...]  # optional bindings, readable with var('key')
    """
    expression = context.get("expression") or context.get("fieldName")
    return _query_or_value(expression, ctx.state.current_step_values, bindings)


@context_resolver("ALL_STEP_VALUES")
async def resolve_all_step_values(ctx: EngineContext, context: Mapping[str, Any], bindings: dict[str, Any]) -> Any:
    return _query_or_value(context.get("expression"), ctx.state.all_step_values, bindings)


@context_resolver("COMPONENT_VALUES")
async def resolve_component_values(ctx: EngineContext, context: Mapping[str, Any], bindings: dict[str, Any]) -> Any:
    component_name = _require(context, "componentName")
    component_state = ctx.state.component_states.get(component_name)
    return _query_or_value(context.get("expression"), component_state, bindings)


@context_resolver("TEMPLATE")
async def resolve_template(ctx: EngineContext, context: Mapping[str, Any], bindings: dict[str, Any]) -> Any:
    """Render a template against step values and nested contexts.

    Nested contexts take precedence over all-step values, which take precedence over
    current step values. The rendered text is parsed as JSON when possible so templates
    can yield numbers, booleans and objects.
    """
    template = _require(context, "template")
    data = {**ctx.state.current_step_values, **ctx.state.all_step_values, **bindings}
    return parse_rendered(render_template(template, data))


@context_resolver("REMOTE_ACTION")
async def resolve_remote_action(ctx: EngineContext, context: Mapping[str, Any], bindings: dict[str, Any]) -> Any:
    action_name = _require(context, "actionName")
    if ctx.wizard.get_remote_action(action_name) is None:
        raise NotFoundError(f"Remote action '{action_name}' not found")

    merged = {**ctx.state.current_step_values, **bindings}
    result = await ctx.engine.run_remote_action(action_name, merged)
    return result.result


@context_resolver("FOREACH")
async def resolve_foreach(ctx: EngineContext, context: Mapping[str, Any], bindings: dict[str, Any]) -> Any:
    """Read the innermost active loop frame with the given ``forEachName``."""
    loop_name = _require(context, "forEachName")
    frame = ctx.state.find_frame(loop_name)
    if frame is None:
        raise NotFoundError(f"ForEach '{loop_name}' not found in stack")

    expression = context.get("expression")
    if expression:
        return evaluate_query(expression, {"index": frame.index, "item": frame.item, "array": frame.array}, bindings)
    return frame.to_dict()


@context_resolver("GROUP_INDEX")
async def resolve_group_index(ctx: EngineContext, context: Mapping[str, Any], bindings: dict[str, Any]) -> Any:
    index = ctx.state.current_group_index()
    if index is None:
        raise ResolutionError("No group index in stack")
    return _query_or_value(context.get("expression"), index, bindings)


@context_resolver("LOCAL_CONTEXT", "LOCAL")
async def resolve_local_context(ctx: EngineContext, context: Mapping[str, Any], bindings: dict[str, Any]) -> Any:
    key = _require(context, "key")
    value = ctx.state.local_contexts.get(key)
    return _query_or_value(context.get("expression"), value, bindings)
