# Copyright (c) Microsoft. All rights reserved.

"""Action handlers.

This module implements handlers for the action vocabulary:
- Navigation and lifecycle: GO_TO_STEP, SAVE_STEP_VALUES, INIT_STEP_VALUES, FINISH_WIZARD, CONFIRM_LEAVE_PAGE
- Component updates: UPDATE_COMPONENT, SET_VALUE, REMOTE_UPDATE_COMPONENT
- Field errors: ADD_ERROR, CLEAR_ERRORS
- Repeatable groups: ADD_GROUP, REMOVE_GROUP
- Devices and tasks: TAKE_PHOTO, KILL_TASK
- Diagnostics: CONSOLE_LOG
- Local state: SET_LOCAL_CONTEXT

Handlers resolve their inputs, validate required fields and return a payload for the
caller to apply. Only SET_LOCAL_CONTEXT mutates the evaluation state, because later
sibling actions and conditions must observe the new binding immediately.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from ._handlers import EngineContext, action_handler
from ._logging import get_logger
from ._state import ActionResult
from ._templates import render_template
from .exceptions import NotFoundError, ResolutionError

logger = get_logger("wizard_engine.actions")

DEFAULT_ERROR_MESSAGE = "Validation error"


def _require(action: Mapping[str, Any], field: str) -> Any:
    value = action.get(field)
    if value is None or value == "":
        raise ResolutionError(f"{field} required for {action.get('type')}")
    return value


async def _render_with_contexts(ctx: EngineContext, text: str, contexts: Sequence[Mapping[str, Any]] | None) -> str:
    """Render ``text`` against the given contexts; returned unchanged when there are none."""
    if not contexts:
        return text
    return render_template(text, await ctx.resolve_all(contexts))


async def _resolve_value(ctx: EngineContext, action: Mapping[str, Any]) -> Any:
    """Value from the ``context`` descriptor, falling back to the literal ``value``."""
    if action.get("context") is not None:
        return await ctx.resolve(action["context"])
    return action.get("value")


@action_handler("GO_TO_STEP")
async def handle_go_to_step(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    """Request navigation to another step.

    Action schema:
        type: GO_TO_STEP
        stepName: literal step name or a context resolving to one
    """
    step_name = action.get("stepName")
    if isinstance(step_name, str) and step_name:
        target = step_name
    elif isinstance(step_name, Mapping):
        resolved = await ctx.resolve(step_name)
        target = "" if resolved is None else str(resolved)
    else:
        raise ResolutionError("stepName is required for GO_TO_STEP")
    return ActionResult("GO_TO_STEP", payload={"stepName": target})


@action_handler("SAVE_STEP_VALUES")
async def handle_save_step_values(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    return ActionResult("SAVE_STEP_VALUES", payload={"values": dict(ctx.state.current_step_values)})


@action_handler("INIT_STEP_VALUES")
async def handle_init_step_values(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    return ActionResult("INIT_STEP_VALUES")


@action_handler("FINISH_WIZARD")
async def handle_finish_wizard(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    return ActionResult("FINISH_WIZARD", payload={"allValues": dict(ctx.state.all_step_values)})


@action_handler("UPDATE_COMPONENT")
async def handle_update_component(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    """Set a property on a (possibly dynamically named) component.

    Action schema:
        type: UPDATE_COMPONENT
        targetName: component name, may be a template, e.g. "row_{{ i }}"
        targetContexts: [...]  # bindings for the targetName template
        targetProp: property name
        context: {...}  # or a literal `value`
    """
    target_name = _require(action, "targetName")
    target_prop = _require(action, "targetProp")
    target_name = await _render_with_contexts(ctx, target_name, action.get("targetContexts"))
    value = await _resolve_value(ctx, action)
    return ActionResult(
        "UPDATE_COMPONENT",
        payload={"targetName": target_name, "targetProp": target_prop, "value": value},
    )


@action_handler("SET_VALUE")
async def handle_set_value(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    target_name = _require(action, "targetName")
    target_name = await _render_with_contexts(ctx, target_name, action.get("targetContexts"))
    value = await _resolve_value(ctx, action)
    return ActionResult("SET_VALUE", payload={"targetName": target_name, "value": value})


@action_handler("ADD_ERROR")
async def handle_add_error(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    """Attach a validation error to a field.

    Action schema:
        type: ADD_ERROR
        fieldName: field name, may be a template rendered with fieldContexts
        fieldContexts: [...]
        errorMessage: message template rendered with contexts  # default "Validation error"
        contexts: [...]
    """
    field_name = _require(action, "fieldName")
    field_name = await _render_with_contexts(ctx, field_name, action.get("fieldContexts"))
    error_message = action.get("errorMessage") or DEFAULT_ERROR_MESSAGE
    error_message = await _render_with_contexts(ctx, error_message, action.get("contexts"))
    return ActionResult("ADD_ERROR", payload={"fieldName": field_name, "errorMessage": error_message})


@action_handler("CLEAR_ERRORS")
async def handle_clear_errors(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    field_name = _require(action, "fieldName")
    field_name = await _render_with_contexts(ctx, field_name, action.get("fieldContexts"))
    return ActionResult("CLEAR_ERRORS", payload={"fieldName": field_name})


@action_handler("CONSOLE_LOG")
async def handle_console_log(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    message = await _render_with_contexts(ctx, action.get("message") or "", action.get("contexts"))
    logger.info(f"[WIZARD LOG] {message}")
    return ActionResult("CONSOLE_LOG", payload={"message": message})


@action_handler("REMOTE_UPDATE_COMPONENT")
async def handle_remote_update_component(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    """Validate a remote-backed component update and echo its addressing.

    The remote call itself is performed by the caller.
    """
    target_name = _require(action, "targetName")
    target_prop = _require(action, "targetProp")
    action_name = _require(action, "name")
    if ctx.wizard.get_remote_action(action_name) is None:
        raise NotFoundError(f"Remote action '{action_name}' not found")
    return ActionResult(
        "REMOTE_UPDATE_COMPONENT",
        payload={"targetName": target_name, "targetProp": target_prop, "actionName": action_name},
    )


@action_handler("ADD_GROUP")
async def handle_add_group(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    return ActionResult("ADD_GROUP", payload={"groupName": _require(action, "groupName")})


@action_handler("REMOVE_GROUP")
async def handle_remove_group(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    group_name = _require(action, "groupName")
    group_index = await ctx.resolve(action["groupIndex"]) if action.get("groupIndex") is not None else None
    return ActionResult("REMOVE_GROUP", payload={"groupName": group_name, "groupIndex": group_index})


@action_handler("TAKE_PHOTO")
async def handle_take_photo(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    return ActionResult("TAKE_PHOTO", payload={"fieldName": _require(action, "fieldName")})


@action_handler("KILL_TASK")
async def handle_kill_task(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    return ActionResult("KILL_TASK", payload={"taskName": _require(action, "name")})


@action_handler("SET_LOCAL_CONTEXT")
async def handle_set_local_context(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    """Bind a local context value visible to every later action and condition.

    Action schema:
        type: SET_LOCAL_CONTEXT
        contextName: binding name
        context: {...}  # or a literal `value`
    """
    context_name = _require(action, "contextName")
    value = await _resolve_value(ctx, action)
    ctx.state.local_contexts[context_name] = value
    logger.debug(f"SET_LOCAL_CONTEXT: {context_name} = {value!r}")
    return ActionResult("SET_LOCAL_CONTEXT", payload={"contextName": context_name, "value": value})


@action_handler("CONFIRM_LEAVE_PAGE")
async def handle_confirm_leave_page(ctx: EngineContext, action: Mapping[str, Any]) -> ActionResult:
    return ActionResult("CONFIRM_LEAVE_PAGE")
