# Copyright (c) Microsoft. All rights reserved.

"""Condition evaluators.

An object-valued condition carries one predicate key. Keys are probed in the order
they are registered below:
- isEmpty, matchesRegex: Tests on a single resolved value
- equals, lessThan, moreThan: Comparisons
- and, or, not: Boolean combinators
- remote: Outcome of a remote action call
- context: Generic truthiness of a resolved context
"""

import math
import re
from collections.abc import Mapping
from typing import Any

from ._handlers import EngineContext, condition_evaluator
from ._logging import get_logger
from ._query import evaluate_query
from .exceptions import NotFoundError, ResolutionError

logger = get_logger("wizard_engine.conditions")


def is_empty_value(value: Any) -> bool:
    """True for None, empty strings, empty lists and empty mappings."""
    if value is None or value == "":
        return True
    if isinstance(value, (list, tuple, Mapping)) and len(value) == 0:
        return True
    return False


def to_number(value: Any) -> float:
    """Coerce a value to a number the way the document language does.

    Booleans become 1/0, numeric strings are parsed (blank strings are 0) and
    everything else, including None, becomes NaN.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def strict_equals(left: Any, right: Any) -> bool:
    """Type-and-value equality; no coercion between booleans, numbers and strings."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def is_truthy(value: Any) -> bool:
    """Truthiness where empty lists and mappings count as true and NaN as false."""
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    if isinstance(value, (list, tuple, Mapping)):
        return True
    return bool(value)


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_context(value: Any) -> bool:
    return isinstance(value, Mapping) and "type" in value


async def _resolve_subject(ctx: EngineContext, operand: Mapping[str, Any]) -> tuple[bool, Any]:
    """Resolve the value tested by isEmpty / matchesRegex: context first, then path."""
    if operand.get("context") is not None:
        return True, await ctx.resolve(operand["context"])
    if operand.get("path"):
        return True, evaluate_query(operand["path"], ctx.state.current_step_values)
    return False, None


async def _resolve_operand(ctx: EngineContext, value: Any) -> Any:
    if _is_context(value):
        return await ctx.resolve(value)
    return value


@condition_evaluator("isEmpty")
async def evaluate_is_empty(ctx: EngineContext, operand: Mapping[str, Any]) -> bool:
    """Condition schema:
    isEmpty:
        context: {...}  # preferred
        path: query over current step values
    """
    found, value = await _resolve_subject(ctx, operand)
    if not found:
        return True
    return is_empty_value(value)


@condition_evaluator("matchesRegex")
async def evaluate_matches_regex(ctx: EngineContext, operand: Mapping[str, Any]) -> bool:
    found, value = await _resolve_subject(ctx, operand)
    if not found:
        return False
    pattern = operand.get("value") or ""
    try:
        compiled = re.compile(pattern)
    except re.error as ex:
        raise ResolutionError(f"Invalid regular expression '{pattern}': {ex}", inner_exception=ex) from ex
    text = "" if value is None else _stringify(value)
    return compiled.search(text) is not None


@condition_evaluator("equals")
async def evaluate_equals(ctx: EngineContext, operand: Mapping[str, Any]) -> bool:
    """Strict equality. The left side only comes from ``context``; there is no literal fallback."""
    left = await ctx.resolve(operand["context"]) if operand.get("context") is not None else None
    right = await _resolve_operand(ctx, operand.get("value"))
    return strict_equals(left, right)


async def _compare_operands(ctx: EngineContext, operand: Mapping[str, Any]) -> tuple[float, float]:
    left = await ctx.resolve(operand["context"]) if operand.get("context") is not None else 0
    right = await _resolve_operand(ctx, operand.get("value"))
    return to_number(left), to_number(right)


@condition_evaluator("lessThan")
async def evaluate_less_than(ctx: EngineContext, operand: Mapping[str, Any]) -> bool:
    left, right = await _compare_operands(ctx, operand)
    return left < right


@condition_evaluator("moreThan")
async def evaluate_more_than(ctx: EngineContext, operand: Mapping[str, Any]) -> bool:
    left, right = await _compare_operands(ctx, operand)
    return left > right


@condition_evaluator("and")
async def evaluate_and(ctx: EngineContext, operand: list[Any]) -> bool:
    for condition in operand:
        if not await ctx.evaluate(condition):
            return False
    return True


@condition_evaluator("or")
async def evaluate_or(ctx: EngineContext, operand: list[Any]) -> bool:
    for condition in operand:
        if await ctx.evaluate(condition):
            return True
    return False


@condition_evaluator("not")
async def evaluate_not(ctx: EngineContext, operand: Any) -> bool:
    return not await ctx.evaluate(operand)


@condition_evaluator("remote")
async def evaluate_remote(ctx: EngineContext, operand: Mapping[str, Any]) -> bool:
    """True when the remote call succeeds and its reduced result is truthy.

    Condition schema:
        remote:
            name: remoteActionName
            contexts: [...]  # or `context`
    """
    name = operand.get("name")
    if not name or ctx.wizard.get_remote_action(name) is None:
        raise NotFoundError(f"Remote action '{name}' not found")

    contexts = operand.get("context") or operand.get("contexts") or []
    resolved = await ctx.resolve_all(contexts)
    merged = {**ctx.state.current_step_values, **resolved}
    result = await ctx.engine.run_remote_action(name, merged)
    logger.debug(f"Remote condition '{name}': ok={result.ok} status={result.status}")
    return result.ok and is_truthy(result.result)


@condition_evaluator("context")
async def evaluate_context(ctx: EngineContext, operand: Mapping[str, Any]) -> bool:
    return is_truthy(await ctx.resolve(operand))
