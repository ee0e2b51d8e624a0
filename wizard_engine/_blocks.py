# Copyright (c) Microsoft. All rights reserved.

"""Block handlers.

This module implements handlers for:
- ACTIONS: Run a list of actions
- CONDITIONAL: Run block-level actions, then the ``then`` or ``else`` branch
- FOREACH: Run actions and nested blocks once per array item
- SCHEDULE_TASK: Run nested blocks (synchronously, see handle_schedule_task)
"""

from collections.abc import Mapping
from typing import Any

from ._handlers import EngineContext, block_handler
from ._logging import get_logger
from ._state import ActionResult
from .exceptions import ResolutionError

logger = get_logger("wizard_engine.blocks")


@block_handler("ACTIONS")
async def handle_actions(ctx: EngineContext, block: Mapping[str, Any]) -> list[ActionResult]:
    return await ctx.execute_actions(block.get("actions"))


@block_handler("CONDITIONAL")
async def handle_conditional(ctx: EngineContext, block: Mapping[str, Any]) -> list[ActionResult]:
    """Conditional branching.

    Block-level ``actions`` run whatever the outcome.

    Block schema:
        type: CONDITIONAL  # optional when `conditions` is present
        conditions: {...}  # absent means true
        actions: [...]
        then: [blocks]
        else: [blocks]
    """
    conditions = block.get("conditions")
    passed = True if conditions is None else await ctx.evaluate(conditions)
    logger.debug(f"CONDITIONAL: conditions evaluated to {passed}")

    results = await ctx.execute_actions(block.get("actions"))
    branch = block.get("then") if passed else block.get("else")
    results.extend(await ctx.execute_blocks(branch))
    return results


@block_handler("FOREACH")
async def handle_foreach(ctx: EngineContext, block: Mapping[str, Any]) -> list[ActionResult]:
    """Iterate over an array, running the block's actions then nested blocks per item.

    Block schema:
        type: FOREACH
        name: loopName  # addressed by FOREACH contexts
        context: {...}  # must resolve to an array; anything else iterates nothing
        actions: [...]
        blocks: [...]
    """
    name = block.get("name")
    context = block.get("context")
    if not name or context is None:
        raise ResolutionError("FOREACH block requires 'name' and 'context'")

    array = await ctx.resolve(context)
    if not isinstance(array, list):
        logger.debug(f"FOREACH '{name}': source is {type(array).__name__}, not a list; skipping")
        array = []

    results: list[ActionResult] = []
    for index, item in enumerate(array):
        with ctx.state.loop_frame(name, index, item, array):
            results.extend(await ctx.execute_actions(block.get("actions")))
            results.extend(await ctx.execute_blocks(block.get("blocks")))
    return results


@block_handler("SCHEDULE_TASK")
async def handle_schedule_task(ctx: EngineContext, block: Mapping[str, Any]) -> list[ActionResult]:
    """Run nested blocks immediately.

    ``delays`` is carried in the document but not honored: there is no deferred execution
    or task cancellation yet.
    """
    if block.get("delays"):
        logger.debug(f"SCHEDULE_TASK: ignoring delays {block.get('delays')!r}")
    return await ctx.execute_blocks(block.get("blocks"))
