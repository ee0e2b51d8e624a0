# Copyright (c) Microsoft. All rights reserved.

"""Structured query evaluation over JSON values.

Queries are JMESPath expressions. Named bindings supplied by nested contexts are
available through the ``var('name')`` function, e.g. ``items[?id == var('selected')]``.
"""

from collections.abc import Mapping
from functools import lru_cache
from typing import Any

import jmespath
from jmespath import exceptions as jmespath_exceptions
from jmespath import functions

from ._logging import get_logger
from .exceptions import QueryError

__all__ = ["evaluate_query"]

logger = get_logger("wizard_engine.query")


class _BindingFunctions(functions.Functions):
    """JMESPath functions with access to the evaluation's named bindings."""

    def __init__(self, bindings: Mapping[str, Any]) -> None:
        super().__init__()
        self._bindings = bindings

    @functions.signature({"types": ["string"]})
    def _func_var(self, name: str) -> Any:
        return self._bindings.get(name)


@lru_cache(maxsize=512)
def _compile(expression: str) -> Any:
    return jmespath.compile(expression)


def evaluate_query(expression: str, data: Any, bindings: Mapping[str, Any] | None = None) -> Any:
    """Evaluate a query expression against a JSON value.

    Args:
        expression: The JMESPath expression, e.g. ``"address.city"``.
        data: The JSON value queried.
        bindings: Extra named values, readable with ``var('name')``.

    Returns:
        The selected JSON value; ``None`` when the path does not exist.

    Raises:
        QueryError: If the expression is malformed or fails to evaluate.
    """
    try:
        compiled = _compile(expression)
    except jmespath_exceptions.JMESPathError as ex:
        raise QueryError(f"Invalid query expression '{expression}': {ex}", inner_exception=ex) from ex

    options = jmespath.Options(custom_functions=_BindingFunctions(bindings or {}))
    try:
        return compiled.search(data, options=options)
    except jmespath_exceptions.JMESPathError as ex:
        raise QueryError(f"Query '{expression}' failed: {ex}", inner_exception=ex) from ex
