# Copyright (c) Microsoft. All rights reserved.

"""Template interpolation for wizard documents.

Templates use the ``{{ variable }}`` / ``{% if %}`` syntax and render in lenient mode:
unknown variables render as an empty string instead of failing.
"""

import json
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from jinja2 import ChainableUndefined, TemplateError, Undefined
from jinja2.sandbox import SandboxedEnvironment

from ._logging import get_logger
from .exceptions import TemplateRenderError

__all__ = ["parse_rendered", "render_template"]

logger = get_logger("wizard_engine.templates")


class _LenientUndefined(ChainableUndefined):
    """Undefined value that also survives comparisons and arithmetic.

    Ordering comparisons are false and arithmetic yields another undefined value,
    so ``{% if total > 100 %}`` takes the else branch when ``total`` is unset.
    """

    __slots__ = ()

    def _undefined_result(self, *args: Any, **kwargs: Any) -> "_LenientUndefined":
        return self

    def _false(self, other: Any) -> bool:
        return False

    __lt__ = __le__ = __gt__ = __ge__ = _false
    __add__ = __radd__ = __sub__ = __rsub__ = _undefined_result
    __mul__ = __rmul__ = __truediv__ = __rtruediv__ = _undefined_result
    __floordiv__ = __rfloordiv__ = __mod__ = __rmod__ = _undefined_result
    __pow__ = __rpow__ = __pos__ = __neg__ = _undefined_result


def _prettyjson(value: Any) -> str:
    if isinstance(value, Undefined):
        value = None
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _finalize(value: Any) -> Any:
    """Render interpolated values in JSON spelling so rendered text can be parsed back."""
    if value is None or isinstance(value, Undefined):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return value


def _create_environment() -> SandboxedEnvironment:
    env = SandboxedEnvironment(
        undefined=_LenientUndefined,
        finalize=_finalize,
        autoescape=False,
        keep_trailing_newline=True,
    )
    env.filters["prettyjson"] = _prettyjson
    return env


_environment = _create_environment()


@lru_cache(maxsize=256)
def _compile(template: str) -> Any:
    return _environment.from_string(template)


def render_template(template: str, data: Mapping[str, Any] | None = None) -> str:
    """Render a template against a flat data mapping.

    Args:
        template: Template source, e.g. ``"Hello {{ name }}"``.
        data: Variables available to the template.

    Returns:
        The rendered text. Missing variables render as empty strings.

    Raises:
        TemplateRenderError: If the template has a syntax error or rendering fails.

    Examples:
        .. code-block:: python

            render_template("Hello {{ name }}", {"name": "Ada"})  # "Hello Ada"
            render_template("{{ missing }}", {})  # ""
            render_template("{% if missing > 1 %}big{% endif %}", {})  # ""
            render_template("{{ items | prettyjson }}", {"items": [1]})  # "[\\n  1\\n]"
    """
    try:
        return _compile(template).render(dict(data or {}))
    except (TemplateError, TypeError, ValueError) as ex:
        raise TemplateRenderError(f"Failed to render template: {ex}", inner_exception=ex) from ex


def parse_rendered(text: str) -> Any:
    """Parse rendered text as JSON, falling back to the raw text."""
    try:
        return json.loads(text)
    except ValueError:
        return text
