# Copyright (c) Microsoft. All rights reserved.

"""Engine configuration.

Settings are plain ``TypedDict`` instances filled by ``load_settings()`` from, in order of
precedence: keyword overrides, ``<PREFIX><NAME>`` environment variables, a ``.env`` file
and finally the supplied defaults.

Usage::

    settings = load_engine_settings(remote_timeout=5.0)
    settings["wizards_dir"]  # "wizards" unless WIZARD_ENGINE_WIZARDS_DIR is set
"""

from __future__ import annotations

import os
import sys
import types
from collections.abc import Mapping, Sequence
from typing import Any, TypedDict, Union, get_args, get_origin, get_type_hints

from dotenv import load_dotenv

from .exceptions import SettingNotFoundError, WizardEngineException

if sys.version_info >= (3, 13):
    from typing import TypeVar  # type: ignore # pragma: no cover
else:
    from typing_extensions import TypeVar  # type: ignore # pragma: no cover

__all__ = ["DEFAULT_USER_AGENT", "ENV_PREFIX", "WizardEngineSettings", "load_engine_settings", "load_settings"]

SettingsT = TypeVar("SettingsT", default=dict[str, Any])

DEFAULT_USER_AGENT = "wizard-engine"
ENV_PREFIX = "WIZARD_ENGINE_"

_TRUE_STRINGS = ("true", "1", "yes", "on")


class WizardEngineSettings(TypedDict, total=False):
    """Settings for the wizard engine.

    Keys:
        remote_timeout: Seconds before a remote action call times out. ``None`` waits forever.
        wizards_dir: Directory read by ``FileWizardStore``.
        user_agent: User-Agent header of remote action calls.
    """

    remote_timeout: float | None
    wizards_dir: str | None
    user_agent: str | None


_ENGINE_DEFAULTS: dict[str, Any] = {
    "remote_timeout": None,
    "wizards_dir": "wizards",
    "user_agent": DEFAULT_USER_AGENT,
}


def _concrete_types(annotation: Any) -> tuple[type, ...]:
    """The non-None types an annotation admits, e.g. ``(float,)`` for ``float | None``."""
    if get_origin(annotation) in (Union, types.UnionType):
        return tuple(arg for arg in get_args(annotation) if isinstance(arg, type) and arg is not type(None))
    return (annotation,) if isinstance(annotation, type) else ()


def _from_environment(raw: str, annotation: Any) -> Any:
    """Convert an environment string to the first admitted type that accepts it."""
    for target in _concrete_types(annotation):
        if target is bool:
            return raw.strip().lower() in _TRUE_STRINGS
        if target in (int, float):
            try:
                return target(raw)
            except ValueError:
                continue
        if target is str:
            return raw
    return raw


def _validate_override(name: str, value: Any, annotation: Any) -> None:
    allowed = _concrete_types(annotation)
    if not allowed or isinstance(value, allowed):
        return
    # ints are accepted where floats are expected
    if float in allowed and isinstance(value, int) and not isinstance(value, bool):
        return
    expected = ", ".join(t.__name__ for t in allowed)
    raise WizardEngineException(
        f"Invalid type for setting '{name}': expected {expected}, got {type(value).__name__}."
    )


def load_settings(
    settings_type: type[SettingsT],
    *,
    env_prefix: str = "",
    env_file_path: str | None = None,
    env_file_encoding: str | None = None,
    defaults: Mapping[str, Any] | None = None,
    required_fields: Sequence[str] | None = None,
    **overrides: Any,
) -> SettingsT:
    """Fill a ``TypedDict`` settings type.

    Args:
        settings_type: The ``TypedDict`` describing the settings.
        env_prefix: Prefix of the environment variables, e.g. ``"WIZARD_ENGINE_"``.
        env_file_path: ``.env`` file to load (``".env"`` by default; skipped when missing).
            Variables already present in the environment are not overwritten.
        env_file_encoding: Encoding of the ``.env`` file, ``"utf-8"`` by default.
        defaults: Values used when no other source provides one.
        required_fields: Names that must resolve to a non-``None`` value.
        **overrides: Explicit values. ``None`` means "not given".

    Returns:
        The populated settings.

    Raises:
        SettingNotFoundError: If a required field is missing from every source.
        WizardEngineException: If an override has the wrong type.
    """
    env_path = env_file_path or ".env"
    if os.path.isfile(env_path):
        load_dotenv(dotenv_path=env_path, encoding=env_file_encoding or "utf-8")

    defaults = defaults or {}
    settings: dict[str, Any] = {}
    for name, annotation in get_type_hints(settings_type).items():
        override = overrides.get(name)
        if override is not None:
            _validate_override(name, override, annotation)
            settings[name] = override
            continue

        raw = os.getenv(f"{env_prefix}{name.upper()}")
        settings[name] = _from_environment(raw, annotation) if raw is not None else defaults.get(name)

    missing = [name for name in required_fields or () if settings.get(name) is None]
    if missing:
        name = missing[0]
        raise SettingNotFoundError(
            f"Required setting '{name}' was not provided. Pass '{name}' explicitly or set the "
            f"'{env_prefix}{name.upper()}' environment variable."
        )
    return settings  # type: ignore[return-value]


def load_engine_settings(
    *,
    env_file_path: str | None = None,
    **overrides: Any,
) -> WizardEngineSettings:
    """Load ``WizardEngineSettings`` using the ``WIZARD_ENGINE_`` environment prefix."""
    return load_settings(
        WizardEngineSettings,
        env_prefix=ENV_PREFIX,
        env_file_path=env_file_path,
        defaults=_ENGINE_DEFAULTS,
        **overrides,
    )
