# Copyright (c) Microsoft. All rights reserved.

from importlib import metadata

from . import _actions, _blocks, _conditions, _contexts  # noqa: F401  # register handlers
from ._engine import WizardEngine
from ._handlers import (
    EngineContext,
    action_handler,
    block_handler,
    condition_evaluator,
    context_resolver,
    list_action_handlers,
    list_block_handlers,
    list_condition_evaluators,
    list_context_resolvers,
)
from ._logging import get_logger, setup_logging
from ._models import Component, ContentType, EventType, ExpressionKind, HttpMethod, RemoteAction, Step, Wizard, load_wizard
from ._query import evaluate_query
from ._remote import RemoteActionClient, RemoteActionResult
from ._settings import WizardEngineSettings, load_engine_settings, load_settings
from ._state import ActionResult, EvaluationState, ForEachFrame
from ._store import FileWizardStore, InMemoryWizardStore, WizardStore
from ._templates import render_template
from .exceptions import (
    DocumentNotFoundError,
    DocumentValidationError,
    NotFoundError,
    QueryError,
    RemoteActionError,
    ResolutionError,
    SettingNotFoundError,
    TemplateRenderError,
    WizardEngineException,
)

try:
    __version__ = metadata.version("wizard-engine")
except metadata.PackageNotFoundError:
    __version__ = "0.0.0"  # Fallback for development mode

__all__ = [
    "ActionResult",
    "Component",
    "ContentType",
    "DocumentNotFoundError",
    "DocumentValidationError",
    "EngineContext",
    "EvaluationState",
    "EventType",
    "ExpressionKind",
    "FileWizardStore",
    "ForEachFrame",
    "HttpMethod",
    "InMemoryWizardStore",
    "NotFoundError",
    "QueryError",
    "RemoteAction",
    "RemoteActionClient",
    "RemoteActionError",
    "RemoteActionResult",
    "ResolutionError",
    "SettingNotFoundError",
    "Step",
    "TemplateRenderError",
    "Wizard",
    "WizardEngine",
    "WizardEngineException",
    "WizardEngineSettings",
    "WizardStore",
    "__version__",
    "action_handler",
    "block_handler",
    "condition_evaluator",
    "context_resolver",
    "evaluate_query",
    "get_logger",
    "list_action_handlers",
    "list_block_handlers",
    "list_condition_evaluators",
    "list_context_resolvers",
    "load_engine_settings",
    "load_settings",
    "load_wizard",
    "render_template",
    "setup_logging",
]
