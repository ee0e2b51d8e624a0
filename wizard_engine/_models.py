# Copyright (c) Microsoft. All rights reserved.

"""Pydantic models for wizard documents.

Only the document skeleton is modelled here: the wizard, its steps, components and
remote actions. Contexts, conditions, actions and blocks stay plain mappings and are
interpreted by the engine handlers.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ._logging import get_logger
from .exceptions import DocumentValidationError

__all__ = [
    "NAME_PATTERN",
    "Component",
    "ContentType",
    "EventType",
    "ExpressionKind",
    "HttpMethod",
    "RemoteAction",
    "Step",
    "Wizard",
    "load_wizard",
]

logger = get_logger("wizard_engine.models")

NAME_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"

Descriptor = dict[str, Any]


class EventType(str, Enum):
    """UI events that can trigger block execution."""

    ON_CLICK = "ON_CLICK"
    ON_CHANGE = "ON_CHANGE"
    ON_MOUNTED = "ON_MOUNTED"
    ON_BLUR = "ON_BLUR"
    ON_FOCUS = "ON_FOCUS"
    RESTRICTION_FAILED = "RESTRICTION_FAILED"
    ON_WINDOW_BEFORE_UNLOAD = "ON_WINDOW_BEFORE_UNLOAD"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


class ContentType(str, Enum):
    """Encoding of a remote action request body."""

    JSON = "JSON"
    URL_ENCODING = "URL_ENCODING"
    FORM_DATA = "FORM_DATA"
    TEXT = "TEXT"


class ExpressionKind(str, Enum):
    """Language of a remote action reduction expression."""

    QUERY = "query"
    TEMPLATE = "template"


class _DocumentModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)


class RemoteAction(_DocumentModel):
    """A declared outbound HTTP call usable from contexts and conditions."""

    name: str = Field(..., pattern=NAME_PATTERN, description="Unique remote action name")
    method: HttpMethod = Field(..., description="HTTP method")
    url: str = Field(..., min_length=1, description="URL template")
    content_type: ContentType = Field(..., alias="contentType", description="Request body encoding")
    body: str | None = Field(None, description="Body template")
    params: str | None = Field(None, description="Query parameters template rendering to a JSON object")
    headers: str | None = Field(None, description="Headers template rendering to a JSON object")
    expression: str | None = Field(None, description="Reduction applied to the response")
    expression_kind: ExpressionKind = Field(
        ExpressionKind.QUERY, alias="expressionKind", description="Language of the reduction expression"
    )
    certificate_name: str | None = Field(None, alias="certificateName")


class Position(_DocumentModel):
    class_name: str | None = Field(None, alias="className")
    components: list["Component"] = Field(default_factory=list)


class Component(_DocumentModel):
    """A UI element; the engine only cares about its name and events."""

    order: int = 0
    name: str
    component_type: str | None = Field(None, alias="componentType")
    component: Any = None
    class_name: str | None = Field(None, alias="className")
    events: dict[EventType, list[Descriptor]] = Field(default_factory=dict)
    top: Position | None = None
    left: Position | None = None
    right: Position | None = None
    bottom: Position | None = None

    def iter_components(self) -> list["Component"]:
        """Return this component followed by every component nested in its positions."""
        found: list[Component] = [self]
        for position in (self.top, self.left, self.right, self.bottom):
            if position is None:
                continue
            for child in position.components:
                found.extend(child.iter_components())
        return found


Position.model_rebuild()


class Step(_DocumentModel):
    name: str
    title: str | None = None
    description: str | None = None
    class_name: str | None = Field(None, alias="className")
    components: list[Component] = Field(default_factory=list)
    events: dict[EventType, list[Descriptor]] = Field(default_factory=dict)

    def get_component(self, name: str) -> Component | None:
        """Find a component by name, including components nested in positions."""
        for component in self.components:
            for candidate in component.iter_components():
                if candidate.name == name:
                    return candidate
        return None


class Wizard(_DocumentModel):
    """Root wizard document.

    Invariants: step names are unique, remote action names are unique and
    ``initial_step`` names an existing step.
    """

    name: str
    description: str | None = None
    initial_step: str = Field(..., alias="initialStep")
    is_active: bool | None = Field(None, alias="isActive")
    steps: list[Step]
    remote_actions: list[RemoteAction] = Field(default_factory=list, alias="remoteActions")

    @model_validator(mode="after")
    def _check_invariants(self) -> "Wizard":
        step_names = [step.name for step in self.steps]
        if len(set(step_names)) != len(step_names):
            raise ValueError("Duplicate step names")
        action_names = [action.name for action in self.remote_actions]
        if len(set(action_names)) != len(action_names):
            raise ValueError("Duplicate action names")
        if self.initial_step not in step_names:
            raise ValueError(f"initialStep '{self.initial_step}' not found in steps")
        return self

    def get_step(self, name: str) -> Step | None:
        return next((step for step in self.steps if step.name == name), None)

    def get_remote_action(self, name: str) -> RemoteAction | None:
        return next((action for action in self.remote_actions if action.name == name), None)

    def to_document(self) -> dict[str, Any]:
        """Serialize back to the camelCase document layout."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def load_wizard(data: Mapping[str, Any]) -> Wizard:
    """Validate a raw document into a ``Wizard``.

    Args:
        data: The parsed JSON/YAML document.

    Returns:
        The validated wizard.

    Raises:
        DocumentValidationError: If the document does not match the schema or breaks an invariant.
    """
    try:
        return Wizard.model_validate(data)
    except ValidationError as ex:
        raise DocumentValidationError(f"Invalid wizard document: {ex}", inner_exception=ex) from ex
