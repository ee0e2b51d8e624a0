# Copyright (c) Microsoft. All rights reserved.

"""EvaluationState holds the mutable per-session data the engine reads and writes.

The state is organized into slices that mirror the wizard runtime:

- currentStepValues: Field values of the step in progress
- allStepValues: Persisted values of every completed step, keyed by step name
- componentStates: Arbitrary property bags keyed by component name
- localContexts: Engine-writable bindings (SET_LOCAL_CONTEXT)
- forEachStacks: Active FOREACH frames, innermost last
- groupIndexStack: Active repeatable group indices, innermost last
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from ._logging import get_logger

__all__ = ["ActionResult", "EvaluationState", "ForEachFrame"]

logger = get_logger("wizard_engine.state")


@dataclass
class ForEachFrame:
    """One active FOREACH iteration."""

    name: str
    """The loop name used to address this frame from FOREACH contexts."""

    index: int
    """Position of the current item in the array."""

    item: Any
    """The current item."""

    array: list[Any]
    """The full array being iterated."""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "index": self.index, "item": self.item, "array": self.array}


@dataclass
class ActionResult:
    """Outcome of executing one action.

    Failures never raise past the action boundary; they are reported through ``error``.
    """

    type: str
    payload: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type}
        if self.payload is not None:
            result["payload"] = self.payload
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class EvaluationState:
    """Mutable per-session state threaded through every engine call.

    One instance belongs to one wizard session. The engine performs no locking; callers
    must not evaluate two triggers against the same instance concurrently.

    Examples:
        .. code-block:: python

            from wizard_engine import EvaluationState

            state = EvaluationState(current_step_values={"name": "Ada"})

            with state.loop_frame("rows", 0, {"id": 1}, [{"id": 1}]):
                frame = state.find_frame("rows")  # ForEachFrame(name="rows", index=0, ...)

            scoped = state.with_local_scope({"total": 3})
            scoped.local_contexts["total"]  # 3
            "total" in state.local_contexts  # False
    """

    current_step_values: dict[str, Any] = field(default_factory=dict)
    all_step_values: dict[str, dict[str, Any]] = field(default_factory=dict)
    component_states: dict[str, Any] = field(default_factory=dict)
    local_contexts: dict[str, Any] = field(default_factory=dict)
    foreach_stack: list[ForEachFrame] = field(default_factory=list)
    group_index_stack: list[int] = field(default_factory=list)

    @classmethod
    def from_dict(cls, value: Mapping[str, Any] | None) -> "EvaluationState":
        """Build a state from its camelCase wire representation.

        Args:
            value: Mapping with optional ``currentStepValues``, ``allStepValues``,
                ``componentStates``, ``localContexts``, ``forEachStacks`` and ``groupIndexStack`` keys.

        Returns:
            A new EvaluationState; missing slices start empty.
        """
        value = value or {}
        frames = [
            ForEachFrame(
                name=frame["name"],
                index=frame.get("index", 0),
                item=frame.get("item"),
                array=list(frame.get("array") or []),
            )
            for frame in value.get("forEachStacks") or []
        ]
        return cls(
            current_step_values=dict(value.get("currentStepValues") or {}),
            all_step_values=dict(value.get("allStepValues") or {}),
            component_states=dict(value.get("componentStates") or {}),
            local_contexts=dict(value.get("localContexts") or {}),
            foreach_stack=frames,
            group_index_stack=list(value.get("groupIndexStack") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentStepValues": self.current_step_values,
            "allStepValues": self.all_step_values,
            "componentStates": self.component_states,
            "localContexts": self.local_contexts,
            "forEachStacks": [frame.to_dict() for frame in self.foreach_stack],
            "groupIndexStack": self.group_index_stack,
        }

    def find_frame(self, name: str) -> ForEachFrame | None:
        """Return the innermost active FOREACH frame with the given loop name."""
        for frame in reversed(self.foreach_stack):
            if frame.name == name:
                return frame
        return None

    @contextmanager
    def loop_frame(self, name: str, index: int, item: Any, array: list[Any]) -> Iterator[ForEachFrame]:
        """Push a FOREACH frame for the duration of the block; the pop always happens."""
        frame = ForEachFrame(name=name, index=index, item=item, array=array)
        self.foreach_stack.append(frame)
        logger.debug(f"ForEach '{name}': push index {index} (depth {len(self.foreach_stack)})")
        try:
            yield frame
        finally:
            self.foreach_stack.pop()
            logger.debug(f"ForEach '{name}': pop index {index}")

    def current_group_index(self) -> int | None:
        return self.group_index_stack[-1] if self.group_index_stack else None

    def with_local_scope(self, bindings: Mapping[str, Any]) -> "EvaluationState":
        """Create a view whose local contexts are extended with ``bindings``.

        Every other slice is shared with this state. The merged local contexts live in a
        fresh dict, so nothing bound here is visible to the parent afterwards.
        """
        return EvaluationState(
            current_step_values=self.current_step_values,
            all_step_values=self.all_step_values,
            component_states=self.component_states,
            local_contexts={**self.local_contexts, **bindings},
            foreach_stack=self.foreach_stack,
            group_index_stack=self.group_index_stack,
        )
