# Copyright (c) Microsoft. All rights reserved.
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from opentelemetry import trace

from ._logging import get_logger
from ._models import ContentType, ExpressionKind, HttpMethod, RemoteAction
from ._query import evaluate_query
from ._settings import DEFAULT_USER_AGENT, WizardEngineSettings
from ._templates import render_template
from .exceptions import RemoteActionError

__all__ = ["RemoteActionClient", "RemoteActionResult"]

logger = get_logger("wizard_engine.remote")
tracer = trace.get_tracer("wizard_engine")

_BODYLESS_METHODS = (HttpMethod.GET, HttpMethod.DELETE)


@dataclass
class RemoteActionResult:
    """Outcome of one remote action call."""

    ok: bool
    """True for 2xx responses."""

    status: int
    """HTTP status code."""

    data: Any
    """Response body, parsed as JSON when possible, else the raw text."""

    result: Any
    """The body reduced by the action's expression (``data`` when no expression is set)."""

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "status": self.status, "data": self.data, "result": self.result}


def _parse_json_object(raw: str, field_name: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except ValueError as ex:
        raise RemoteActionError(f"{field_name} must be a JSON string after interpolation", inner_exception=ex) from ex
    if not isinstance(parsed, dict):
        raise RemoteActionError(f"{field_name} must be a JSON object string after interpolation")
    return parsed


def _parse_body(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


class RemoteActionClient:
    """Async client executing declared remote actions.

    Every part of the request (URL, headers, params, body) is rendered as a template
    against the supplied contexts before the request is issued. No retries are performed.
    """

    def __init__(
        self,
        settings: WizardEngineSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ):
        settings = settings or {}
        self._timeout = settings.get("remote_timeout")
        self._user_agent = settings.get("user_agent") or DEFAULT_USER_AGENT
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._timeout)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> RemoteActionClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _build_request(self, action: RemoteAction, contexts: Mapping[str, Any]) -> dict[str, Any]:
        """Render and encode the request described by ``action``."""
        url = render_template(action.url, contexts)

        headers: dict[str, str] = {"User-Agent": self._user_agent}
        if action.headers:
            rendered = _parse_json_object(render_template(action.headers, contexts), "headers")
            headers.update({key: _stringify(value) for key, value in rendered.items()})

        params: dict[str, str] = {}
        if action.params:
            rendered = _parse_json_object(render_template(action.params, contexts), "params")
            params = {key: _stringify(value) for key, value in rendered.items() if value is not None}

        request: dict[str, Any] = {"method": action.method.value, "url": url, "headers": headers}
        if params:
            request["params"] = params

        if action.body is None or action.method in _BODYLESS_METHODS:
            return request

        body_text = render_template(action.body, contexts)
        if action.content_type == ContentType.JSON:
            try:
                body = json.loads(body_text)
            except ValueError as ex:
                raise RemoteActionError("body must be valid JSON after interpolation", inner_exception=ex) from ex
            if not any(key.lower() == "content-type" for key in headers):
                headers["Content-Type"] = "application/json"
            request["content"] = json.dumps(body)
        elif action.content_type == ContentType.TEXT:
            request["content"] = body_text
        elif action.content_type == ContentType.URL_ENCODING:
            form = _parse_json_object(body_text, "body")
            request["data"] = {key: _stringify(value) for key, value in form.items()}
        else:
            form = _parse_json_object(body_text, "body")
            # httpx only switches to multipart when files are present
            request["files"] = {key: (None, _stringify(value)) for key, value in form.items()}
        return request

    def _reduce(
        self,
        action: RemoteAction,
        contexts: Mapping[str, Any],
        data: Any,
        status: int,
        headers: Mapping[str, str],
    ) -> Any:
        if not action.expression or not action.expression.strip():
            return data
        if action.expression_kind == ExpressionKind.TEMPLATE:
            return render_template(action.expression, {**contexts, "data": data, "result": data})
        envelope = {
            "data": data,
            "result": data,
            "status": status,
            "headers": dict(headers),
            "context": dict(contexts),
        }
        return evaluate_query(action.expression, envelope, bindings=contexts)

    async def run(self, action: RemoteAction, contexts: Mapping[str, Any]) -> RemoteActionResult:
        """Execute a remote action.

        Args:
            action: The declared remote action.
            contexts: Flat mapping of values available to the templates.

        Returns:
            The call outcome with the parsed body and its reduced result.

        Raises:
            RemoteActionError: If the request cannot be built or the transport fails.
            QueryError: If the reduction query is invalid.
            TemplateRenderError: If a template is invalid.
        """
        with tracer.start_as_current_span("wizard_engine.remote_action") as span:
            span.set_attribute("wizard_engine.remote_action.name", action.name)
            span.set_attribute("http.request.method", action.method.value)

            request = self._build_request(action, contexts)
            logger.info(f"Remote action '{action.name}': {request['method']} {request['url']}")
            try:
                response = await self._client.request(**request)
            except httpx.HTTPError as ex:
                raise RemoteActionError(f"Remote action '{action.name}' failed: {ex}", inner_exception=ex) from ex

            span.set_attribute("http.response.status_code", response.status_code)
            data = _parse_body(response.text)
            ok = 200 <= response.status_code < 300
            if not ok:
                logger.warning(f"Remote action '{action.name}' returned status {response.status_code}")
            result = self._reduce(action, contexts, data, response.status_code, response.headers)
            return RemoteActionResult(ok=ok, status=response.status_code, data=data, result=result)
