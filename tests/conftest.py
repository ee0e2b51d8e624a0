# Copyright (c) Microsoft. All rights reserved.

"""Pytest configuration and shared fixtures for wizard engine tests."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from wizard_engine import EvaluationState, RemoteActionClient, Wizard, WizardEngine, load_wizard

ResponseFactory = Callable[[httpx.Request], httpx.Response]


def make_document(**overrides: Any) -> dict[str, Any]:
    """A two-step wizard: step A validates ``name`` on click, then moves to step B."""
    document: dict[str, Any] = {
        "name": "onboarding",
        "initialStep": "A",
        "steps": [
            {
                "name": "A",
                "components": [
                    {"order": 0, "name": "name", "componentType": "TEXT"},
                    {
                        "order": 1,
                        "name": "next",
                        "componentType": "BUTTON",
                        "events": {
                            "ON_CLICK": [
                                {
                                    "order": 0,
                                    "conditions": {
                                        "isEmpty": {"context": {"type": "CURRENT_STEP_VALUES", "fieldName": "name"}}
                                    },
                                    "then": [{"order": 0, "actions": [{"type": "ADD_ERROR", "fieldName": "name"}]}],
                                    "else": [
                                        {
                                            "order": 0,
                                            "type": "ACTIONS",
                                            "actions": [
                                                {"type": "SAVE_STEP_VALUES", "order": 0},
                                                {"type": "GO_TO_STEP", "order": 1, "stepName": "B"},
                                            ],
                                        }
                                    ],
                                }
                            ]
                        },
                    },
                ],
                "events": {
                    "ON_MOUNTED": [{"order": 0, "actions": [{"type": "INIT_STEP_VALUES", "order": 0}]}],
                },
            },
            {"name": "B", "components": []},
        ],
        "remoteActions": [
            {
                "name": "checkStatus",
                "method": "GET",
                "url": "https://api.example.com/status/{{ id }}",
                "contentType": "JSON",
                "expression": "result.ok",
            },
            {
                "name": "lookupCity",
                "method": "POST",
                "url": "https://api.example.com/cities",
                "contentType": "JSON",
                "body": '{"zip": "{{ zip }}"}',
                "expression": "data.city",
            },
        ],
    }
    document.update(overrides)
    return document


class RecordingTransport(httpx.MockTransport):
    """Mock transport that records every request it receives."""

    def __init__(self, factory: ResponseFactory):
        self.requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return factory(request)

        super().__init__(handler)


def json_response(status_code: int, body: Any) -> ResponseFactory:
    return lambda request: httpx.Response(status_code, json=body)


@pytest.fixture
def wizard_document() -> dict[str, Any]:
    return make_document()


@pytest.fixture
def wizard(wizard_document: dict[str, Any]) -> Wizard:
    return load_wizard(wizard_document)


@pytest.fixture
def transport() -> RecordingTransport:
    """Transport answering every request with ``{"ok": true}``."""
    return RecordingTransport(json_response(200, {"ok": True}))


@pytest.fixture
def engine(wizard: Wizard, transport: RecordingTransport) -> WizardEngine:
    client = RemoteActionClient(client=httpx.AsyncClient(transport=transport))
    return WizardEngine(wizard, remote_client=client)


@pytest.fixture
def state() -> EvaluationState:
    return EvaluationState()


@pytest.fixture
def make_engine(wizard: Wizard) -> Callable[[ResponseFactory], tuple[WizardEngine, RecordingTransport]]:
    """Build an engine whose remote calls are answered by ``factory``."""

    def factory_engine(factory: ResponseFactory) -> tuple[WizardEngine, RecordingTransport]:
        recording = RecordingTransport(factory)
        client = RemoteActionClient(client=httpx.AsyncClient(transport=recording))
        return WizardEngine(wizard, remote_client=client), recording

    return factory_engine
