"""Shared fixtures for openapi_mcp tests.

Documents are plain dicts; HTTP is faked with ``httpx.MockTransport`` so
nothing leaves the process.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict, List

import httpx
import pytest

from openapi_mcp.models import LoadedSpec, OperationDescriptor


PETSTORE_URL = "https://specs.example.com/petstore/openapi.json"
PETSTORE_BASE = "https://api.example.com/v1"

PETSTORE_DOCUMENT: Dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Petstore", "version": "1.0.0"},
    "externalDocs": {"url": "https://docs.example.com/petstore"},
    "servers": [{"url": PETSTORE_BASE}],
    "paths": {
        "/pets": {
            "get": {"operationId": "listPets", "summary": "List all pets"},
            "post": {"operationId": "createPet", "description": "Create a pet"},
        },
        "/pets/{id}": {
            "get": {"operationId": "getPet", "summary": "Info for a specific pet"},
        },
    },
}


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_document() -> Dict[str, Any]:
    return copy.deepcopy(PETSTORE_DOCUMENT)


@pytest.fixture
def petstore_spec(petstore_document: Dict[str, Any]) -> LoadedSpec:
    return LoadedSpec(
        source_url=PETSTORE_URL,
        document=petstore_document,
        base_url=PETSTORE_BASE,
        key="petstore",
    )


@pytest.fixture
def get_pet() -> OperationDescriptor:
    return OperationDescriptor(
        name="petstore.getpet",
        spec_key="petstore",
        method="GET",
        path="/pets/{id}",
        base_url=PETSTORE_BASE,
        description="Info for a specific pet",
        source_title="Petstore",
        title="Info for a specific pet",
        operation_id="getPet",
    )


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it was asked to send."""

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> Any:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def echo_transport() -> RecordingTransport:
    """Answers every request with a JSON echo of what was sent."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "method": request.method,
                "url": str(request.url),
                "body": request.content.decode("utf-8"),
            },
        )

    return RecordingTransport(handler)


@pytest.fixture
def documents_transport() -> Callable[[Dict[str, Any]], RecordingTransport]:
    """Build a transport serving ``{url: document-or-response}``; unknown URLs get 404."""

    def build(routes: Dict[str, Any]) -> RecordingTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            route = routes.get(str(request.url))
            if route is None:
                return httpx.Response(404, text="not found")
            if isinstance(route, httpx.Response):
                return route
            return httpx.Response(200, json=route)

        return RecordingTransport(handler)

    return build
