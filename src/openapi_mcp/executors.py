"""Execution layer: turns an operation plus caller overrides into one HTTP call."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote, urlencode

import httpx

from .models import OperationDescriptor, RequestInput, ResponseEnvelope
from .response import normalize_response

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT = "application/json, */*;q=0.8"
DEFAULT_TIMEOUT_MS = 30_000
MIN_TIMEOUT_MS = 1
MAX_TIMEOUT_MS = 300_000

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")
# Characters encodeURIComponent leaves alone.
_COMPONENT_SAFE = "-_.!~*'()"


class ExecutionError(Exception):
    pass


class MissingPathParameter(ExecutionError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Missing required path parameter: {name}")


class InvalidBaseUrl(ExecutionError):
    def __init__(self, base_url: str) -> None:
        self.base_url = base_url
        super().__init__(
            f"Invalid URL. Provide a valid absolute baseUrl (current: '{base_url}') "
            "or ensure the path is absolute."
        )


class TransportFailure(ExecutionError):
    pass


class QueryKind(str, Enum):
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    STRUCTURED = "structured"


@dataclass(frozen=True)
class QueryParam:
    key: str
    kind: QueryKind
    values: Tuple[str, ...]


@dataclass(frozen=True)
class PreparedRequest:
    method: str
    url: httpx.URL
    headers: httpx.Headers
    content: Optional[Union[str, bytes]]
    timeout_ms: int


def stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return _compact_json(value)
    return str(value)


def classify_query(query: Optional[Mapping[str, Any]]) -> List[QueryParam]:
    params: List[QueryParam] = []
    for key, value in (query or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            params.append(QueryParam(key, QueryKind.SEQUENCE, tuple(stringify(item) for item in value)))
        elif isinstance(value, dict):
            params.append(QueryParam(key, QueryKind.STRUCTURED, (_compact_json(value),)))
        else:
            params.append(QueryParam(key, QueryKind.SCALAR, (stringify(value),)))
    return params


def apply_query(url: httpx.URL, params: List[QueryParam]) -> httpx.URL:
    for param in params:
        if param.kind is QueryKind.SEQUENCE:
            for value in param.values:
                url = url.copy_add_param(param.key, value)
        else:
            url = url.copy_set_param(param.key, param.values[0])
    return url


def fill_path_params(template: str, path_params: Optional[Mapping[str, Any]]) -> str:
    params = path_params or {}

    def _substitute(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in params:
            raise MissingPathParameter(name)
        return quote(stringify(params[name]), safe=_COMPONENT_SAFE)

    return _PLACEHOLDER.sub(_substitute, template)


def join_url(base: str, path: str) -> str:
    if not base:
        return path
    if not path:
        return base
    trailing = base.endswith("/")
    leading = path.startswith("/")
    if trailing and leading:
        return base + path[1:]
    if not trailing and not leading:
        return f"{base}/{path}"
    return base + path


def clamp_timeout_ms(timeout_ms: Optional[int]) -> int:
    if timeout_ms is None:
        return DEFAULT_TIMEOUT_MS
    return min(max(int(timeout_ms), MIN_TIMEOUT_MS), MAX_TIMEOUT_MS)


def build_headers(overrides: Optional[Mapping[str, Any]]) -> httpx.Headers:
    headers = httpx.Headers({"Accept": DEFAULT_ACCEPT})
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        headers[key] = str(value)
    return headers


def encode_body(body: Any, method: str, headers: httpx.Headers) -> Optional[Union[str, bytes]]:
    """Serialize ``body`` for the wire, setting a JSON content-type when none was given.

    Non-JSON content-types: strings and bytes go out unchanged, a mapping sent as
    ``application/x-www-form-urlencoded`` is form-encoded, anything else is sent
    as JSON text.
    """
    if body is None or method in ("GET", "HEAD"):
        return None

    content_type = headers.get("content-type")
    if not content_type:
        headers["Content-Type"] = "application/json"
        content_type = "application/json"
    content_type = content_type.lower()

    if isinstance(body, (str, bytes)):
        return body
    if "application/x-www-form-urlencoded" in content_type and isinstance(body, dict):
        return urlencode(
            [(key, stringify(value)) for key, value in _form_pairs(body)],
        )
    return _compact_json(body)


def _form_pairs(body: Dict[str, Any]) -> List[Tuple[str, Any]]:
    pairs: List[Tuple[str, Any]] = []
    for key, value in body.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, item) for item in value)
        else:
            pairs.append((key, value))
    return pairs


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


class RequestExecutor:
    """Performs exactly one HTTP attempt per invocation.

    ``transport`` is handed to every ``httpx.AsyncClient`` the executor opens,
    so tests can substitute ``httpx.MockTransport``.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        verify_ssl: bool = True,
    ) -> None:
        self.transport = transport
        self.verify_ssl = verify_ssl

    def prepare(self, operation: OperationDescriptor, request: RequestInput) -> PreparedRequest:
        method = (request.method or operation.method).upper()
        template = request.path or operation.path
        filled_path = fill_path_params(template, request.path_params)

        base = request.base_url or operation.base_url or ""
        try:
            url = httpx.URL(join_url(base, filled_path))
        except httpx.InvalidURL as exc:
            raise InvalidBaseUrl(base) from exc
        if not url.scheme or not url.host:
            raise InvalidBaseUrl(base)

        url = apply_query(url, classify_query(request.query))
        headers = build_headers(request.headers)
        content = encode_body(request.body, method, headers)

        return PreparedRequest(
            method=method,
            url=url,
            headers=headers,
            content=content,
            timeout_ms=clamp_timeout_ms(request.timeout_ms),
        )

    async def execute(self, operation: OperationDescriptor, request: RequestInput) -> ResponseEnvelope:
        prepared = self.prepare(operation, request)
        logger.debug("%s %s (timeout=%sms)", prepared.method, prepared.url, prepared.timeout_ms)

        async with httpx.AsyncClient(
            transport=self.transport,
            verify=self.verify_ssl,
            follow_redirects=True,
            timeout=None,
        ) as client:
            try:
                response = await asyncio.wait_for(
                    client.request(
                        prepared.method,
                        prepared.url,
                        headers=prepared.headers,
                        content=prepared.content,
                    ),
                    timeout=prepared.timeout_ms / 1000,
                )
            except asyncio.TimeoutError as exc:
                raise TransportFailure(
                    f"Request failed: timed out after {prepared.timeout_ms} ms"
                ) from exc
            except httpx.HTTPError as exc:
                raise TransportFailure(
                    f"Request failed: {str(exc) or exc.__class__.__name__}"
                ) from exc

        return normalize_response(response)
