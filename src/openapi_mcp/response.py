"""Normalization of upstream HTTP responses."""

from __future__ import annotations

from typing import Any

import httpx

from .models import ResponseEnvelope


def parse_body(response: httpx.Response) -> Any:
    """JSON for ``application/json`` responses, raw text otherwise.

    A body that claims JSON but does not parse falls back to its text.
    """
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type.lower():
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


def normalize_response(response: httpx.Response) -> ResponseEnvelope:
    return ResponseEnvelope(
        status=response.status_code,
        status_text=response.reason_phrase,
        url=str(response.url),
        ok=response.is_success,
        headers=dict(response.headers.items()),
        body=parse_body(response),
    )
