"""Invocation boundary for compiled operations."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .executors import ExecutionError, RequestExecutor
from .logging import redact_payload
from .models import OperationDescriptor, RequestInput

logger = logging.getLogger(__name__)


class OperationService:
    """
    Runs operations on behalf of the tool host.

    Every outcome, including invocation-time failures, comes back as text so the
    host always receives a completed result:
    - success: the JSON-encoded response envelope
    - bad arguments, missing path parameters, unusable base URL, transport
      failures and timeouts: a descriptive message
    """

    def __init__(self, executor: Optional[RequestExecutor] = None) -> None:
        self.executor = executor or RequestExecutor()

    async def invoke(self, operation: OperationDescriptor, payload: Dict[str, Any]) -> str:
        logger.info("Invoking operation=%s payload=%s", operation.name, redact_payload(payload))

        try:
            request = RequestInput.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Invalid arguments for %s: %s", operation.name, exc)
            return f"Invalid arguments: {exc}"

        try:
            envelope = await self.executor.execute(operation, request)
        except ExecutionError as exc:
            logger.error("Operation %s failed: %s", operation.name, exc)
            return str(exc)

        logger.info("Operation %s -> %s %s", operation.name, envelope.status, envelope.url)
        return envelope.to_text()
