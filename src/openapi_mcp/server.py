"""MCP server setup: one tool per compiled OpenAPI operation."""

import logging
from typing import Annotated, Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx
from fastmcp import FastMCP
from pydantic import Field
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from .config import Settings
from .executors import MAX_TIMEOUT_MS, RequestExecutor
from .models import OperationDescriptor
from .openapi import SpecLoader
from .service import OperationService
from .tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


async def build_server(
    settings: Settings,
    urls: Sequence[str],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> tuple[FastMCP, object | None]:
    spec_loader = SpecLoader(
        timeout_seconds=settings.openapi_mcp_fetch_timeout_seconds,
        verify_ssl=settings.openapi_mcp_verify_ssl,
        transport=transport,
    )
    registry = ToolRegistry(spec_loader, allowlist=settings.tool_allowlist())
    service = OperationService(
        RequestExecutor(transport=transport, verify_ssl=settings.openapi_mcp_verify_ssl)
    )

    mcp = FastMCP(settings.openapi_mcp_service_name, instructions=_instructions())
    app = _get_http_app(mcp, settings)
    _attach_auth(app, settings)
    _attach_healthcheck(app)

    operations = await registry.load_operations(urls)
    register_operations(mcp, service, operations)
    return mcp, app


def register_operations(
    mcp: FastMCP, service: OperationService, operations: List[OperationDescriptor]
) -> None:
    for operation in operations:
        handler = _tool_handler(service, operation)
        mcp.tool(name=operation.name, title=operation.title, description=operation.description)(
            handler
        )
        logger.info("Registered tool: %s", operation.name)


def _tool_handler(
    service: OperationService, operation: OperationDescriptor
) -> Callable[..., Awaitable[str]]:
    async def handler(
        baseUrl: Annotated[
            Optional[str], Field(description="Override base URL; defaults to spec's server")
        ] = None,
        method: Annotated[
            Optional[str], Field(description=f"HTTP method; defaults to {operation.method}")
        ] = None,
        path: Annotated[
            Optional[str], Field(description=f"Override path; defaults to {operation.path}")
        ] = None,
        pathParams: Annotated[
            Optional[Dict[str, str]], Field(description="Path parameters (name -> value)")
        ] = None,
        query: Annotated[
            Optional[Dict[str, Any]], Field(description="Query parameters (key -> value | array)")
        ] = None,
        headers: Annotated[
            Optional[Dict[str, str]], Field(description="Additional HTTP headers")
        ] = None,
        body: Annotated[
            Optional[Any], Field(description="HTTP request body (JSON serializable)")
        ] = None,
        timeoutMs: Annotated[
            Optional[int],
            Field(description=f"Request timeout in ms (1-{MAX_TIMEOUT_MS}, default 30000)"),
        ] = None,
    ) -> str:
        arguments = {
            "baseUrl": baseUrl,
            "method": method,
            "path": path,
            "pathParams": pathParams,
            "query": query,
            "headers": headers,
            "body": body,
            "timeoutMs": timeoutMs,
        }
        return await service.invoke(
            operation, {key: value for key, value in arguments.items() if value is not None}
        )

    handler.__name__ = operation.name
    return handler


def _attach_auth(app, settings: Settings) -> None:  # type: ignore[no-untyped-def]
    if not app:
        return
    if not settings.openapi_mcp_auth_token:
        logger.warning("No OPENAPI_MCP_AUTH_TOKEN set; HTTP transport accepts anonymous callers")
        return

    async def auth_middleware(request, call_next):  # type: ignore[no-untyped-def]
        if request.method == "OPTIONS":
            return await call_next(request)
        if request.url.path.endswith("/health"):
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        token = auth_header.replace("Bearer", "").strip()
        if token == settings.openapi_mcp_auth_token:
            return await call_next(request)

        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    app.add_middleware(BaseHTTPMiddleware, dispatch=auth_middleware)


def _attach_healthcheck(app) -> None:  # type: ignore[no-untyped-def]
    if not app:
        return

    async def healthcheck(_request):  # type: ignore[no-untyped-def]
        return JSONResponse({"status": "ok"})

    app.add_route("/health", healthcheck, methods=["GET"])


def _instructions() -> str:
    return (
        "OpenAPI bridge. Each tool calls one endpoint of a loaded OpenAPI/Swagger document; "
        "arguments can override the base URL, method, path, path parameters, query, headers, "
        "body and timeout. Results are the JSON-encoded HTTP response."
    )


def _get_http_app(mcp: FastMCP, settings: Settings):  # type: ignore[no-untyped-def]
    transport = settings.openapi_mcp_transport.lower()
    if transport in {"http"}:
        app = mcp.http_app(transport="http", stateless_http=True, json_response=True)
        _attach_cors(app)
        return app
    if transport in {"streamable-http", "streamablehttp"}:
        app = mcp.http_app(
            transport="streamable-http", stateless_http=True, json_response=True
        )
        _attach_cors(app)
        return app
    if transport in {"sse"}:
        app = mcp.http_app(transport="sse")
        _attach_cors(app)
        return app
    return None


def _attach_cors(app) -> None:  # type: ignore[no-untyped-def]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
