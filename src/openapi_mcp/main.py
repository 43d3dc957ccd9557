"""CLI entry point for the OpenAPI MCP server."""

from __future__ import annotations

import asyncio
import sys

import uvicorn

from .config import collect_source_urls, get_settings
from .logging import configure_logging
from .server import build_server


async def _run() -> None:
    settings = get_settings()
    configure_logging(settings.openapi_mcp_log_level)

    urls = collect_source_urls(settings.env_urls(), sys.argv[1:])
    mcp, app = await build_server(settings, urls)
    transport = settings.openapi_mcp_transport.lower()

    if transport in {"http", "streamable-http", "streamablehttp", "sse"}:
        if not app:
            raise RuntimeError(f"HTTP app unavailable for transport={transport}")
        config = uvicorn.Config(app, host=settings.openapi_mcp_host, port=settings.openapi_mcp_port)
        server = uvicorn.Server(config)
        await server.serve()
        return
    await mcp.run_stdio_async()


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
