"""Print the operation names the server would register for a set of OpenAPI URLs."""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any, Dict, List

from openapi_mcp.config import collect_source_urls, get_settings
from openapi_mcp.logging import configure_logging
from openapi_mcp.openapi import SpecLoader
from openapi_mcp.tool_registry import ToolRegistry


def _row(operation: Any) -> Dict[str, Any]:
    return {
        "name": operation.name,
        "method": operation.method,
        "path": operation.path,
        "base_url": operation.base_url,
        "title": operation.title,
    }


async def _collect(urls: List[str], timeout: float, verify_ssl: bool) -> List[Dict[str, Any]]:
    registry = ToolRegistry(SpecLoader(timeout_seconds=timeout, verify_ssl=verify_ssl))
    operations = await registry.load_operations(urls)
    return [_row(op) for op in operations]


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="List compiled OpenAPI operations")
    parser.add_argument("urls", nargs="*", help="OpenAPI/Swagger document URLs")
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.openapi_mcp_fetch_timeout_seconds,
        help="Per-document fetch timeout in seconds",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Emit JSON instead of a table",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for loader diagnostics (stderr)",
    )

    args = parser.parse_args()
    configure_logging(args.log_level)

    urls = collect_source_urls(settings.env_urls(), args.urls)
    if not urls:
        raise SystemExit("No OpenAPI URLs provided. Set OPENAPI_URLS or pass URLs as arguments.")

    rows = asyncio.run(_collect(urls, args.timeout, settings.openapi_mcp_verify_ssl))
    if args.json:
        print(json.dumps(rows, indent=2))
        return

    for row in rows:
        print(f"{row['name']}\t{row['method']} {row['path']}\t{row['base_url'] or '-'}")
    print(f"{len(rows)} operation(s)")


if __name__ == "__main__":
    main()
