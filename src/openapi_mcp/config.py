"""Configuration for the OpenAPI MCP server."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Set

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


_URL_ARGUMENT = re.compile(r"^(https?:)?//", re.IGNORECASE)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    openapi_urls: Optional[str] = Field(default=None)

    openapi_mcp_service_name: str = Field(default="openapi-mcp")
    openapi_mcp_transport: str = Field(default="stdio")
    openapi_mcp_host: str = Field(default="127.0.0.1")
    openapi_mcp_port: int = Field(default=8000)
    openapi_mcp_auth_token: Optional[str] = Field(default=None)

    openapi_mcp_fetch_timeout_seconds: float = Field(default=30)
    openapi_mcp_verify_ssl: bool = Field(default=True)
    openapi_mcp_tool_allowlist: Optional[str] = Field(default=None)

    openapi_mcp_log_level: str = Field(default="INFO")

    def env_urls(self) -> List[str]:
        return _split_csv(self.openapi_urls)

    def tool_allowlist(self) -> Set[str]:
        return set(_split_csv(self.openapi_mcp_tool_allowlist))


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def collect_source_urls(env_urls: Iterable[str], argv: Sequence[str]) -> List[str]:
    """Environment URLs first, then URL-looking arguments, first occurrence wins."""
    arg_urls = [arg for arg in argv if _URL_ARGUMENT.match(arg)]
    seen: Set[str] = set()
    urls: List[str] = []
    for url in [*env_urls, *arg_urls]:
        if url not in seen:
            seen.add(url)
            urls.append(url)
    return urls


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
