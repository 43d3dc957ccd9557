"""OpenAPI / Swagger document loader."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urljoin, urlsplit

import httpx

from .models import LoadedSpec


logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 120

_NON_SLUG = re.compile(r"[^a-z0-9]+")
_SPEC_FILE_SUFFIX = re.compile(r"/(openapi|swagger)\.(json|yaml|yml)$", re.IGNORECASE)
_SERVER_VARIABLE = re.compile(r"\{([^}]+)\}")


class SpecFetchError(Exception):
    pass


def slugify(value: Any) -> str:
    """Lowercase, collapse non-alphanumeric runs to ``-`` and trim."""
    slug = _NON_SLUG.sub("-", str(value).lower()).strip("-")
    return slug[:SLUG_MAX_LENGTH]


def resolve_base_url(document: Dict[str, Any], source_url: str = "") -> str:
    """Base URL from ``servers`` (OpenAPI 3) or ``schemes/host/basePath`` (Swagger 2).

    Server variables are replaced with their defaults and a relative server URL
    is resolved against the URL the document was fetched from. Returns an empty
    string when the document declares neither.
    """
    servers = document.get("servers")
    if isinstance(servers, list) and servers and isinstance(servers[0], dict):
        server = servers[0]
        url = server.get("url")
        if isinstance(url, str) and url:
            url = _apply_server_variables(url, server.get("variables"))
            if source_url and not urlsplit(url).scheme:
                url = urljoin(source_url, url)
            return url

    if document.get("swagger") and (document.get("host") or document.get("basePath")):
        schemes = document.get("schemes")
        scheme = schemes[0] if isinstance(schemes, list) and schemes else "https"
        host = document.get("host") or ""
        base_path = document.get("basePath") or ""
        return f"{scheme}://{host}{base_path}"

    return ""


def derive_spec_key(source_url: str, document: Dict[str, Any]) -> str:
    info = document.get("info")
    title = info.get("title") if isinstance(info, dict) else None
    by_title = slugify(title) if title else ""
    if by_title:
        return by_title

    parts = urlsplit(source_url)
    if parts.scheme and parts.hostname:
        by_host = slugify(parts.hostname)
        path = _SPEC_FILE_SUFFIX.sub("", parts.path).replace("/", "-")
        by_path = slugify(path)
        host_path = f"{by_host}-{by_path}" if by_path else by_host
        if host_path:
            return host_path
    return slugify(source_url)


def _apply_server_variables(url: str, variables: Any) -> str:
    if not isinstance(variables, dict):
        return url

    def _default(match: "re.Match[str]") -> str:
        variable = variables.get(match.group(1))
        if isinstance(variable, dict) and variable.get("default") is not None:
            return str(variable["default"])
        return match.group(0)

    return _SERVER_VARIABLE.sub(_default, url)


class SpecLoader:
    def __init__(
        self,
        timeout_seconds: float = 30,
        verify_ssl: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.verify_ssl = verify_ssl
        self.transport = transport

    async def load_all(self, urls: Iterable[str]) -> List[LoadedSpec]:
        """Fetch every URL concurrently; failed documents are logged and dropped.

        The returned list keeps the order of ``urls``, not completion order.
        """
        urls = list(urls)
        if not urls:
            return []

        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            verify=self.verify_ssl,
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            results = await asyncio.gather(*(self._load_one(client, url) for url in urls))

        return [spec for spec in results if spec is not None]

    async def _load_one(self, client: httpx.AsyncClient, url: str) -> Optional[LoadedSpec]:
        try:
            document = await self.fetch_document(client, url)
        except SpecFetchError as exc:
            logger.warning("Failed to fetch OpenAPI spec: %s (%s)", url, exc)
            return None

        spec = LoadedSpec(
            source_url=url,
            document=document,
            base_url=resolve_base_url(document, url),
            key=derive_spec_key(url, document),
        )
        logger.info("Loaded OpenAPI spec %s as '%s' (base=%s)", url, spec.key, spec.base_url or "-")
        return spec

    async def fetch_document(self, client: httpx.AsyncClient, url: str) -> Dict[str, Any]:
        try:
            response = await client.get(url, headers={"Accept": "application/json"})
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise SpecFetchError(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            raise SpecFetchError(f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise SpecFetchError(f"response is not JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise SpecFetchError("document is not a JSON object")
        return data
