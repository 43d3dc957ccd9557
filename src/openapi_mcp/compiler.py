"""Compile loaded OpenAPI documents into operation descriptors."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import LoadedSpec, OperationDescriptor, docs_url_of
from .naming import NameAllocator
from .openapi import slugify


logger = logging.getLogger(__name__)

HTTP_METHODS: Tuple[str, ...] = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


def ordered_items(mapping: Dict[str, Any]) -> List[Tuple[str, Any]]:
    """Entries of a decoded JSON object as ``(key, value)`` pairs in document order.

    ``json`` decodes objects into dicts that keep the order keys appeared in the
    source text; naming depends on that order, so compilation walks this list.
    """
    return list(mapping.items())


class OperationCompiler:
    def __init__(self, allocator: Optional[NameAllocator] = None) -> None:
        self.allocator = allocator or NameAllocator()

    def compile(self, specs: Iterable[LoadedSpec]) -> List[OperationDescriptor]:
        descriptors: List[OperationDescriptor] = []
        for spec in specs:
            descriptors.extend(self.compile_spec(spec))
        return descriptors

    def compile_spec(self, spec: LoadedSpec) -> List[OperationDescriptor]:
        paths = spec.document.get("paths")
        if not isinstance(paths, dict):
            logger.error("Spec has no paths: %s", spec.source_url)
            return []

        descriptors: List[OperationDescriptor] = []
        for raw_path, path_item in ordered_items(paths):
            if not isinstance(path_item, dict):
                logger.debug("Skipping non-object path item %s in %s", raw_path, spec.source_url)
                continue
            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if not isinstance(operation, dict):
                    continue
                descriptors.append(self._build_descriptor(spec, raw_path, method, operation))

        logger.info("Compiled %s operation(s) from %s", len(descriptors), spec.key)
        return descriptors

    def _build_descriptor(
        self, spec: LoadedSpec, raw_path: str, method: str, operation: Dict[str, Any]
    ) -> OperationDescriptor:
        method_upper = method.upper()
        operation_id = _scalar_text(operation.get("operationId"))
        name = self.allocator.allocate(proposed_name(spec.key, method_upper, raw_path, operation_id))

        source_title = spec.title or spec.key
        summary = _text(operation.get("summary")) or _text(operation.get("description"))
        default_line = f"{method_upper} {raw_path} (from {source_title})"
        docs_url = docs_url_of(operation) or spec.external_docs_url

        return OperationDescriptor(
            name=name,
            spec_key=spec.key,
            method=method_upper,
            path=raw_path,
            base_url=spec.base_url,
            description=describe(
                summary or default_line, source_title, docs_url, method_upper, raw_path, spec.base_url
            ),
            source_title=source_title,
            title=_text(operation.get("summary")) or operation_id or default_line,
            operation_id=operation_id or None,
            docs_url=docs_url,
        )


def proposed_name(spec_key: str, method: str, raw_path: str, operation_id: str = "") -> str:
    op_slug = slugify(operation_id) if operation_id else ""
    if op_slug:
        return f"{spec_key}.{op_slug}"
    path_slug = slugify(_PLACEHOLDER.sub(r"\1", raw_path)) or "root"
    return f"{spec_key}.{method.upper()}.{path_slug}"


def describe(
    headline: str, source_title: str, docs_url: str, method: str, raw_path: str, base_url: str
) -> str:
    parts: Sequence[str] = (
        headline,
        f"\nSpec: {source_title}",
        f"\nDocs: {docs_url}" if docs_url else "",
        f"\nDefault: {method} {raw_path} @ {base_url or '(no base; must override baseUrl)'}",
    )
    return "".join(part for part in parts if part)


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _scalar_text(value: Any) -> str:
    # operationId may be decoded as a number.
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return ""
    return str(value)
