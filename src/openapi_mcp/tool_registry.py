"""Operation registry: loads documents once and compiles their operations."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set

from .compiler import OperationCompiler
from .models import LoadedSpec, OperationDescriptor
from .naming import NameAllocator
from .openapi import SpecLoader


logger = logging.getLogger(__name__)


class ToolRegistry:
    def __init__(
        self,
        spec_loader: SpecLoader,
        allowlist: Optional[Set[str]] = None,
    ) -> None:
        self.spec_loader = spec_loader
        self.allowlist = allowlist or set()
        self.specs: List[LoadedSpec] = []
        self.operations: List[OperationDescriptor] = []

    async def load_operations(self, urls: Sequence[str]) -> List[OperationDescriptor]:
        """Fetch ``urls`` and compile every operation they declare.

        Names are allocated in URL order, then path and method order within each
        document, so the same inputs always produce the same names. The allowlist
        is applied after naming and never shifts collision suffixes.
        """
        if not urls:
            logger.error("No OpenAPI URLs provided. Set OPENAPI_URLS or pass URLs as arguments.")
            return []

        logger.info("Loading %s OpenAPI spec(s)...", len(urls))
        self.specs = await self.spec_loader.load_all(urls)

        compiler = OperationCompiler(NameAllocator())
        operations = compiler.compile(self.specs)

        if self.allowlist:
            operations = [
                op for op in operations if op.name in self.allowlist or op.spec_key in self.allowlist
            ]

        self.operations = operations
        logger.info(
            "Compiled %s operation(s) from %s/%s spec(s)", len(operations), len(self.specs), len(urls)
        )
        return operations

    def get(self, name: str) -> Optional[OperationDescriptor]:
        for operation in self.operations:
            if operation.name == name:
                return operation
        return None
