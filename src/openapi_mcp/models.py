"""Internal models for compiled operations and invocation envelopes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class LoadedSpec:
    source_url: str
    document: Dict[str, Any]
    base_url: str
    key: str

    @property
    def title(self) -> str:
        info = self.document.get("info")
        if isinstance(info, dict) and isinstance(info.get("title"), str):
            return info["title"]
        return ""

    @property
    def external_docs_url(self) -> str:
        return docs_url_of(self.document)


@dataclass(frozen=True)
class OperationDescriptor:
    name: str
    spec_key: str
    method: str
    path: str
    base_url: str
    description: str
    source_title: str
    title: str
    operation_id: Optional[str] = None
    docs_url: str = ""


class RequestInput(BaseModel):
    """Caller-supplied overrides for one invocation of an operation."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    base_url: Optional[str] = Field(default=None, alias="baseUrl")
    method: Optional[str] = None
    path: Optional[str] = None
    path_params: Optional[Dict[str, Any]] = Field(default=None, alias="pathParams")
    query: Optional[Dict[str, Any]] = None
    headers: Optional[Dict[str, Any]] = None
    body: Any = None
    timeout_ms: Optional[int] = Field(default=None, alias="timeoutMs")


class ResponseEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: int
    status_text: str = Field(alias="statusText")
    url: str
    ok: bool
    headers: Dict[str, str]
    body: Any = None

    def to_text(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


def docs_url_of(node: Dict[str, Any]) -> str:
    docs = node.get("externalDocs")
    if isinstance(docs, dict) and isinstance(docs.get("url"), str):
        return docs["url"]
    return ""
