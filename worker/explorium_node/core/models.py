"""Request and result models shared by the Explorium node operations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


def _present(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


@dataclass(slots=True)
class BusinessIdentifier:
    """Loose business identity used by the match endpoint."""

    name: Optional[str] = None
    domain: Optional[str] = None

    def to_payload(self) -> Dict[str, str]:
        return {key: str(value).strip() for key, value in asdict(self).items() if _present(value)}


@dataclass(slots=True)
class ProspectIdentifier:
    """Loose prospect identity used by the match endpoint."""

    email: Optional[str] = None
    phone_number: Optional[str] = None
    full_name: Optional[str] = None
    company_name: Optional[str] = None
    linkedin: Optional[str] = None
    business_id: Optional[str] = None

    def to_payload(self) -> Dict[str, str]:
        return {key: str(value).strip() for key, value in asdict(self).items() if _present(value)}


@dataclass(slots=True)
class MatchRequest:
    type: str
    identifiers: List[Any]

    @property
    def body_key(self) -> str:
        return f"{self.type}_to_match"


@dataclass(slots=True)
class EnrichmentRequest:
    type: str
    enrichments: List[str]
    ids: List[str]
    parameters: Optional[Dict[str, Any]] = None


@dataclass(slots=True)
class FetchRequest:
    type: str
    mode: str = "preview"
    size: int = 50
    page_size: int = 50
    page: int = 1
    filters: Dict[str, Any] = field(default_factory=dict)
    exclude: List[str] = field(default_factory=list)
    auto_paginate: bool = False
    extract_data: bool = False


@dataclass(slots=True)
class EventsRequest:
    type: str
    ids: List[str]
    event_types: List[str]
    timestamp_from: Optional[str] = None
    timestamp_to: Optional[str] = None


@dataclass(slots=True)
class AutocompleteQuery:
    field: str
    query: str = ""


@dataclass(slots=True)
class RequestDescriptor:
    """One HTTP call handed to the Explorium client."""

    method: str
    path: str
    body: Optional[Dict[str, Any]] = None
    query: Optional[Dict[str, Any]] = None


@dataclass(slots=True)
class PaginationCursor:
    current_page: int
    fetched_count: int
    target_count: int

    @property
    def remaining(self) -> int:
        return max(self.target_count - self.fetched_count, 0)

    @property
    def done(self) -> bool:
        return self.fetched_count >= self.target_count
