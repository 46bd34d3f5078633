"""Error types raised while building and dispatching Explorium requests."""

import json
from typing import Any, Optional


class ExploriumNodeError(RuntimeError):
    """Base class for every failure surfaced to the host."""


class InvalidInput(ExploriumNodeError):
    """Raised when a raw JSON input field cannot be parsed."""


class EmptyInput(ExploriumNodeError):
    """Raised when merged JSON inputs produce an object without keys."""


class ValidationError(ExploriumNodeError):
    """Raised when a required identifier, ID or event type is missing."""


class UnknownOperation(ExploriumNodeError):
    """Raised when the host asks for an operation we do not implement."""


class UnknownEnrichmentType(ExploriumNodeError):
    """Raised when a (type, enrichment) pair has no bulk endpoint."""


class UpstreamError(ExploriumNodeError):
    """Raised when the Explorium API answers with a non-2xx status or is unreachable."""

    def __init__(self, status: Optional[int], data: Any = None, message: Optional[str] = None) -> None:
        self.status = status
        self.data = data
        if message is None:
            message = f"Request failed with status: {status}."
            if data:
                rendered = data if isinstance(data, str) else json.dumps(data, indent=2)
                message += f"\ndata: {rendered}"
        super().__init__(message)
