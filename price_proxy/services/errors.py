from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    UPSTREAM_STATUS = "upstream_status"
    INVALID_CONTENT_TYPE = "invalid_content_type"
    INVALID_JSON = "invalid_json"
    INVALID_STRUCTURE = "invalid_structure"
    TRANSPORT = "transport"
    RETRIES_EXHAUSTED = "retries_exhausted"
    CREDENTIALS_EXHAUSTED = "credentials_exhausted"


class ProviderError(RuntimeError):
    """Failure talking to an upstream price provider.

    ``str(err)`` is the message surfaced to API callers; ``status`` and
    ``body`` carry upstream diagnostics when there were any.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        status: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status = status
        self.body = body

    @property
    def is_rate_limited(self) -> bool:
        return self.kind in (ErrorKind.RATE_LIMITED, ErrorKind.RETRIES_EXHAUSTED)


@dataclass
class PriceResult:
    source: str
    data: Optional[dict[str, Any]] = None
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
