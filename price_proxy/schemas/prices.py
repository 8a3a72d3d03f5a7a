from __future__ import annotations

from typing import List

from pydantic import BaseModel


class MissingParameterResponse(BaseModel):
    error: str


class ProviderErrorResponse(BaseModel):
    """Body returned when the selected provider could not produce prices."""

    error: str
    source: str
    symbols: List[str]


class UnexpectedErrorResponse(BaseModel):
    """Body returned for failures outside the provider call path."""

    error: str
    timestamp: str
