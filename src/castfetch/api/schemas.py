from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    delivery_paths: int


class RelayError(BaseModel):
    error: str
