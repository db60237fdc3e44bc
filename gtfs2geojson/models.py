from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str


class ExtractResponse(BaseModel):
    msg: str
    files: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
