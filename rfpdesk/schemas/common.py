"""Common schema module."""

from __future__ import annotations

from pydantic import BaseModel, Field, JsonValue

# Free-form key/value bag (specifications, extra requirements, extra terms).
JsonBag = dict[str, JsonValue]


class APIEnvelope(BaseModel):
    status: str = "ok"
    message: str | None = None


class Pagination(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class ErrorEnvelope(BaseModel):
    statusCode: int
    timestamp: str
    path: str
    error: str
    message: str | list
    stack: str | None = None
