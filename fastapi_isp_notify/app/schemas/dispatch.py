from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    NONE = "none"
    CONNECTION = "connection"
    OTHER = "other"


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class DispatchAttempt(BaseModel):
    recipient: str
    attempt_number: int = Field(..., ge=1)
    outcome: AttemptOutcome
    error_kind: ErrorKind = ErrorKind.NONE
    error_message: str | None = None
    backoff_ms: int = 0


class DispatchResult(BaseModel):
    recipient: str
    success: bool
    message: str
    address: str | None = None
    attempts: list[DispatchAttempt] = Field(default_factory=list)


class BatchOutcome(BaseModel):
    results: list[DispatchResult] = Field(default_factory=list)
    success_count: int = 0
    total_count: int = 0


class RecipientValidation(BaseModel):
    recipient: str
    is_valid: bool
    address: str | None = None
    error: str | None = None
