from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Literal, Optional, TypeVar

T = TypeVar("T")

OutcomeStatus = Literal["success", "error"]


class ErrorKind(str, Enum):
    """Failure taxonomy surfaced to callers."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    API = "api"
    STORAGE = "storage"
    FORMAT = "format"
    UNKNOWN = "unknown"   # tool boundary only


@dataclass
class GenerationFailure:
    kind: ErrorKind
    message: str
    details: Optional[Dict[str, Any]] = None
    status_code: Optional[int] = None
    retry_after_s: Optional[float] = None   # rate-limit hint from the remote
    retryable: bool = False
    exhausted: bool = False
    attempts: int = 0
    cause: Optional["GenerationFailure"] = None

    def describe(self) -> str:
        text = f"[{self.kind.value}] {self.message}"
        if self.cause is not None:
            text += f" (last error: {self.cause.message})"
        return text


@dataclass
class Outcome(Generic[T]):
    """Discriminated success/error value returned across component boundaries."""

    status: OutcomeStatus
    value: Optional[T] = None
    error: Optional[GenerationFailure] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(status="success", value=value)

    @classmethod
    def failure(cls, error: GenerationFailure) -> "Outcome[T]":
        return cls(status="error", error=error)


class JobState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class GenerationJob:
    job_id: str
    model_id: str
    state: JobState = JobState.SUBMITTED
    image_url: Optional[str] = None
    raw_status: Optional[str] = None       # provider status string, e.g. "PROCESSING"
    failure_reason: Optional[str] = None

    @property
    def terminal(self) -> bool:
        return self.state in (JobState.COMPLETED, JobState.FAILED)


@dataclass
class SubmitOptions:
    count: int = 1
    height: int = 1024
    width: int = 1024
    extra_model_flags: Dict[str, Any] = field(default_factory=dict)
