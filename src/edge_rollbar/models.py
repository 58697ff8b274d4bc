"""Report context and wire models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Level(str, Enum):
    """Severity levels understood by the collector."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


# =============================================================================
# Caller-supplied context
# =============================================================================
#
# These are plain frozen dataclasses rather than pydantic models: caller data
# must reach the scrubber untouched (no validation copies) so that reference
# cycles are detected on the caller's own containers.


@dataclass(frozen=True)
class Person:
    """User associated with a report."""

    id: str
    username: str | None = None
    email: str | None = None

    def to_wire(self) -> dict[str, str]:
        person = {"id": self.id}
        if self.username is not None:
            person["username"] = self.username
        if self.email is not None:
            person["email"] = self.email
        return person


@dataclass(frozen=True)
class RequestContext:
    """Snapshot of the HTTP request being handled when the report was made.

    Attributes:
        url: Full request URL
        method: HTTP method
        headers: Request headers (sensitive headers are scrubbed)
        params: Query string parameters
        body: Request body, only sent when the client includes request bodies
        user_ip: Client IP address
    """

    url: str
    method: str
    headers: Mapping[str, str] | None = None
    params: Mapping[str, str] | None = None
    body: Any = None
    user_ip: str | None = None


@dataclass(frozen=True)
class ReportContext:
    """Additional context attached to an error or message report.

    Attributes:
        person: User information, attached verbatim
        request: HTTP request snapshot
        custom: Arbitrary key-value data, scrubbed before sending
        fingerprint: Grouping key for similar occurrences
        title: Title override for this occurrence
        uuid: Identifier for this specific occurrence
    """

    person: Person | None = None
    request: RequestContext | None = None
    custom: Mapping[str, Any] | None = None
    fingerprint: str | None = None
    title: str | None = None
    uuid: str | None = None


# =============================================================================
# Payload body
# =============================================================================


class StackFrame(BaseModel):
    """One call site of a normalized stack trace."""

    filename: str
    lineno: int | None = Field(default=None, ge=0)
    colno: int | None = Field(default=None, ge=0)
    method: str | None = None

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ExceptionInfo(BaseModel):
    """Exception class, message and optional description."""

    class_name: str = Field(alias="class")
    message: str
    description: str | None = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class TraceBody(BaseModel):
    """Exception body variant: stack frames plus the exception descriptor."""

    kind: Literal["trace"] = "trace"
    frames: tuple[StackFrame, ...]
    exception: ExceptionInfo

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return {
            "trace": {
                "frames": [frame.to_wire() for frame in self.frames],
                "exception": self.exception.to_wire(),
            }
        }


class MessageBody(BaseModel):
    """Message body variant: free text plus extra (already scrubbed) fields."""

    kind: Literal["message"] = "message"
    body: str
    extra: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return {"message": {**self.extra, "body": self.body}}


ReportBody = Union[TraceBody, MessageBody]


# =============================================================================
# Acknowledgement
# =============================================================================


class ItemResult(BaseModel):
    """Result block of an accepted item."""

    uuid: str

    model_config = ConfigDict(frozen=True)


class RollbarResponse(BaseModel):
    """Acknowledgement returned by the collector."""

    err: int
    result: ItemResult | None = None
    message: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        """True when the collector accepted the item."""
        return self.err == 0

    @property
    def uuid(self) -> str | None:
        return self.result.uuid if self.result else None
