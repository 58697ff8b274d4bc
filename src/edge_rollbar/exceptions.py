"""Custom exceptions for the Rollbar notifier."""

from __future__ import annotations

from typing import Any

from edge_rollbar.constants import DEFAULT_ERROR_KIND


class RollbarError(Exception):
    """Base exception for all notifier errors."""

    def __init__(self, message: str, detail: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        return self.message


class ConfigurationError(RollbarError):
    """Raised when the notifier configuration is invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message, detail=None)


class ReportedError(Exception):
    """An error captured outside the Python runtime.

    Carries the error's declared kind name, its message and the raw stack
    text exactly as the foreign runtime produced it, e.g. an error relayed
    from a JavaScript worker::

        ReportedError(
            kind="TypeError",
            message="x is undefined",
            stack="TypeError: x is undefined\\n    at handle (worker.js:12:5)",
        )

    Values reported without being exceptions are wrapped in a
    ``ReportedError`` with the generic ``Error`` kind and no stack.
    """

    def __init__(
        self,
        message: str = "",
        *,
        kind: str | None = None,
        stack: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind or DEFAULT_ERROR_KIND
        self.stack = stack

    def __str__(self) -> str:
        return self.message
