"""Main Rollbar client."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Mapping
from types import TracebackType
from typing import Any

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

import httpx
from starlette.requests import Request

from edge_rollbar._http import ReportSender
from edge_rollbar.config import RollbarConfig, RollbarSettings, bind_person, get_settings
from edge_rollbar.constants import (
    CLIENT_IP_HEADER,
    DEFAULT_ENVIRONMENT,
    FORWARDED_FOR_HEADER,
    REAL_IP_HEADER,
    ROLLBAR_API_URL,
    LogEvents,
)
from edge_rollbar.exceptions import ConfigurationError, ReportedError
from edge_rollbar.logger import get_logger
from edge_rollbar.models import Level, Person, ReportContext, RequestContext, RollbarResponse
from edge_rollbar.payload import PayloadBuilder
from edge_rollbar.scrubber import scrub_headers
from edge_rollbar.stack_parser import safe_message
from edge_rollbar.wrapper import Handler, WrapperOptions, wrap_handler

logger = get_logger(__name__)


def _as_exception(error: object) -> BaseException:
    if isinstance(error, BaseException):
        return error
    return ReportedError(safe_message(error))


class Rollbar:
    """Rollbar client for short-lived request handlers.

    Example usage:
        rollbar = Rollbar(
            access_token=settings.rollbar_token,
            environment="staging",
            code_version="1.4.2",
        )

        # Report an error
        await rollbar.error(exc, ReportContext(request=rollbar.build_request_context(request)))

        # Log a message
        await rollbar.info("cache warmed", ReportContext(custom={"keys": 120}))

        # Don't block the response on the report
        ctx.wait_until(rollbar.error(exc))

        # Bind a user to every report
        user_rollbar = rollbar.with_person(Person(id="42", username="ada"))

    Every reporting method returns the collector's acknowledgement, or None
    when it could not be delivered. Reporting never raises.
    """

    def __init__(
        self,
        access_token: str | None = None,
        *,
        environment: str | None = None,
        code_version: str | None = None,
        host: str | None = None,
        scrub_fields: Iterable[str] | None = None,
        include_request_body: bool = False,
        payload: Mapping[str, Any] | None = None,
        person: Person | None = None,
        verbose: bool = False,
        endpoint: str = ROLLBAR_API_URL,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            access_token: Server-side access token
            environment: Environment name (default "production")
            code_version: Version of the reporting code
            host: Server host identifier
            scrub_fields: Extra field names to scrub, added to the built-in list
            include_request_body: Send request bodies with request context
            payload: Custom data merged into every report
            person: User attached to every report
            verbose: Log outgoing payloads and acknowledgements
            endpoint: Collector URL
            timeout: Request timeout in seconds (default: none)
            http_client: Shared HTTP client to send reports through

        Raises:
            ConfigurationError: If the access token is missing or empty
        """
        if not access_token:
            raise ConfigurationError("Rollbar access_token is required")

        self._config = RollbarConfig(
            access_token=access_token,
            environment=DEFAULT_ENVIRONMENT if environment is None else environment,
            code_version=code_version,
            host=host,
            scrub_fields=tuple(scrub_fields or ()),
            include_request_body=include_request_body,
            payload=payload,
            person=person,
            verbose=verbose,
            endpoint=endpoint,
            timeout=timeout,
        )
        self._builder = PayloadBuilder(self._config)
        self._sender = ReportSender(
            endpoint,
            timeout=timeout,
            verbose=verbose,
            http_client=http_client,
        )

    @classmethod
    def from_config(
        cls,
        config: RollbarConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> Self:
        """Create a client from a configuration value."""
        return cls(
            config.access_token,
            environment=config.environment,
            code_version=config.code_version,
            host=config.host,
            scrub_fields=config.scrub_fields,
            include_request_body=config.include_request_body,
            payload=config.payload,
            person=config.person,
            verbose=config.verbose,
            endpoint=config.endpoint,
            timeout=config.timeout,
            http_client=http_client,
        )

    @classmethod
    def from_settings(
        cls,
        settings: RollbarSettings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> Self:
        """Create a client from ROLLBAR_* settings.

        Raises:
            ConfigurationError: If ROLLBAR_ACCESS_TOKEN is not set
        """
        settings = settings or get_settings()
        return cls.from_config(settings.to_config(), http_client=http_client)

    @property
    def config(self) -> RollbarConfig:
        """The client's immutable configuration."""
        return self._config

    @property
    def scrub_fields(self) -> tuple[str, ...]:
        """Built-in and configured field names scrubbed from reports."""
        return self._builder.scrub_fields

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    async def debug(self, message: str, context: ReportContext | None = None) -> RollbarResponse | None:
        """Log a debug-level message."""
        return await self._log_message(Level.DEBUG, message, context)

    async def info(self, message: str, context: ReportContext | None = None) -> RollbarResponse | None:
        """Log an info-level message."""
        return await self._log_message(Level.INFO, message, context)

    async def warning(self, message: str, context: ReportContext | None = None) -> RollbarResponse | None:
        """Log a warning-level message."""
        return await self._log_message(Level.WARNING, message, context)

    async def log(self, message: str, context: ReportContext | None = None) -> RollbarResponse | None:
        """Log an error-level message (without an exception)."""
        return await self._log_message(Level.ERROR, message, context)

    # -------------------------------------------------------------------------
    # Exceptions
    # -------------------------------------------------------------------------

    async def error(
        self,
        error: object,
        context: ReportContext | None = None,
        *,
        description: str | None = None,
    ) -> RollbarResponse | None:
        """Report an exception at error level.

        Values that are not exceptions are reported as a generic ``Error``
        whose message is the value's string form.
        """
        return await self._report_error(Level.ERROR, error, context, description)

    async def critical(
        self,
        error: object,
        context: ReportContext | None = None,
        *,
        description: str | None = None,
    ) -> RollbarResponse | None:
        """Report an exception at critical level."""
        return await self._report_error(Level.CRITICAL, error, context, description)

    # -------------------------------------------------------------------------
    # Request handling
    # -------------------------------------------------------------------------

    def build_request_context(self, request: Request) -> RequestContext:
        """Build request context from an incoming request.

        Sensitive headers are scrubbed; the body is left out.
        """
        headers = dict(request.headers.items())
        return RequestContext(
            url=str(request.url),
            method=request.method,
            headers=scrub_headers(headers, self.scrub_fields),
            params=dict(request.query_params),
            user_ip=self._client_ip(request),
        )

    def wrap(self, handler: Handler, options: WrapperOptions | None = None) -> Handler:
        """Wrap a request handler so that its failures are reported.

        Example:
            app = rollbar.wrap(handle_request, WrapperOptions(rethrow=False))
        """
        return wrap_handler(self, handler, options)

    def with_person(self, person: Person) -> Rollbar:
        """Return a new client that attaches ``person`` to every report."""
        return Rollbar.from_config(
            bind_person(self._config, person),
            http_client=self._sender.http_client,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the shared HTTP client, if one was supplied."""
        if self._sender.http_client is not None:
            await self._sender.http_client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"Rollbar(environment={self._config.environment!r})"

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _report_error(
        self,
        level: Level,
        error: object,
        context: ReportContext | None,
        description: str | None,
    ) -> RollbarResponse | None:
        try:
            body = self._builder.trace_body(_as_exception(error), description)
            payload = self._builder.build(level, body, context)
        except Exception as e:
            return self._build_failed(level, e)
        return await self._sender.send(payload)

    async def _log_message(
        self,
        level: Level,
        message: str,
        context: ReportContext | None,
    ) -> RollbarResponse | None:
        try:
            body = self._builder.message_body(message, context)
            payload = self._builder.build(level, body, context)
        except Exception as e:
            return self._build_failed(level, e)
        return await self._sender.send(payload)

    @staticmethod
    def _build_failed(level: Level, error: Exception) -> None:
        logger.error(
            LogEvents.PAYLOAD_FAILED,
            level=level.value,
            error=safe_message(error),
            error_type=type(error).__name__,
        )

    @staticmethod
    def _client_ip(request: Request) -> str | None:
        """Extract the client IP, considering edge and proxy headers."""
        connecting_ip = request.headers.get(CLIENT_IP_HEADER)
        if connecting_ip:
            return connecting_ip

        forwarded_for = request.headers.get(FORWARDED_FOR_HEADER)
        if forwarded_for:
            # First hop is the original client
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get(REAL_IP_HEADER)
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host
        return None
