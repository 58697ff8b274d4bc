"""Request handler wrapping and middleware.

Catches failures in request handlers, reports them with the request
context and turns them into an error response.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Protocol

from starlette.background import BackgroundTask
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from edge_rollbar.constants import GENERIC_ERROR_MESSAGE, LogEvents
from edge_rollbar.logger import get_logger
from edge_rollbar.models import ReportContext

if TYPE_CHECKING:
    from edge_rollbar.client import Rollbar

logger = get_logger(__name__)


class WorkerContext(Protocol):
    """Host capability for finishing work after the response is returned."""

    def wait_until(self, awaitable: Awaitable[Any]) -> None: ...


Handler = Callable[..., Awaitable[Response] | Response]


@dataclass(frozen=True)
class WrapperOptions:
    """Options for a wrapped request handler.

    Attributes:
        rethrow: Re-raise the original exception after reporting it
        error_response: Builds the response returned for a failure
        context: Extra report context for failures of this handler
    """

    rethrow: bool = False
    error_response: Callable[[Exception], Response] | None = None
    context: ReportContext | None = None


class TaskContext:
    """Asyncio implementation of ``WorkerContext``.

    Scheduled work runs as tasks on the running loop; ``drain`` waits for
    whatever is still pending, e.g. before a serverless invocation ends.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Future[Any]] = set()

    def wait_until(self, awaitable: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(awaitable)
        # Hold a reference until done so the task is not garbage collected
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for all scheduled work to finish."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


def default_error_response(_error: Exception) -> Response:
    """Generic 500 response that exposes no error details."""
    return JSONResponse({"error": GENERIC_ERROR_MESSAGE}, status_code=500)


def _failure_context(rollbar: Rollbar, request: Request, base: ReportContext | None) -> ReportContext:
    return replace(base or ReportContext(), request=rollbar.build_request_context(request))


def wrap_handler(
    rollbar: Rollbar,
    handler: Handler,
    options: WrapperOptions | None = None,
) -> Callable[..., Awaitable[Response]]:
    """Wrap a ``(request, env, ctx)`` handler so that its failures are reported.

    Args:
        rollbar: Client used to report failures
        handler: Sync or async request handler
        options: Wrapper behavior

    Returns:
        An async handler with the same signature. On failure the report is
        handed to ``ctx.wait_until`` when a context is given, and awaited
        otherwise.
    """
    options = options or WrapperOptions()

    @functools.wraps(handler)
    async def wrapped(request: Request, env: Any = None, ctx: WorkerContext | None = None) -> Response:
        try:
            result = handler(request, env, ctx)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            logger.error(
                LogEvents.HANDLER_FAILED,
                method=request.method,
                url=str(request.url),
                error_type=type(e).__name__,
            )

            report = rollbar.error(e, _failure_context(rollbar, request, options.context))
            if ctx is not None:
                ctx.wait_until(report)
                logger.debug(LogEvents.REPORT_SCHEDULED)
            else:
                await report

            if options.rethrow:
                raise
            if options.error_response is not None:
                return options.error_response(e)
            return default_error_response(e)

    return wrapped


class RollbarMiddleware(BaseHTTPMiddleware):
    """Middleware that reports unhandled exceptions from any route.

    The report is sent as a background task of the error response, so the
    client gets its 500 without waiting on the collector. With ``rethrow``
    the report is awaited and the exception propagates to outer middleware.
    """

    def __init__(
        self,
        app: ASGIApp,
        rollbar: Rollbar,
        rethrow: bool = False,
        context: ReportContext | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application.
            rollbar: Client used to report failures.
            rethrow: Re-raise the exception after reporting it.
            context: Extra report context for every failure.
        """
        super().__init__(app)
        self.rollbar = rollbar
        self.rethrow = rethrow
        self.context = context

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                LogEvents.HANDLER_FAILED,
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
            )
            report_context = _failure_context(self.rollbar, request, self.context)

            if self.rethrow:
                await self.rollbar.error(e, report_context)
                raise

            return JSONResponse(
                {"error": GENERIC_ERROR_MESSAGE},
                status_code=500,
                background=BackgroundTask(self.rollbar.error, e, report_context),
            )
