"""edge-rollbar - Rollbar error reporting for serverless and edge request handlers.

Example usage:
    from edge_rollbar import ReportContext, Rollbar, WrapperOptions

    rollbar = Rollbar(access_token="post_server_item_token", environment="staging")

    # Report an exception with the request that caused it
    try:
        ...
    except Exception as exc:
        await rollbar.error(exc, ReportContext(request=rollbar.build_request_context(request)))

    # Log a message with custom data (sensitive keys are scrubbed)
    await rollbar.warning("quota almost exhausted", ReportContext(custom={"used": 0.93}))

    # Wrap a handler: failures are reported and become a 500 response
    handler = rollbar.wrap(handle_request, WrapperOptions(rethrow=False))

    # Or report every unhandled exception of a Starlette app
    app.add_middleware(RollbarMiddleware, rollbar=rollbar)
"""

from edge_rollbar.client import Rollbar
from edge_rollbar.config import RollbarConfig, RollbarSettings, bind_person, get_settings
from edge_rollbar.constants import NOTIFIER_VERSION
from edge_rollbar.exceptions import ConfigurationError, ReportedError, RollbarError
from edge_rollbar.logger import get_logger
from edge_rollbar.models import (
    ExceptionInfo,
    Level,
    MessageBody,
    Person,
    ReportBody,
    ReportContext,
    RequestContext,
    RollbarResponse,
    StackFrame,
    TraceBody,
)
from edge_rollbar.scrubber import scrub, scrub_headers
from edge_rollbar.stack_parser import (
    create_stack_frame,
    get_error_location,
    parse_stack_frames,
)
from edge_rollbar.wrapper import (
    RollbarMiddleware,
    TaskContext,
    WorkerContext,
    WrapperOptions,
    wrap_handler,
)

__version__ = NOTIFIER_VERSION

__all__ = [
    # Main client
    "Rollbar",
    # Configuration
    "RollbarConfig",
    "RollbarSettings",
    "bind_person",
    "get_settings",
    # Context models
    "Person",
    "RequestContext",
    "ReportContext",
    "Level",
    # Wire models
    "StackFrame",
    "ExceptionInfo",
    "TraceBody",
    "MessageBody",
    "ReportBody",
    "RollbarResponse",
    # Request handling
    "WrapperOptions",
    "WorkerContext",
    "TaskContext",
    "RollbarMiddleware",
    "wrap_handler",
    # Utilities
    "scrub",
    "scrub_headers",
    "parse_stack_frames",
    "get_error_location",
    "create_stack_frame",
    "get_logger",
    # Exceptions
    "RollbarError",
    "ConfigurationError",
    "ReportedError",
]
