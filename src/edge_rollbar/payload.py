"""Assembly of the collector wire document."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

from edge_rollbar.config import RollbarConfig
from edge_rollbar.constants import LANGUAGE, NOTIFIER_NAME, NOTIFIER_VERSION, PLATFORM
from edge_rollbar.models import (
    ExceptionInfo,
    Level,
    MessageBody,
    ReportBody,
    ReportContext,
    RequestContext,
    TraceBody,
)
from edge_rollbar.scrubber import build_scrub_fields, scrub, scrub_headers
from edge_rollbar.stack_parser import error_kind, error_message, parse_stack_frames


class PayloadBuilder:
    """Builds report payloads for one client configuration.

    Every untrusted data region (default payload, custom data, request body)
    is scrubbed on its way into the document; person data, fingerprint,
    title and uuid are attached as given.
    """

    def __init__(self, config: RollbarConfig) -> None:
        self.config = config
        self.scrub_fields = build_scrub_fields(config.scrub_fields)

    def trace_body(self, error: BaseException, description: str | None = None) -> TraceBody:
        """Build the exception body variant for an error."""
        return TraceBody(
            frames=tuple(parse_stack_frames(error)),
            exception=ExceptionInfo(
                class_name=error_kind(error),
                message=error_message(error),
                description=description,
            ),
        )

    def message_body(self, message: str, context: ReportContext | None = None) -> MessageBody:
        """Build the message body variant, carrying scrubbed custom data as extra fields."""
        extra = {}
        if context is not None and context.custom is not None:
            extra = scrub(context.custom, self.scrub_fields)
        return MessageBody(body=message, extra=extra)

    def build(
        self,
        level: Level,
        body: ReportBody,
        context: ReportContext | None = None,
    ) -> dict[str, Any]:
        """Build the complete wire document.

        Args:
            level: Severity of the report
            body: Exactly one body variant (trace or message)
            context: Optional per-call report context

        Returns:
            JSON-ready payload dictionary.
        """
        config = self.config
        data: dict[str, Any] = {
            "environment": config.environment,
            "body": body.to_wire(),
            "level": Level(level).value,
            "timestamp": int(time.time()),
            "platform": PLATFORM,
            "language": LANGUAGE,
            "notifier": {
                "name": NOTIFIER_NAME,
                "version": NOTIFIER_VERSION,
            },
        }

        if config.code_version:
            data["code_version"] = config.code_version
        if config.host:
            data["server"] = {"host": config.host}

        custom = self._merge_custom(context)
        if custom is not None:
            data["custom"] = custom

        person = context.person if context is not None and context.person else config.person
        if person is not None:
            data["person"] = person.to_wire()

        if context is not None:
            if context.request is not None:
                data["request"] = self._request_block(context.request)
            if context.fingerprint:
                data["fingerprint"] = context.fingerprint
            if context.title:
                data["title"] = context.title
            if context.uuid:
                data["uuid"] = context.uuid

        return {"access_token": config.access_token, "data": data}

    def _merge_custom(self, context: ReportContext | None) -> dict[str, Any] | None:
        sources: list[Mapping[str, Any]] = []
        if self.config.payload is not None:
            sources.append(self.config.payload)
        if context is not None and context.custom is not None:
            sources.append(context.custom)
        if not sources:
            return None

        # Later sources override earlier ones; each is scrubbed separately
        custom: dict[str, Any] = {}
        for source in sources:
            scrubbed = scrub(source, self.scrub_fields)
            if isinstance(scrubbed, dict):
                custom.update(scrubbed)
        return custom

    def _request_block(self, request: RequestContext) -> dict[str, Any]:
        block: dict[str, Any] = {
            "url": request.url,
            "method": request.method,
        }
        if request.headers is not None:
            block["headers"] = scrub_headers(request.headers, self.scrub_fields)
        if request.params is not None:
            block["params"] = dict(request.params)
        if request.user_ip:
            block["user_ip"] = request.user_ip
        if self.config.include_request_body and request.body is not None:
            block["body"] = scrub(request.body, self.scrub_fields)
        return block
