"""Client configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

from edge_rollbar.constants import DEFAULT_ENVIRONMENT, ROLLBAR_API_URL
from edge_rollbar.models import Person


@dataclass(frozen=True)
class RollbarConfig:
    """Immutable configuration owned by one client instance.

    Attributes:
        access_token: Server-side access token (post_server_item)
        environment: Environment name, e.g. "production" or "staging"
        code_version: Version of the reporting code (git SHA or semver)
        host: Server host identifier
        scrub_fields: Field names scrubbed in addition to the built-in list
        include_request_body: Whether request bodies are sent (off by default)
        payload: Custom data merged into every report
        person: User bound to every report from this client
        verbose: Log outgoing payloads and acknowledgements
        endpoint: Collector URL
        timeout: Request timeout in seconds, None for no timeout
    """

    access_token: str
    environment: str = DEFAULT_ENVIRONMENT
    code_version: str | None = None
    host: str | None = None
    scrub_fields: tuple[str, ...] = ()
    include_request_body: bool = False
    payload: Mapping[str, Any] | None = None
    person: Person | None = None
    verbose: bool = False
    endpoint: str = ROLLBAR_API_URL
    timeout: float | None = None


def bind_person(config: RollbarConfig, person: Person) -> RollbarConfig:
    """Derive a configuration that attaches ``person`` to every report.

    The default payload mapping is copied so the two configurations share
    no mutable state.
    """
    payload = dict(config.payload) if config.payload is not None else None
    return replace(config, person=person, payload=payload)


class RollbarSettings(BaseSettings):
    """Notifier settings loaded from environment variables."""

    access_token: str = ""
    environment: str = DEFAULT_ENVIRONMENT
    code_version: str | None = None
    host: str | None = None
    scrub_fields: list[str] = []
    include_request_body: bool = False
    verbose: bool = False

    # Transport
    endpoint: str = ROLLBAR_API_URL
    timeout: float | None = None

    model_config = SettingsConfigDict(
        env_prefix="ROLLBAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def to_config(self) -> RollbarConfig:
        """Build the client configuration these settings describe."""
        return RollbarConfig(
            access_token=self.access_token,
            environment=self.environment,
            code_version=self.code_version,
            host=self.host,
            scrub_fields=tuple(self.scrub_fields),
            include_request_body=self.include_request_body,
            verbose=self.verbose,
            endpoint=self.endpoint,
            timeout=self.timeout,
        )


@lru_cache
def get_settings() -> RollbarSettings:
    """Get cached settings instance."""
    return RollbarSettings()
