"""Internal HTTP sender for report payloads."""

from __future__ import annotations

import json
from typing import Any

import httpx

from edge_rollbar.constants import ROLLBAR_API_URL, LogEvents
from edge_rollbar.logger import get_logger
from edge_rollbar.models import RollbarResponse

logger = get_logger(__name__)


class ReportSender:
    """Posts one payload per report to the collector.

    Transport failures and malformed acknowledgements are logged and turned
    into a None result; they never propagate to the caller.
    """

    def __init__(
        self,
        endpoint: str = ROLLBAR_API_URL,
        *,
        timeout: float | None = None,
        verbose: bool = False,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the sender.

        Args:
            endpoint: Collector URL
            timeout: Request timeout in seconds, None for no timeout
            verbose: Log outgoing payloads and acknowledgements
            http_client: Shared client to send through. When omitted, a
                short-lived client is opened for each report.
        """
        self.endpoint = endpoint
        self.timeout = httpx.Timeout(timeout)
        self.verbose = verbose
        self._http_client = http_client

    @property
    def http_client(self) -> httpx.AsyncClient | None:
        return self._http_client

    async def send(self, payload: dict[str, Any]) -> RollbarResponse | None:
        """Send a payload and return the parsed acknowledgement.

        Args:
            payload: Wire document built by the payload builder

        Returns:
            The acknowledgement (possibly carrying a rejection), or None if
            the payload could not be delivered or the reply was unreadable.
        """
        try:
            content = json.dumps(payload, default=str)
        except (TypeError, ValueError) as e:
            logger.error(LogEvents.SEND_FAILED, error=str(e), error_type=type(e).__name__)
            return None

        if self.verbose:
            logger.info(LogEvents.PAYLOAD_SENDING, payload=content)

        try:
            if self._http_client is not None:
                response = await self._post(self._http_client, content)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._post(client, content)
            result = RollbarResponse.model_validate(response.json())
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.error(LogEvents.SEND_FAILED, error=str(e), error_type=type(e).__name__)
            return None

        if self.verbose:
            logger.info(LogEvents.RESPONSE_RECEIVED, response=result.model_dump(exclude_none=True))

        if result.err != 0:
            logger.error(LogEvents.SEND_REJECTED, err=result.err, message=result.message)

        return result

    async def _post(self, client: httpx.AsyncClient, content: str) -> httpx.Response:
        return await client.post(
            self.endpoint,
            content=content,
            headers={"Content-Type": "application/json"},
        )
