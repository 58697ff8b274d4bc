"""Diagnostic logging for the notifier.

The notifier never configures logging itself; its entries go through
whatever structlog setup the host application installed. Every entry
carries the notifier name and version so host log pipelines can tell
the notifier's own problems (transport failures, rejected items) apart
from the application's.
"""

import structlog

from edge_rollbar.constants import NOTIFIER_NAME, NOTIFIER_VERSION


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger bound to the notifier's identity.

    Args:
        name: The logger name (typically __name__).

    Returns:
        A lazily bound structlog logger.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.error("rollbar.send.failed", error="connection refused")
    """
    if name is None:
        return structlog.get_logger(notifier=NOTIFIER_NAME, notifier_version=NOTIFIER_VERSION)
    return structlog.get_logger(name, notifier=NOTIFIER_NAME, notifier_version=NOTIFIER_VERSION)
