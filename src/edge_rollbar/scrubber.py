"""Sensitive data scrubbing for report payloads.

Produces sanitized copies of caller data before it is serialized: keys that
name sensitive fields are masked, reference cycles are cut and nesting is
capped at ``MAX_SCRUB_DEPTH``, so the result is always finite and never
shares containers with the input.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from edge_rollbar.constants import (
    CIRCULAR_REFERENCE_VALUE,
    DEFAULT_SCRUB_FIELDS,
    DEFAULT_SCRUB_HEADERS,
    MAX_DEPTH_VALUE,
    MAX_SCRUB_DEPTH,
    SCRUBBED_VALUE,
)

_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def build_scrub_fields(extra_fields: Iterable[str] | None = None) -> tuple[str, ...]:
    """Return the built-in sensitive field names plus any additions.

    Additions extend the built-in list; they never replace it.
    """
    fields = list(DEFAULT_SCRUB_FIELDS)
    for field in extra_fields or ():
        if field not in fields:
            fields.append(field)
    return tuple(fields)


def _is_scrub_field(key: Any, lower_fields: frozenset[str]) -> bool:
    return isinstance(key, str) and key.lower() in lower_fields


def _is_container(value: Any) -> bool:
    return isinstance(value, (Mapping, *_SEQUENCE_TYPES))


def _scrub(value: Any, lower_fields: frozenset[str], seen: set[int], depth: int) -> Any:
    # Empty containers can't hold a cycle, and () / frozenset() are shared singletons
    if not value:
        return {} if isinstance(value, Mapping) else []

    # Containers are tracked by identity for the lifetime of one scrub call
    if id(value) in seen:
        return CIRCULAR_REFERENCE_VALUE
    if depth > MAX_SCRUB_DEPTH:
        return MAX_DEPTH_VALUE
    seen.add(id(value))

    if isinstance(value, Mapping):
        result: dict[str, Any] = {}
        for key, item in value.items():
            name = key if isinstance(key, str) else str(key)
            if _is_scrub_field(key, lower_fields):
                result[name] = SCRUBBED_VALUE
            elif _is_container(item):
                result[name] = _scrub(item, lower_fields, seen, depth + 1)
            else:
                result[name] = item
        return result

    return [
        _scrub(item, lower_fields, seen, depth + 1) if _is_container(item) else item
        for item in value
    ]


def scrub(
    value: Any,
    scrub_fields: Iterable[str],
    seen: set[int] | None = None,
) -> Any:
    """Recursively scrub sensitive data from a structure.

    Args:
        value: The data to scrub (mapping, sequence, or scalar)
        scrub_fields: Field names to mask, matched case-insensitively and exactly
        seen: Identities of containers already visited in this call tree.
            A container met a second time is replaced with the
            circular-reference marker instead of being descended into.

    Returns:
        A new structure with sensitive values masked. Scalars are returned
        as-is; mapping keys are always strings; sequences become lists.
    """
    if not _is_container(value):
        return value

    lower_fields = frozenset(field.lower() for field in scrub_fields)
    return _scrub(value, lower_fields, set() if seen is None else seen, 1)


def scrub_headers(
    headers: Mapping[str, str],
    extra_fields: Iterable[str] = (),
) -> dict[str, str]:
    """Scrub HTTP headers, always masking authentication headers.

    A header is masked when its name contains, case-insensitively, any of the
    built-in sensitive header fragments or any of the extra fields.

    Args:
        headers: Header name to value mapping
        extra_fields: Additional name fragments to mask

    Returns:
        Scrubbed copy of the headers.
    """
    fragments = [fragment.lower() for fragment in (*DEFAULT_SCRUB_HEADERS, *extra_fields)]

    return {
        name: SCRUBBED_VALUE if any(fragment in name.lower() for fragment in fragments) else value
        for name, value in headers.items()
    }
