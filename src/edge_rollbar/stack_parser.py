"""Stack trace normalization.

Turns the free-text stack trace carried by an error into an ordered list of
``StackFrame`` objects, oldest call first.

Supported frame dialects, tried in order (first match wins)::

    at functionName (filename.js:10:15)          engine-style named frame
    at async handle (file:///srv/worker.js:50:10)
    at filename.js:10:15                         engine-style anonymous frame
    functionName@filename.js:10:15               alternate-engine frame
    @filename.js:10:15
    File "app/handlers.py", line 42, in handle   Python traceback frame

Lines matching none of them are kept as ``(unparsed)`` frames whose method
is the raw line.
"""

from __future__ import annotations

import re
import traceback
from collections.abc import Callable, Sequence

from edge_rollbar.constants import (
    ANONYMOUS_METHOD,
    DEFAULT_ERROR_KIND,
    NO_STACK_FILENAME,
    UNPARSED_FILENAME,
)
from edge_rollbar.exceptions import ReportedError
from edge_rollbar.models import StackFrame

FrameMatcher = Callable[[str], StackFrame | None]

# Location is always the last two integer groups, so the lazy filename may
# itself contain colons (file:// URLs, Windows drives).
ENGINE_FRAME_REGEX = re.compile(
    r"^\s*at\s+(?:async\s+)?(?:(?P<method>[\w.<>\[\]$]+)\s+\()?"
    r"(?P<filename>.+?):(?P<lineno>[0-9]+):(?P<colno>[0-9]+)\)?$"
)

ENGINE_ANONYMOUS_REGEX = re.compile(
    r"^\s*at\s+(?P<filename>.+?):(?P<lineno>[0-9]+):(?P<colno>[0-9]+)$"
)

ALTERNATE_ENGINE_REGEX = re.compile(
    r"^(?P<method>[\w.<>\[\]$]+)?@(?P<filename>.+?):(?P<lineno>[0-9]+):(?P<colno>[0-9]+)$"
)

PYTHON_FRAME_REGEX = re.compile(
    r'^\s*File "(?P<filename>[^"]+)", line (?P<lineno>[0-9]+), in (?P<method>.+)$'
)


def _frame_from_match(match: re.Match[str] | None, method: str | None) -> StackFrame | None:
    if match is None:
        return None
    groups = match.groupdict()
    colno = groups.get("colno")
    return StackFrame(
        filename=groups["filename"],
        lineno=int(groups["lineno"]),
        colno=int(colno) if colno is not None else None,
        method=method or ANONYMOUS_METHOD,
    )


def match_engine_frame(line: str) -> StackFrame | None:
    """Match ``at [async] [method (]path:line:col[)]``."""
    match = ENGINE_FRAME_REGEX.match(line)
    return _frame_from_match(match, match.group("method") if match else None)


def match_engine_anonymous_frame(line: str) -> StackFrame | None:
    """Match ``at path:line:col``."""
    return _frame_from_match(ENGINE_ANONYMOUS_REGEX.match(line), None)


def match_alternate_engine_frame(line: str) -> StackFrame | None:
    """Match ``[method]@path:line:col``."""
    match = ALTERNATE_ENGINE_REGEX.match(line)
    return _frame_from_match(match, match.group("method") if match else None)


def match_python_frame(line: str) -> StackFrame | None:
    """Match ``File "path", line N, in name``."""
    match = PYTHON_FRAME_REGEX.match(line)
    return _frame_from_match(match, match.group("method") if match else None)


FRAME_MATCHERS: tuple[FrameMatcher, ...] = (
    match_engine_frame,
    match_engine_anonymous_frame,
    match_alternate_engine_frame,
    match_python_frame,
)


def error_kind(error: BaseException) -> str:
    """Return the declared kind name of an error."""
    if isinstance(error, ReportedError):
        return error.kind or DEFAULT_ERROR_KIND
    return type(error).__name__ or DEFAULT_ERROR_KIND


def safe_message(value: object) -> str:
    """Return ``str(value)``, or a placeholder when the value cannot be rendered."""
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def error_message(error: BaseException) -> str:
    if isinstance(error, ReportedError):
        return error.message
    return safe_message(error)


def stack_text(error: BaseException) -> str | None:
    """Return the raw stack text of an error, or None when it has none.

    Python tracebacks are rendered innermost call first, one
    ``File "...", line N, in name`` line per frame, so they read like the
    foreign traces and come out oldest-first after normalization.
    """
    if isinstance(error, ReportedError):
        return error.stack or None

    if error.__traceback__ is None:
        return None

    summary = traceback.extract_tb(error.__traceback__)
    return "\n".join(
        f'  File "{frame.filename}", line {frame.lineno}, in {frame.name}'
        for frame in reversed(summary)
    )


def _placeholder(error: BaseException) -> list[StackFrame]:
    return [StackFrame(filename=NO_STACK_FILENAME, method=error_kind(error))]


def _is_summary_line(line: str, kind: str) -> bool:
    for name in {kind, DEFAULT_ERROR_KIND}:
        if line == name or line.startswith(f"{name}:"):
            return True
    return False


def parse_stack_line(
    line: str,
    matchers: Sequence[FrameMatcher] = FRAME_MATCHERS,
) -> StackFrame:
    """Parse one trimmed, non-empty stack line.

    Never fails: a line no matcher recognizes becomes an ``(unparsed)``
    frame carrying the raw line as its method.
    """
    for matcher in matchers:
        frame = matcher(line)
        if frame is not None:
            return frame
    return StackFrame(filename=UNPARSED_FILENAME, method=line)


def parse_stack_frames(
    error: BaseException,
    matchers: Sequence[FrameMatcher] = FRAME_MATCHERS,
) -> list[StackFrame]:
    """Parse an error's stack trace into frames, oldest call first.

    Args:
        error: The error to normalize
        matchers: Frame grammars to try, in order

    Returns:
        At least one frame. Errors without a usable trace get a single
        ``(no stack trace)`` placeholder named after the error kind.
    """
    text = stack_text(error)
    if not text:
        return _placeholder(error)

    kind = error_kind(error)
    frames: list[StackFrame] = []
    first_line = True

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        if first_line:
            first_line = False
            if _is_summary_line(line, kind):
                continue
        frames.append(parse_stack_line(line, matchers))

    if not frames:
        return _placeholder(error)

    # Collector expects the outermost caller first
    frames.reverse()
    return frames


def create_stack_frame(
    filename: str,
    method: str,
    lineno: int | None = None,
    colno: int | None = None,
) -> StackFrame:
    """Create a synthetic stack frame for a known location."""
    return StackFrame(filename=filename, method=method, lineno=lineno, colno=colno)


def get_error_location(error: BaseException) -> StackFrame | None:
    """Return the frame where the error originated.

    Returns None when the trace could not be resolved to a real location.
    """
    frames = parse_stack_frames(error)
    frame = frames[-1]
    if frame.filename in (NO_STACK_FILENAME, UNPARSED_FILENAME):
        return None
    return frame
