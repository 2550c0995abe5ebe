"""Error formatters — pluggable strategies that turn a failure into a payload.

A formatter returns a dict. The error mapper emits it as a JSON body,
unless the dict carries an ``"html"`` key, in which case that string is
sent as an HTML page. Either way ``"status"`` (when present) sets the
response status.

Message policy shared by the shipped formatters:

- debug mode: always the failure's literal message, plus diagnostics
  (exception class, error kind, originating file and line, traceback)
- production: route-not-found messages verbatim; other router errors only
  when their status is a 4xx; everything else is replaced with
  ``"An unexpected error occurred"``
"""

import traceback
from functools import cached_property
from typing import Any, Protocol

from kida import Environment

from switchyard.errors import ErrorKind, RouteNotFoundError, RouterError

GENERIC_MESSAGE = "An unexpected error occurred"


class ErrorFormatter(Protocol):
    """Strategy turning a failure into a response payload."""

    def format(self, exc: BaseException, debug: bool) -> dict[str, Any]: ...


def resolve_status(exc: BaseException) -> int:
    """HTTP status for *exc*: its carried code if valid, else 500.

    Route-not-found failures are always 404.
    """
    if isinstance(exc, RouteNotFoundError):
        return 404
    status = getattr(exc, "status", None)
    if isinstance(status, int) and not isinstance(status, bool) and 100 <= status < 600:
        return status
    return 500


def error_kind(exc: BaseException) -> ErrorKind:
    return getattr(exc, "kind", ErrorKind.INTERNAL)


def literal_message(exc: BaseException) -> str:
    """The failure's own message, without the status prefix router errors print."""
    if isinstance(exc, RouterError):
        return exc.detail
    return str(exc)


def public_message(exc: BaseException, debug: bool) -> str:
    """Message safe to show for *exc* under the debug/production policy."""
    if debug:
        return literal_message(exc)
    if isinstance(exc, RouteNotFoundError):
        return exc.detail
    if isinstance(exc, RouterError) and exc.is_client_error:
        return exc.detail
    return GENERIC_MESSAGE


def debug_details(exc: BaseException) -> dict[str, Any]:
    """Diagnostic fields: exception class, kind, origin, and traceback.

    Failures returned as values (never raised) have no traceback; their
    origin is reported as ``None``.
    """
    frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    origin = frames[-1] if frames else None
    return {
        "exception": type(exc).__name__,
        "kind": error_kind(exc).value,
        "file": origin.filename if origin else None,
        "line": origin.lineno if origin else None,
        "trace": "".join(traceback.format_exception(exc)),
    }


class JSONErrorFormatter:
    """Default formatter: ``{"error": ..., "status": ..., "debug"?: {...}}``."""

    __slots__ = ()

    def format(self, exc: BaseException, debug: bool) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error": public_message(exc, debug),
            "status": resolve_status(exc),
        }
        if debug:
            data["debug"] = debug_details(exc)
        return data


_ERROR_PAGE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ status }} {{ title }}</title>
</head>
<body>
<main class="switchyard-error" data-status="{{ status }}">
  <h1>{{ status }}</h1>
  <p>{{ message }}</p>
  {% if debug %}
  <section class="switchyard-debug">
    <h2>{{ debug["exception"] }} ({{ debug["kind"] }})</h2>
    {% if debug["file"] %}<p>{{ debug["file"] }}:{{ debug["line"] }}</p>{% end %}
    <pre>{{ debug["trace"] }}</pre>
  </section>
  {% end %}
</main>
</body>
</html>
"""


class HTMLErrorFormatter:
    """Renders the failure as an HTML page with kida.

    Pass a custom *source* template to change the page; it receives
    ``status``, ``title``, ``message``, and ``debug`` (a dict, or ``None``
    outside debug mode). Output is autoescaped.
    """

    def __init__(self, source: str = _ERROR_PAGE) -> None:
        self.source = source

    @cached_property
    def _template(self) -> Any:
        env = Environment(autoescape=True)
        return env.from_string(self.source)

    def format(self, exc: BaseException, debug: bool) -> dict[str, Any]:
        status = resolve_status(exc)
        context = {
            "status": status,
            "title": "Not Found" if status == 404 else "Error",
            "message": public_message(exc, debug),
            "debug": debug_details(exc) if debug else None,
        }
        return {"html": self._template.render(context), "status": status}
