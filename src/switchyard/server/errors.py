"""Error-to-response mapping.

The single place where routing failures and unexpected exceptions become
Response objects. The status comes from the failure (valid 100-599 codes,
else 500; route-not-found always 404); the body comes from the configured
``ErrorFormatter``.
"""

import logging

from switchyard.errors import RouterError
from switchyard.http.response import Response, html_response, json_response
from switchyard.server.formatters import ErrorFormatter, JSONErrorFormatter, resolve_status

logger = logging.getLogger("switchyard.server")

_DEFAULT_FORMATTER = JSONErrorFormatter()


def map_error(
    exc: BaseException,
    *,
    debug: bool = False,
    formatter: ErrorFormatter | None = None,
) -> Response:
    """Map a failure to a Response.

    JSON by default; an HTML page when the formatter's payload carries an
    ``"html"`` key. Headers carried by router errors (e.g. ``Allow``) are
    copied onto the response.
    """
    status = resolve_status(exc)
    if status >= 500:
        logger.error("%d %s: %s", status, type(exc).__name__, exc, exc_info=exc)
    else:
        logger.debug("%d %s", status, exc)

    data = (formatter or _DEFAULT_FORMATTER).format(exc, debug)

    if "html" in data:
        response = html_response(data["html"], status=data.get("status", status))
    else:
        response = json_response(data).with_status(status)

    if isinstance(exc, RouterError):
        for name, value in exc.headers:
            response = response.with_header(name, value)
    return response
