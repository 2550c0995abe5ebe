"""Return-value coercion — maps handler return values to Response objects.

Dispatch order:

1. ``Response``  -> pass through unchanged
2. anything else -> 200, ``application/json`` body

A value ``json`` cannot encode raises ``TypeError``; the request
pipeline maps it like any other handler failure.
"""

from typing import Any

from switchyard.http.response import Response, json_response


def negotiate(value: Any) -> Response:
    """Convert a route handler's return value to a Response."""
    match value:
        case Response():
            return value
        case _:
            return json_response(value)
