"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Immutable by convention,
built incrementally by design.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a status (or body), then chain ``.with_*()`` calls to set
    headers and body. Each call returns a new ``Response``.
    """

    body: bytes = b""
    status: int = 200
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with *name* set to *value*.

        Any existing values for *name* are replaced.
        """
        lower = name.lower()
        kept = tuple((k, v) for k, v in self.headers if k.lower() != lower)
        return replace(self, headers=(*kept, (name, value)))

    def with_added_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional value for *name*."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with each header in *headers* set."""
        response = self
        for name, value in headers.items():
            response = response.with_header(name, value)
        return response

    def with_body(self, body: bytes | str) -> Response:
        """Return a new Response with a different body."""
        return replace(self, body=create_stream(body))

    # -- Accessors --

    def header(self, name: str) -> str | None:
        """Return the last value set for *name*, or None."""
        lower = name.lower()
        for key, value in reversed(self.headers):
            if key.lower() == lower:
                return value
        return None

    @property
    def content_type(self) -> str | None:
        return self.header("Content-Type")

    @property
    def text(self) -> str:
        """Body as string."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body)


def create_response(status: int = 200) -> Response:
    """Create an empty response with *status*."""
    return Response(status=status)


def create_stream(payload: bytes | str) -> bytes:
    """Turn a text or byte payload into a response body."""
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return payload


def json_response(data: Any, status: int = 200) -> Response:
    """Serialize *data* as a JSON-bodied response."""
    return (
        create_response(status)
        .with_header("Content-Type", "application/json")
        .with_body(json_module.dumps(data))
    )


def html_response(html: str, status: int = 200) -> Response:
    """Wrap an HTML document in a response."""
    return (
        create_response(status)
        .with_header("Content-Type", "text/html; charset=utf-8")
        .with_body(html)
    )
