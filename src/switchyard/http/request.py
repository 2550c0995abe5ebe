"""Immutable HTTP request.

Frozen metadata and an already-received body. The request is honest
about what it is: received data that doesn't change.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import parse_qs, urlsplit

from switchyard.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``host`` is the host component of the request URI (no port), or ``""``
    when the request carries no host at all. ``path_params`` is empty until
    the router has matched a route.
    """

    method: str
    path: str
    host: str = ""
    scheme: str = "http"
    port: int | None = None
    query_string: str = ""
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    path_params: Mapping[str, str] = field(default_factory=dict)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def query(self) -> dict[str, list[str]]:
        """Parsed query string."""
        return parse_qs(self.query_string, keep_blank_values=True)

    @property
    def url(self) -> str:
        """Full request URL."""
        netloc = self.host
        if netloc and self.port is not None:
            netloc = f"{netloc}:{self.port}"
        base = f"{self.scheme}://{netloc}{self.path}" if netloc else self.path
        if self.query_string:
            return f"{base}?{self.query_string}"
        return base

    # -- Body access --

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body)

    def text(self) -> str:
        """Read the body as text (UTF-8)."""
        return self.body.decode("utf-8")

    # -- Transformations --

    def with_path_params(self, path_params: Mapping[str, str]) -> Request:
        """Return a copy carrying the matched route variables."""
        return replace(self, path_params=dict(path_params))

    # -- Factory --

    @classmethod
    def from_url(
        cls,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | tuple[tuple[str, str], ...] | None = None,
        body: bytes | str = b"",
    ) -> Request:
        """Create a Request from a method and an absolute or relative URL.

        A relative URL takes its host from the ``Host`` header, if any.
        """
        parts = urlsplit(url)
        header_map = headers if isinstance(headers, Headers) else Headers(headers or ())
        host = parts.hostname or ""
        port = parts.port
        if not host:
            host_header = header_map.get("host", "")
            host, _, port_text = host_header.partition(":")
            host = host.lower()
            port = int(port_text) if port_text.isdigit() else None
        return cls(
            method=method.upper(),
            path=parts.path or "/",
            host=host,
            scheme=parts.scheme or "http",
            port=port,
            query_string=parts.query,
            headers=header_map,
            body=body.encode("utf-8") if isinstance(body, str) else body,
        )
