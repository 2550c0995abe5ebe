"""Route table — ordered, append-only collection of registered routes.

The table owns the content hash that the dispatcher cache uses to decide
whether a compiled dispatcher is still current, and the host-aware
selection of candidate routes.
"""

import json
import zlib
from collections.abc import Iterator

from switchyard.routing.domain import NO_MATCH, match_domain
from switchyard.routing.route import Route


class RouteTable:
    """Append-only list of routes, replaced wholesale on ``clear()``.

    ``version`` increments on every mutation so observers (the dispatcher
    cache) can tell that the table changed.
    """

    __slots__ = ("_hash", "_routes", "version")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._hash: int | None = None
        self.version: int = 0

    def add(self, route: Route) -> None:
        self._routes.append(route)
        self._changed()

    def replace(self, routes: list[Route]) -> None:
        """Swap in a whole table (e.g. one loaded from the route cache)."""
        self._routes = list(routes)
        self._changed()

    def clear(self) -> None:
        self._routes = []
        self._changed()

    def _changed(self) -> None:
        self._hash = None
        self.version += 1

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __bool__(self) -> bool:
        return bool(self._routes)

    @property
    def routes(self) -> list[Route]:
        """A copy of the routes in registration order."""
        return list(self._routes)

    @property
    def content_hash(self) -> int:
        """Reproducible CRC32 fingerprint of the table's shape.

        Inline handlers and anonymous middleware contribute only a
        ``"closure"`` marker, so equivalent registrations hash equally.
        """
        if self._hash is None:
            shape = [route.shape() for route in self._routes]
            payload = json.dumps(shape, sort_keys=True, separators=(",", ":"))
            self._hash = zlib.crc32(payload.encode("utf-8"))
        return self._hash

    def select_for_host(self, host: str | None) -> list[Route]:
        """Candidate routes for *host*, in registration order.

        Unconstrained routes and exact-domain routes are always included.
        Routes whose domain matches only through placeholders are added
        after them, and only when no candidate already claims the same
        method and path. Without a host only unconstrained routes are
        candidates.
        """
        if not host:
            return [route for route in self._routes if route.domain is None]

        matched: list[Route] = []
        pattern_routes: list[Route] = []
        for route in self._routes:
            if route.domain is None:
                matched.append(route)
            elif match_domain(route.domain, host) is not NO_MATCH:
                if route.domain == host:
                    matched.append(route)
                else:
                    pattern_routes.append(route)

        claimed = {route.key for route in matched}
        return matched + [route for route in pattern_routes if route.key not in claimed]
