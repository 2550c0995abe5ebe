"""Per-host dispatcher cache.

Each requesting host maps to a compiled dispatcher built from the
candidate routes selected for that host. Hosts that select the same
candidates share one dispatcher. An entry is reused only while the hash
it was built against equals the table's current content hash; any table
mutation clears every entry.

Both maps are bounded: the least recently used host (or candidate set) is
dropped once ``max_entries`` is exceeded, so a stream of distinct Host
headers cannot grow the cache without limit.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass

from switchyard.errors import ConfigurationError
from switchyard.routing.matcher import Dispatcher, PathMatcher, TrieMatcher
from switchyard.routing.table import RouteTable

logger = logging.getLogger("switchyard.router")

# Cache key used when the request carries no host
DEFAULT_KEY = "default"

DEFAULT_MAX_ENTRIES = 256


@dataclass(frozen=True, slots=True)
class DispatcherEntry:
    """A compiled dispatcher and the table hash it was built against."""

    dispatcher: Dispatcher
    hash: int


def _touch[K, V](entries: OrderedDict[K, V], key: K, value: V, limit: int) -> None:
    """Store *key* as most recently used, evicting the oldest keys past *limit*."""
    entries[key] = value
    entries.move_to_end(key)
    while len(entries) > limit:
        entries.popitem(last=False)


class DispatcherCache:
    """Maps a host (or ``DEFAULT_KEY``) to its compiled dispatcher.

    Private to one router instance; needs no locking.
    """

    __slots__ = (
        "_compiled",
        "_entries",
        "_matcher",
        "_table",
        "_table_version",
        "builds",
        "max_entries",
    )

    def __init__(
        self,
        table: RouteTable,
        matcher: PathMatcher | None = None,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        if max_entries < 1:
            msg = f"Dispatcher cache size must be at least 1, got {max_entries}"
            raise ConfigurationError(msg)
        self._table = table
        self._matcher: PathMatcher = matcher or TrieMatcher()
        self._entries: OrderedDict[str, DispatcherEntry] = OrderedDict()
        # Candidate route identities -> dispatcher compiled for them
        self._compiled: OrderedDict[tuple[int, ...], Dispatcher] = OrderedDict()
        self._table_version = table.version
        self.max_entries = max_entries
        # Number of dispatchers compiled so far (observability and tests)
        self.builds: int = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @property
    def compiled(self) -> int:
        """Number of distinct dispatchers currently held."""
        return len(self._compiled)

    def clear(self) -> None:
        self._entries.clear()
        self._compiled.clear()
        self._table_version = self._table.version

    def get(self, host: str | None) -> Dispatcher:
        """Return the dispatcher for *host*, compiling it if stale or absent."""
        if self._table.version != self._table_version:
            self.clear()

        key = host or DEFAULT_KEY
        current_hash = self._table.content_hash
        entry = self._entries.get(key)
        if entry is not None and entry.hash == current_hash:
            _touch(self._entries, key, entry, self.max_entries)
            return entry.dispatcher

        candidates = self._table.select_for_host(host)
        identity = tuple(id(route) for route in candidates)
        dispatcher = self._compiled.get(identity)
        if dispatcher is None:
            dispatcher = self._matcher.build(
                (route.method, route.path, route) for route in candidates
            )
            self.builds += 1
            logger.debug(
                "Compiled dispatcher for %s (%d of %d routes)",
                key,
                len(candidates),
                len(self._table),
            )
        _touch(self._compiled, identity, dispatcher, self.max_entries)
        _touch(
            self._entries,
            key,
            DispatcherEntry(dispatcher=dispatcher, hash=current_hash),
            self.max_entries,
        )
        return dispatcher
