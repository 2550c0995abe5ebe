"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from switchyard.server.formatters import ErrorFormatter


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(routes_directory="routes", cache_enabled=True)
    """

    # Route sources (None = routes are registered programmatically only)
    routes_directory: str | Path | None = None
    route_file_suffix: str = ".py"

    # Debug mode disables the route cache and adds X-Debug-* headers
    debug: bool = False

    # Persisted route cache
    cache_enabled: bool = False
    cache_directory: str | Path | None = None  # None = system temp directory
    cache_version: int | None = None

    # Error rendering (None = JSONErrorFormatter)
    error_formatter: ErrorFormatter | None = None

    # Host whitelist
    enforce_domain: bool = False
    allowed_domains: tuple[str, ...] = ()

    # Method invoked for bare class handlers
    default_method: str = "process"

    # Upper bound on per-host compiled dispatchers kept at once
    dispatcher_cache_size: int = 256

    @property
    def use_cache(self) -> bool:
        """True when the persisted route cache is active."""
        return self.cache_enabled and not self.debug
