"""Route cache — persist the route table across process restarts.

One JSON record per installation::

    {
        "routes": [...],             # Route.to_dict() entries
        "cached_at": 1760000000,     # unix timestamp
        "version": 3,                # optional cache format/app version
        "route_files_mtime": 17...   # optional max mtime of the route files
    }

The record is trusted only while its version and route-file fingerprint
match the current ones. Writers take an exclusive lock on a sidecar
``.lock`` file and swap the record in with an atomic rename, so readers
never lock and never see a partial write. The file is owner-only (0600).
"""

import fcntl
import hashlib
import json
import logging
import os
import tempfile
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from switchyard.errors import ConfigurationError, PersistenceError
from switchyard.routing.route import Route

logger = logging.getLogger("switchyard.cache")

# Token derived from the install location; not guessable from request input
_INSTALL_TOKEN = hashlib.sha256(str(Path(__file__).resolve().parent).encode("utf-8")).hexdigest()[:32]


def routes_fingerprint(source_dir: str | Path, suffix: str = ".py") -> int:
    """Largest modification time (whole seconds) across the route files.

    Walks *source_dir* recursively; returns 0 when it is not a directory.
    """
    root = Path(source_dir)
    if not root.is_dir():
        return 0
    latest = 0
    for path in root.rglob(f"*{suffix}"):
        if path.is_file():
            latest = max(latest, int(path.stat().st_mtime))
    return latest


class RouteCache:
    """Reads and writes the persisted route table.

    Usage::

        cache = RouteCache("/var/cache/myapp")
        if cache.is_valid("routes", version=3):
            routes = cache.load()
        else:
            cache.save(routes, "routes", version=3)
    """

    __slots__ = ("directory", "path", "suffix")

    def __init__(self, directory: str | Path | None = None, *, suffix: str = ".py") -> None:
        self.directory = Path(directory) if directory is not None else Path(tempfile.gettempdir())
        if not self.directory.is_dir():
            msg = f"Cache directory does not exist: {self.directory}"
            raise ConfigurationError(msg)
        if not os.access(self.directory, os.W_OK):
            msg = f"Cache directory is not writable: {self.directory}"
            raise ConfigurationError(msg)
        self.path = self.directory / f"switchyard_routes_{_INSTALL_TOKEN}.cache"
        self.suffix = suffix

    def exists(self) -> bool:
        return self.path.is_file()

    def _read_record(self) -> dict[str, Any]:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            msg = "Route cache file does not exist"
            raise PersistenceError(msg) from exc
        except OSError as exc:
            msg = f"Failed to read route cache file: {exc}"
            raise PersistenceError(msg) from exc
        try:
            data = json.loads(content)
        except ValueError as exc:
            msg = "Invalid route cache format"
            raise PersistenceError(msg) from exc
        if not isinstance(data, dict) or not isinstance(data.get("routes"), list):
            msg = "Invalid route cache format"
            raise PersistenceError(msg)
        return data

    def is_valid(self, source_dir: str | Path | None, version: int | None = None) -> bool:
        """True if the record exists, decodes, and matches version and fingerprint."""
        try:
            data = self._read_record()
        except PersistenceError:
            return False

        if version is not None and data.get("version") != version:
            return False

        if "route_files_mtime" in data:
            current = routes_fingerprint(source_dir, self.suffix) if source_dir else 0
            if data["route_files_mtime"] != current:
                return False

        return True

    def load(self) -> list[Route]:
        """Load the persisted routes.

        Raises ``PersistenceError`` when the file is missing, unreadable, or
        does not decode to the expected structure.
        """
        data = self._read_record()
        try:
            return [Route.from_dict(entry) for entry in data["routes"]]
        except (KeyError, TypeError, AttributeError) as exc:
            msg = f"Invalid route entry in cache: {exc}"
            raise PersistenceError(msg) from exc

    def save(
        self,
        routes: Iterable[Route],
        source_dir: str | Path | None = None,
        version: int | None = None,
    ) -> None:
        """Write the record atomically under an exclusive lock.

        Raises ``PersistenceError`` when a route cannot be serialized or the
        file cannot be written.
        """
        data: dict[str, Any] = {
            "routes": [route.to_dict() for route in routes],
            "cached_at": int(time.time()),
        }
        if version is not None:
            data["version"] = version
        if source_dir is not None and Path(source_dir).is_dir():
            data["route_files_mtime"] = routes_fingerprint(source_dir, self.suffix)

        content = json.dumps(data)
        lock_path = self.path.with_name(self.path.name + ".lock")
        try:
            with open(lock_path, "a") as lock_file:
                os.chmod(lock_path, 0o600)
                fcntl.flock(lock_file, fcntl.LOCK_EX)
                try:
                    fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".switchyard_")
                    try:
                        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                            tmp.write(content)
                        os.chmod(tmp_name, 0o600)
                        os.replace(tmp_name, self.path)
                    except BaseException:
                        Path(tmp_name).unlink(missing_ok=True)
                        raise
                finally:
                    fcntl.flock(lock_file, fcntl.LOCK_UN)
        except OSError as exc:
            msg = f"Failed to write route cache file: {exc}"
            raise PersistenceError(msg) from exc
        logger.debug("Saved %d routes to %s", len(data["routes"]), self.path)

    def clear(self) -> None:
        """Delete the cache file if present."""
        self.path.unlink(missing_ok=True)
