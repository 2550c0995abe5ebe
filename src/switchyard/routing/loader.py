"""Route-file loading.

Walks a routes directory recursively and executes every route file with a
``router`` global bound to the live router, so files register routes
directly::

    # routes/api.py
    with router.group(prefix="/api"):
        router.get("/users", "myapp.controllers:UserController@index")

Files run in sorted path order. A failing file aborts the load and is
reported with its path.
"""

from __future__ import annotations

import importlib.util
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from switchyard.errors import ConfigurationError, RouteLoadError

if TYPE_CHECKING:
    from switchyard.router import Router

logger = logging.getLogger("switchyard.loader")


def validate_routes_directory(path: str | Path) -> Path:
    """Reject traversal segments and resolve *path* to an absolute path.

    Raises ``ConfigurationError`` when *path* contains ``..``.
    """
    if ".." in Path(path).parts:
        msg = f"Path traversal detected in routes directory: {path}"
        raise ConfigurationError(msg)
    return Path(path).resolve()


def discover_route_files(root: Path, suffix: str = ".py") -> list[Path]:
    """Every route file under *root*, sorted. Empty if *root* is not a directory."""
    if not root.is_dir():
        return []
    return sorted(p for p in root.rglob(f"*{suffix}") if p.is_file())


def load_route_files(router: Router, root: Path, suffix: str = ".py") -> int:
    """Execute every route file under *root* against *router*.

    Returns the number of files loaded. Raises ``RouteLoadError`` when a
    file resolves outside *root* or fails while executing.
    """
    loaded = 0
    for file in discover_route_files(root, suffix):
        real_path = file.resolve()
        if not real_path.is_relative_to(root):
            msg = f"Security violation: route file outside allowed directory: {file}"
            raise RouteLoadError(msg)

        module_name = f"_switchyard_routes_{file.stem}_{loaded}"
        spec = importlib.util.spec_from_file_location(module_name, real_path)
        if spec is None or spec.loader is None:
            continue
        module = importlib.util.module_from_spec(spec)
        module.router = router  # type: ignore[attr-defined]
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            msg = f"Error loading route file {file}: {exc}"
            raise RouteLoadError(msg, exc) from exc
        loaded += 1
        logger.debug("Loaded route file %s", file)
    return loaded
