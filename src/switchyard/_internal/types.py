"""Shared type aliases used across switchyard modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: user-defined function or method with variable signature
Handler: TypeAlias = Callable[..., Any]

# A middleware declaration as written at registration: callable, object, or import reference
MiddlewareSpec: TypeAlias = Any
