"""Import helpers — resolve ``"package.module:attr"`` references.

Handler and middleware declarations may name their target by string so
route tables stay serializable. Both forms are accepted::

    import_string("myapp.controllers:UserController")
    import_string("myapp.controllers.UserController")
"""

import importlib
from typing import Any


def import_string(reference: str) -> Any:
    """Import and return the object named by *reference*.

    Raises ``ImportError`` if the module or attribute cannot be found.
    """
    if ":" in reference:
        module_name, _, attr_path = reference.partition(":")
    else:
        module_name, _, attr_path = reference.rpartition(".")
    if not module_name or not attr_path:
        msg = f"Invalid import reference: {reference!r}"
        raise ImportError(msg)

    obj: Any = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as exc:
            msg = f"{module_name!r} has no attribute {attr_path!r}"
            raise ImportError(msg) from exc
    return obj


def reference_of(obj: Any) -> str | None:
    """Return the ``"module:qualname"`` reference for *obj*, if importable.

    Lambdas and functions defined inside other functions have no stable
    reference and return ``None``.
    """
    module = getattr(obj, "__module__", None)
    qualname = getattr(obj, "__qualname__", None)
    if not module or not qualname or "<" in qualname:
        return None
    return f"{module}:{qualname}"
