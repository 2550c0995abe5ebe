"""Handler parameter descriptors and binding.

Descriptors are produced once per handler (at registration for inline
handlers, at first resolution for class handlers) so dispatch never
re-inspects a signature. Binding walks the descriptors in declaration
order and resolves each one by its kind::

    REQUEST    the request (annotated ``Request`` or subclass, or named ``request``)
    any other  the merged domain + path variable of the same name, if present
    VARIABLE   else the declared default, else MissingParameterError (400)
    DEFAULT    else the declared default
    REQUIRED   else MissingParameterError (400)
"""

import inspect
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from switchyard.errors import MissingParameterError
from switchyard.http.request import Request


class ParamKind(Enum):
    """How a parameter is expected to be satisfied."""

    REQUEST = "request"
    VARIABLE = "variable"
    DEFAULT = "default"
    REQUIRED = "required"


_EMPTY = inspect.Parameter.empty

# Annotations that route variables are converted to before binding
_CONVERTIBLE: tuple[type, ...] = (int, float)


@dataclass(frozen=True, slots=True)
class Param:
    """A handler's formal parameter, as seen by the binder."""

    name: str
    kind: ParamKind
    default: Any = _EMPTY
    annotation: Any = _EMPTY

    @property
    def has_default(self) -> bool:
        return self.default is not _EMPTY


def _is_request_param(param: inspect.Parameter) -> bool:
    annotation = param.annotation
    if annotation is _EMPTY:
        return param.name == "request"
    return isinstance(annotation, type) and issubclass(annotation, Request)


def describe_parameters(
    func: Callable[..., Any],
    variables: Collection[str] = (),
    *,
    skip_first: bool = False,
) -> tuple[Param, ...]:
    """Build parameter descriptors from *func*'s signature.

    *variables* names the route variables known at registration (path and
    domain placeholders); it only affects the descriptor ``kind``.
    *skip_first* drops ``self`` when describing a method through its class.
    """
    sig = inspect.signature(func, eval_str=True)
    params: list[Param] = []
    for index, param in enumerate(sig.parameters.values()):
        if skip_first and index == 0:
            continue
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if _is_request_param(param):
            kind = ParamKind.REQUEST
        elif param.name in variables:
            kind = ParamKind.VARIABLE
        elif param.default is not _EMPTY:
            kind = ParamKind.DEFAULT
        else:
            kind = ParamKind.REQUIRED
        params.append(
            Param(
                name=param.name,
                kind=kind,
                default=param.default,
                annotation=param.annotation,
            )
        )
    return tuple(params)


def merge_variables(
    domain_vars: Mapping[str, str] | None,
    path_vars: Mapping[str, str],
) -> dict[str, str]:
    """Merge domain and path variables; path variables win on conflict."""
    return {**(domain_vars or {}), **path_vars}


def _convert(value: str, annotation: Any) -> Any:
    if annotation in _CONVERTIBLE:
        try:
            return annotation(value)
        except (ValueError, TypeError):
            return value
    return value


def bind_arguments(
    params: tuple[Param, ...],
    request: Request,
    variables: Mapping[str, str],
) -> dict[str, Any] | MissingParameterError:
    """Resolve every descriptor to a value.

    Returns keyword arguments for the handler, or a ``MissingParameterError``
    naming the first parameter that could not be resolved.
    """
    kwargs: dict[str, Any] = {}
    for param in params:
        if param.kind is ParamKind.REQUEST:
            kwargs[param.name] = request
            continue
        if param.name in variables:
            kwargs[param.name] = _convert(variables[param.name], param.annotation)
            continue
        match param.kind:
            case ParamKind.DEFAULT | ParamKind.VARIABLE if param.has_default:
                kwargs[param.name] = param.default
            case _:
                return MissingParameterError(param.name)
    return kwargs
