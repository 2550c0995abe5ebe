"""Path matcher with trie-based method + path lookup.

The router hands an ordered list of ``(method, pattern, payload)`` entries
to a ``PathMatcher`` and gets back a compiled ``Dispatcher``. Dispatching a
``(method, path)`` query yields one of three outcomes::

    Found(payload, variables)   — a route matched
    WrongMethod(allowed)        — the path matched, under other methods
    MISSING                     — nothing matched

Supported placeholders::

    /users/{id}            any single segment
    /users/{id:int}        digits
    /price/{amount:float}  decimal number
    /files/{rest:path}     the remainder of the path, slashes included
    /posts/{slug:[a-z-]+}  a custom regex for a single segment

When two entries share a method and pattern, the later one wins.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

from switchyard.errors import ConfigurationError

# (regex_pattern, python_type) for each named converter
CONVERTERS: dict[str, tuple[str, type]] = {
    "str": (r"[^/]+", str),
    "int": (r"\d+", int),
    "float": (r"\d+(?:\.\d+)?", float),
    "path": (r".+", str),
}


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/users``       (is_param=False)
    Param:   ``/{id}``        (is_param=True, param_name="id")
    Typed:   ``/{id:int}``    (is_param=True, param_name="id", param_type="int")
    Regex:   ``/{id:\\d{3}}`` (is_param=True, param_name="id", param_type="\\d{3}")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"

    @property
    def regex(self) -> str:
        if self.param_type in CONVERTERS:
            return CONVERTERS[self.param_type][0]
        return self.param_type


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"          -> [PathSegment("users")]
        "/users/{id}"     -> [PathSegment("users"), PathSegment("{id}", is_param=True, ...)]
        "/users/{id:int}" -> [PathSegment("users"), PathSegment("{id:int}", param_type="int")]
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("<") and part.endswith(">"):
            msg = (
                f"Route path {path!r} uses <param> syntax. "
                "Use {param} placeholders instead, e.g. /users/{id}."
            )
            raise ConfigurationError(msg)
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            if ":" in inner:
                param_name, param_type = inner.split(":", 1)
            else:
                param_name, param_type = inner, "str"
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=param_name,
                    param_type=param_type,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


# -- Outcomes --


@dataclass(frozen=True, slots=True)
class Found:
    """A route matched. ``payload`` is whatever was registered with it."""

    payload: Any
    variables: dict[str, str]


@dataclass(frozen=True, slots=True)
class WrongMethod:
    """The path matched, but only for the ``allowed`` methods."""

    allowed: frozenset[str]


@dataclass(frozen=True, slots=True)
class Missing:
    """No route matched the path."""


MISSING = Missing()

type MatchOutcome = Found | WrongMethod | Missing


class Dispatcher(Protocol):
    """Compiled lookup structure produced by a ``PathMatcher``."""

    def dispatch(self, method: str, path: str) -> MatchOutcome: ...


class PathMatcher(Protocol):
    """Builds a ``Dispatcher`` from ordered ``(method, pattern, payload)`` entries."""

    def build(self, entries: Iterable[tuple[str, str, Any]]) -> Dispatcher: ...


# -- Trie implementation --


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("catch_all", "children", "param_edges", "payload_by_method")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Parameter edges, tried in registration order
        self.param_edges: list[_ParamEdge] = []
        # Catch-all (path converter) edge
        self.catch_all: _CatchAllEdge | None = None
        # Payloads at this node, keyed by HTTP method
        self.payload_by_method: dict[str, Any] = {}


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie."""

    param_name: str
    param_type: str
    regex: re.Pattern[str]
    node: _TrieNode


@dataclass(slots=True)
class _CatchAllEdge:
    """A catch-all (path) edge — consumes the remaining path."""

    param_name: str
    payload_by_method: dict[str, Any] = field(default_factory=dict)


class TrieDispatcher:
    """Compiled trie. Static segments win over parameters, parameters over catch-alls.

    Usage::

        dispatcher = TrieMatcher().build([("GET", "/users/{id:int}", route)])
        outcome = dispatcher.dispatch("GET", "/users/42")
    """

    __slots__ = ("_root",)

    def __init__(self) -> None:
        self._root = _TrieNode()

    def add(self, method: str, pattern: str, payload: Any) -> None:
        """Add one entry. A later entry for the same method and pattern wins."""
        node = self._root
        for seg in parse_path(pattern):
            if seg.is_param and seg.param_type == "path":
                if node.catch_all is None:
                    node.catch_all = _CatchAllEdge(param_name=seg.param_name or "path")
                node.catch_all.payload_by_method[method] = payload
                return

            if seg.is_param:
                edge = next(
                    (
                        e
                        for e in node.param_edges
                        if e.param_name == seg.param_name and e.param_type == seg.param_type
                    ),
                    None,
                )
                if edge is None:
                    edge = _ParamEdge(
                        param_name=seg.param_name or "",
                        param_type=seg.param_type,
                        regex=re.compile(f"^(?:{seg.regex})$"),
                        node=_TrieNode(),
                    )
                    node.param_edges.append(edge)
                node = edge.node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        node.payload_by_method[method] = payload

    def dispatch(self, method: str, path: str) -> MatchOutcome:
        """Match a request method and path against the compiled entries."""
        parts = [p for p in path.strip("/").split("/") if p]
        candidates: list[tuple[dict[str, Any], dict[str, str]]] = []
        self._collect(self._root, parts, 0, {}, candidates)
        if not candidates:
            return MISSING

        lookup = ("HEAD", "GET") if method == "HEAD" else (method,)
        for wanted in lookup:
            for payloads, params in candidates:
                if wanted in payloads:
                    return Found(payload=payloads[wanted], variables=params)

        allowed: set[str] = set()
        for payloads, _ in candidates:
            allowed.update(payloads)
        return WrongMethod(frozenset(allowed))

    def _collect(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
        out: list[tuple[dict[str, Any], dict[str, str]]],
    ) -> None:
        """Collect every terminal that matches, in precedence order."""
        if index == len(parts):
            if node.payload_by_method:
                out.append((node.payload_by_method, params))
            return

        part = parts[index]

        # 1. Static child (exact match)
        child = node.children.get(part)
        if child is not None:
            self._collect(child, parts, index + 1, params, out)

        # 2. Parameter edges
        for edge in node.param_edges:
            if edge.regex.match(part):
                self._collect(edge.node, parts, index + 1, {**params, edge.param_name: part}, out)

        # 3. Catch-all
        if node.catch_all is not None:
            remaining = "/".join(parts[index:])
            out.append(
                (node.catch_all.payload_by_method, {**params, node.catch_all.param_name: remaining})
            )


class TrieMatcher:
    """Default ``PathMatcher``: compiles entries into a ``TrieDispatcher``."""

    __slots__ = ()

    def build(self, entries: Iterable[tuple[str, str, Any]]) -> TrieDispatcher:
        dispatcher = TrieDispatcher()
        for method, pattern, payload in entries:
            dispatcher.add(method, pattern, payload)
        return dispatcher
