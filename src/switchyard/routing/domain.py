"""Domain patterns — literal hosts and ``{param}`` subdomain templates.

A pattern such as ``{tenant}.{region}.example.com`` compiles to an
anchored, case-insensitive regex where every placeholder captures exactly
one DNS label (``[^.]+``), so a parameter can never swallow a sibling
label. Compiled patterns are cached for the process lifetime; compilation
is a pure function of the pattern text.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType

from switchyard.errors import ConfigurationError


# Placeholder syntax accepted in domain patterns
_PARAM_RE = re.compile(r"\{([a-zA-Z_]\w*)\}")


@dataclass(frozen=True, slots=True)
class CompiledDomain:
    """A compiled domain pattern."""

    pattern: str
    regex: re.Pattern[str]
    names: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class DomainMatch:
    """Successful match. ``params`` is empty for a literal match."""

    params: MappingProxyType[str, str]


# A literal match carries no parameters
MATCH = DomainMatch(MappingProxyType({}))

# Sentinel for "pattern does not match host"
NO_MATCH = None


def has_placeholders(pattern: str) -> bool:
    return _PARAM_RE.search(pattern) is not None


@lru_cache(maxsize=None)
def compile_domain(pattern: str) -> CompiledDomain:
    """Compile *pattern* into an anchored, case-insensitive regex.

    Placeholders are collected left to right; every literal character is
    escaped.

    Raises:
        ConfigurationError: A placeholder name is used more than once.
    """
    names: list[str] = []
    parts: list[str] = []
    pos = 0
    for match in _PARAM_RE.finditer(pattern):
        parts.append(re.escape(pattern[pos : match.start()]))
        name = match.group(1)
        names.append(name)
        parts.append(f"(?P<{name}>[^.]+)")
        pos = match.end()
    parts.append(re.escape(pattern[pos:]))
    try:
        regex = re.compile("^" + "".join(parts) + "$", re.IGNORECASE)
    except re.error as exc:
        msg = f"Invalid domain pattern {pattern!r}: {exc}"
        raise ConfigurationError(msg) from exc
    return CompiledDomain(pattern=pattern, regex=regex, names=tuple(names))


def match_domain(pattern: str, host: str) -> DomainMatch | None:
    """Match *host* against a domain *pattern*.

    Returns:
        ``NO_MATCH`` (``None``) when the host does not match.
        ``MATCH`` for an exact literal match (no parameters).
        A ``DomainMatch`` with one entry per placeholder otherwise,
        in left-to-right pattern order.
    """
    if pattern == host:
        return MATCH
    if not has_placeholders(pattern):
        return NO_MATCH

    compiled = compile_domain(pattern)
    found = compiled.regex.match(host)
    if found is None:
        return NO_MATCH
    params = {name: found.group(name) for name in compiled.names}
    return DomainMatch(MappingProxyType(params)) if params else MATCH


def is_allowed(host: str, allowed: tuple[str, ...] | list[str]) -> bool:
    """True if *host* matches any pattern in *allowed* (or *allowed* is empty)."""
    if not allowed:
        return True
    return any(match_domain(pattern, host) is not NO_MATCH for pattern in allowed)
