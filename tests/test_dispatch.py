"""Tests for switchyard.routing.dispatch — per-host dispatcher cache."""

import pytest

from switchyard.errors import ConfigurationError
from switchyard.routing.dispatch import DEFAULT_KEY, DispatcherCache
from switchyard.routing.matcher import MISSING, Found
from switchyard.routing.route import InlineHandler, Route
from switchyard.routing.table import RouteTable


def _route(path: str, domain: str | None = None) -> Route:
    return Route(method="GET", path=path, handler=InlineHandler(lambda: "ok"), domain=domain)


class TestDispatcherCache:
    def test_no_host_uses_default_key(self) -> None:
        table = RouteTable()
        table.add(_route("/a"))
        cache = DispatcherCache(table)
        cache.get(None)
        assert DEFAULT_KEY in cache

    def test_reuses_entry(self) -> None:
        table = RouteTable()
        table.add(_route("/a"))
        cache = DispatcherCache(table)
        first = cache.get("example.com")
        assert cache.get("example.com") is first
        assert cache.builds == 1

    def test_one_entry_per_host(self) -> None:
        table = RouteTable()
        table.add(_route("/a"))
        cache = DispatcherCache(table)
        cache.get("a.test")
        cache.get("b.test")
        assert len(cache) == 2

    def test_hosts_with_same_candidates_share_dispatcher(self) -> None:
        table = RouteTable()
        table.add(_route("/a"))
        table.add(_route("/admin", domain="admin.example.com"))
        cache = DispatcherCache(table)
        shared = cache.get("a.test")
        assert cache.get("b.test") is shared
        assert cache.get("admin.example.com") is not shared
        assert cache.builds == 2
        assert cache.compiled == 2

    def test_entries_bounded_by_max_entries(self) -> None:
        table = RouteTable()
        table.add(_route("/a"))
        cache = DispatcherCache(table, max_entries=8)
        for i in range(500):
            cache.get(f"h{i}.example.net")
        assert len(cache) == 8
        assert cache.builds == 1
        assert "h499.example.net" in cache
        assert "h0.example.net" not in cache

    def test_least_recently_used_host_evicted_first(self) -> None:
        table = RouteTable()
        table.add(_route("/a"))
        cache = DispatcherCache(table, max_entries=2)
        cache.get("a.test")
        cache.get("b.test")
        cache.get("a.test")
        cache.get("c.test")
        assert "a.test" in cache
        assert "b.test" not in cache
        assert "c.test" in cache

    def test_compiled_dispatchers_bounded(self) -> None:
        table = RouteTable()
        for i in range(5):
            table.add(_route("/a", domain=f"s{i}.example.com"))
        cache = DispatcherCache(table, max_entries=2)
        for i in range(5):
            cache.get(f"s{i}.example.com")
        assert cache.compiled == 2
        assert len(cache) == 2

    def test_rejects_non_positive_size(self) -> None:
        with pytest.raises(ConfigurationError):
            DispatcherCache(RouteTable(), max_entries=0)

    def test_mutation_clears_every_entry(self) -> None:
        table = RouteTable()
        table.add(_route("/a"))
        cache = DispatcherCache(table)
        first = cache.get("a.test")
        cache.get("b.test")

        table.add(_route("/b"))
        rebuilt = cache.get("a.test")
        assert rebuilt is not first
        assert len(cache) == 1
        assert isinstance(rebuilt.dispatch("GET", "/b"), Found)

    def test_equivalent_replacement_table_still_rebuilds(self) -> None:
        table = RouteTable()
        table.add(_route("/a"))
        cache = DispatcherCache(table)
        first = cache.get("a.test")
        table.replace([_route("/a")])
        assert cache.get("a.test") is not first

    def test_dispatcher_only_sees_host_candidates(self) -> None:
        table = RouteTable()
        table.add(_route("/admin", domain="admin.example.com"))
        cache = DispatcherCache(table)
        assert isinstance(cache.get("admin.example.com").dispatch("GET", "/admin"), Found)
        assert cache.get("www.example.com").dispatch("GET", "/admin") is MISSING

    def test_clear(self) -> None:
        table = RouteTable()
        table.add(_route("/a"))
        cache = DispatcherCache(table)
        cache.get(None)
        cache.clear()
        assert len(cache) == 0
