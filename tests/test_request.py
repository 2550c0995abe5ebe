"""Tests for switchyard.http.request — immutable request value."""

import dataclasses

import pytest

from switchyard.http.headers import Headers
from switchyard.http.request import Request


class TestFromUrl:
    def test_absolute_url(self) -> None:
        request = Request.from_url("get", "https://API.example.com:8443/users/7?page=2")
        assert request.method == "GET"
        assert request.host == "api.example.com"
        assert request.port == 8443
        assert request.scheme == "https"
        assert request.path == "/users/7"
        assert request.query_string == "page=2"

    def test_relative_url_uses_host_header(self) -> None:
        request = Request.from_url("GET", "/users", headers={"Host": "Shop.Example.com:8080"})
        assert request.host == "shop.example.com"
        assert request.port == 8080

    def test_relative_url_without_host(self) -> None:
        request = Request.from_url("GET", "/users")
        assert request.host == ""
        assert request.port is None

    def test_empty_path_is_root(self) -> None:
        assert Request.from_url("GET", "http://example.com").path == "/"

    def test_text_body_encoded(self) -> None:
        request = Request.from_url("POST", "/echo", body="héllo")
        assert request.body == "héllo".encode()
        assert request.text() == "héllo"


class TestAccessors:
    def test_query(self) -> None:
        request = Request(method="GET", path="/", query_string="a=1&a=2&b=")
        assert request.query == {"a": ["1", "2"], "b": [""]}

    def test_json(self) -> None:
        request = Request(method="POST", path="/", body=b'{"name": "ada"}')
        assert request.json() == {"name": "ada"}

    def test_content_type(self) -> None:
        request = Request(
            method="POST",
            path="/",
            headers=Headers({"Content-Type": "application/json"}),
        )
        assert request.content_type == "application/json"

    def test_url(self) -> None:
        request = Request(method="GET", path="/a", host="example.com", port=8000, query_string="x=1")
        assert request.url == "http://example.com:8000/a?x=1"

    def test_url_without_host(self) -> None:
        assert Request(method="GET", path="/a").url == "/a"


class TestImmutability:
    def test_frozen(self) -> None:
        request = Request(method="GET", path="/")
        with pytest.raises(dataclasses.FrozenInstanceError):
            request.path = "/other"  # type: ignore[misc]

    def test_with_path_params_returns_copy(self) -> None:
        request = Request(method="GET", path="/users/7")
        updated = request.with_path_params({"id": "7"})
        assert updated.path_params == {"id": "7"}
        assert request.path_params == {}
