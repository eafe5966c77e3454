"""
Unit tests for the requests hand-off

Tests:
- fill_path: placeholder substitution
- ParameterRequestBuilder: URL, headers and cookies of built requests
- ParameterRequestBuilder.send: delegation to the session
"""

from unittest.mock import Mock

import pytest
import requests

from typed_openapi.api.request_builder import ParameterRequestBuilder, build_query_string, fill_path
from typed_openapi.errors import MissingRequiredParameter
from typed_openapi.parameters import ParameterEntry

from sample_types import ColorQuery, Headers, ItemPath, RGB, Search, Session


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def builder():
    return ParameterRequestBuilder("https://api.example.com/")


# ============================================================================
# TEST: Helpers
# ============================================================================


class TestHelpers:
    """Tests for path and query helpers"""

    def test_fill_path(self):
        entries = [ParameterEntry("item_id", "42"), ParameterEntry("version", "v1")]

        assert fill_path("/items/{item_id}/{version}", entries) == "/items/42/v1"

    def test_fill_path_missing_placeholder_value(self):
        with pytest.raises(MissingRequiredParameter, match="item_id"):
            fill_path("/items/{item_id}", [])

    def test_build_query_string_keeps_encoding(self):
        entries = [ParameterEntry("q", "a%20b"), ParameterEntry("tags", "x")]

        assert build_query_string(entries) == "q=a%20b&tags=x"


# ============================================================================
# TEST: ParameterRequestBuilder
# ============================================================================


class TestParameterRequestBuilder:
    """Tests for ParameterRequestBuilder"""

    def test_build_path_and_query(self, builder):
        request = builder.build(
            "get",
            "/items/{item_id}/{version}",
            path=ItemPath(item_id=42, version="v1"),
            query=Search(id=1, tags=["a", "b"]),
        )

        assert isinstance(request, requests.Request)
        assert request.method == "GET"
        assert request.url == "https://api.example.com/items/42/v1?id=1&tags=a&tags=b"

    def test_prepared_url_is_not_reencoded(self, builder):
        request = builder.build("get", "/items", query=Search(id=1, tags=["x y"]))

        prepared = builder.prepare(request)

        assert prepared.url == "https://api.example.com/items?id=1&tags=x%20y"

    def test_deep_object_query(self, builder):
        request = builder.build("get", "/colors", query=ColorQuery(color=RGB(1, 2, 3)))

        assert request.url == "https://api.example.com/colors?color[r]=1&color[g]=2&color[b]=3"

    def test_headers_and_cookies(self, builder):
        request = builder.build(
            "post",
            "/sessions",
            headers=Headers(request_id="abc", accept_language=["en", "fr"]),
            cookies=Session(session_id="s1"),
            json={"ok": True},
        )

        prepared = builder.prepare(request)

        assert prepared.headers["X-Request-ID"] == "abc"
        assert prepared.headers["accept_language"] == "en,fr"
        assert prepared.headers["Cookie"] == "session_id=s1"
        assert prepared.body == b'{"ok": true}'

    def test_missing_path_parameter(self, builder):
        with pytest.raises(MissingRequiredParameter):
            builder.build("get", "/items/{item_id}/{version}", path=ItemPath(item_id=42))

    def test_send_uses_session(self):
        session = Mock(spec=requests.Session)
        session.send.return_value = Mock(status_code=200)
        builder = ParameterRequestBuilder("https://api.example.com", session=session, timeout=5)

        request = builder.build("get", "/items")
        response = builder.send(request)

        assert response.status_code == 200
        session.prepare_request.assert_called_once_with(request)
        session.send.assert_called_once_with(session.prepare_request.return_value, timeout=5)


# ============================================================================
# RUN TESTS
# ============================================================================


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
