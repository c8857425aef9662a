"""Tests for remoterest.server.encoder — results to responses."""

from typing import Any

from remoterest.config import RestConfig
from remoterest.context import RestContext
from remoterest.http.request import Request
from remoterest.http.response import Response
from remoterest.remotes import Registry
from remoterest.routing.model import build_classes
from remoterest.server.encoder import encode_result, jsonp_response


async def _never_receive() -> dict[str, Any]:
    return {"type": "http.disconnect"}


def _ctx(result: Any, *, accept: str | None = None, query: str = "") -> RestContext:
    headers = [(b"accept", accept.encode())] if accept is not None else []
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/things",
        "headers": headers,
        "query_string": query.encode(),
    }
    request = Request.from_asgi(scope, _never_receive)

    registry = Registry()
    things = registry.shared_class("Thing")

    @things.static()
    def find():
        return []

    (rest_class,) = build_classes(registry)
    (method,) = rest_class.methods
    return RestContext(
        request=request,
        method=method.shared_method,
        rest_method=method,
        result=result,
    )


class TestJSON:
    def test_default_is_json(self) -> None:
        response = encode_result(_ctx({"a": 1}))
        assert response.status == 200
        assert response.content_type == "application/json; charset=utf-8"
        assert response.json() == {"a": 1}

    def test_wildcard_accept(self) -> None:
        assert encode_result(_ctx([1, 2], accept="*/*")).json() == [1, 2]

    def test_falsy_results_are_still_encoded(self) -> None:
        for value in (0, False, "", []):
            response = encode_result(_ctx(value))
            assert response.status == 200
            assert response.json() == value

    def test_non_json_values_are_stringified(self) -> None:
        class Thing:
            def __str__(self) -> str:
                return "thing"

        assert encode_result(_ctx({"t": Thing()})).json() == {"t": "thing"}


class TestNoContent:
    def test_none_is_204(self) -> None:
        response = encode_result(_ctx(None))
        assert response.status == 204
        assert response.body == ""
        assert response.content_type == "application/json"

    def test_204_ignores_accept(self) -> None:
        assert encode_result(_ctx(None, accept="text/html")).status == 204


class TestNotAcceptable:
    def test_unsupported_accept_is_406(self) -> None:
        response = encode_result(_ctx({"a": 1}, accept="text/html"))
        assert response.status == 406
        assert response.body == ""
        assert response.content_type == ""


class TestJSONP:
    def test_callback_wraps_body(self) -> None:
        response = encode_result(
            _ctx({"a": 1}, accept="application/javascript", query="callback=handle")
        )
        assert response.status == 200
        assert response.content_type == "text/javascript; charset=utf-8"
        assert response.text == "/**/ typeof handle === 'function' && handle({\"a\": 1});"
        assert response.header("X-Content-Type-Options") == "nosniff"

    def test_script_type_without_callback_is_json(self) -> None:
        response = encode_result(_ctx({"a": 1}, accept="text/javascript"))
        assert response.json() == {"a": 1}

    def test_custom_callback_parameter(self) -> None:
        config = RestConfig(jsonp_callback="cb")
        response = encode_result(
            _ctx([1], accept="text/javascript", query="cb=fn&callback=other"), config
        )
        assert response.text.endswith("fn([1]);")

    def test_callback_is_sanitized(self) -> None:
        response = jsonp_response({}, "alert(1);x.y[0]")
        assert "alert1x.y[0]({})" in response.text

    def test_unsafe_only_callback_falls_back_to_json(self) -> None:
        response = jsonp_response({"a": 1}, "();")
        assert response.content_type.startswith("application/json")

    def test_line_separators_escaped(self) -> None:
        response = jsonp_response({"s": "a\u2028b\u2029c"}, "cb")
        assert "\u2028" not in response.text
        assert "\\u2028" in response.text
        assert "\\u2029" in response.text


class TestPassThroughAndHeaders:
    def test_response_result_passes_through(self) -> None:
        custom = Response(body="raw", status=201, content_type="text/plain")
        assert encode_result(_ctx(custom)) is custom

    def test_context_headers_are_appended(self) -> None:
        ctx = _ctx({"a": 1})
        ctx.set_header("X-Total-Count", "7")
        response = encode_result(ctx)
        assert response.header("x-total-count") == "7"

    def test_context_headers_on_204(self) -> None:
        ctx = _ctx(None)
        ctx.set_header("X-Deleted", "1")
        assert encode_result(ctx).header("X-Deleted") == "1"
