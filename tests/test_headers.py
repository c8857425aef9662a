"""Tests for remoterest.http.headers — case-insensitive request headers."""

import pytest

from remoterest.http.headers import Headers


def _headers() -> Headers:
    return Headers(
        [
            (b"Content-Type", b"application/json"),
            (b"Accept", b"text/javascript"),
            (b"X-Tag", b"a"),
            (b"x-tag", b"b"),
        ]
    )


class TestHeaders:
    def test_case_insensitive_lookup(self) -> None:
        h = _headers()
        assert h["content-type"] == "application/json"
        assert h["CONTENT-TYPE"] == "application/json"

    def test_missing_raises(self) -> None:
        with pytest.raises(KeyError):
            _headers()["authorization"]

    def test_get_default(self) -> None:
        assert _headers().get("authorization", "none") == "none"

    def test_first_value_wins(self) -> None:
        assert _headers()["x-tag"] == "a"
        assert _headers().get_list("X-Tag") == ["a", "b"]

    def test_iteration_is_deduplicated(self) -> None:
        h = _headers()
        assert list(h) == ["content-type", "accept", "x-tag"]
        assert len(h) == 3

    def test_contains(self) -> None:
        h = _headers()
        assert "Accept" in h
        assert 42 not in h

    def test_to_dict_joins_repeats(self) -> None:
        assert _headers().to_dict() == {
            "content-type": "application/json",
            "accept": "text/javascript",
            "x-tag": "a, b",
        }
