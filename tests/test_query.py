"""Tests for apisrv.http.query — query string parsing."""

from apisrv.http.query import parse_query


class TestParseQuery:
    def test_empty(self) -> None:
        assert parse_query("") == {}
        assert parse_query(b"") == {}

    def test_single_values(self) -> None:
        assert parse_query("a=1&b=2") == {"a": "1", "b": "2"}

    def test_repeated_keys_become_lists(self) -> None:
        assert parse_query("a=1&b=2&a=3&a=4") == {"a": ["1", "3", "4"], "b": "2"}

    def test_plus_and_percent(self) -> None:
        assert parse_query("q=hello+world&x=%2Fpath") == {"q": "hello world", "x": "/path"}

    def test_blank_values_kept(self) -> None:
        assert parse_query("a=&b") == {"a": "", "b": ""}

    def test_bytes(self) -> None:
        assert parse_query(b"name=caf%C3%A9") == {"name": "café"}

    def test_invalid_utf8_replaced(self) -> None:
        assert parse_query("x=%ff") == {"x": "�"}
