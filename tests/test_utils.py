"""Tests for shared helpers"""

import pytest

from nft_gallery.errors import InvalidArgumentError, require
from nft_gallery.utils import (
    as_text,
    contains_ci,
    convert_ipfs_to_http,
    dig,
    ensure_hex_prefix,
    first_defined,
    strip_hex_prefix,
    token_number,
)


class TestFirstDefined:
    def test_returns_first_present(self):
        assert first_defined(None, "", "b", "c") == "b"

    def test_default_when_all_absent(self):
        assert first_defined(None, "  ", default="fallback") == "fallback"

    def test_falsy_non_strings_count_as_present(self):
        assert first_defined(None, 0, 5) == 0
        assert first_defined(False, True) is False


class TestHexPrefix:
    @pytest.mark.parametrize("token_id, expected", [
        ("0x05", "05"),
        ("0x0x05", "0x05"),
        ("05", "05"),
        ("", ""),
    ])
    def test_strip_removes_exactly_one_prefix(self, token_id, expected):
        assert strip_hex_prefix(token_id) == expected

    def test_strip_is_literal_not_numeric(self):
        assert strip_hex_prefix("0x000000000000000000000000000000000000000000000000000000000000002a") == (
            "000000000000000000000000000000000000000000000000000000000000002a"
        )

    def test_ensure_adds_prefix_once(self):
        assert ensure_hex_prefix("2a") == "0x2a"
        assert ensure_hex_prefix("0x2a") == "0x2a"


class TestIpfs:
    def test_http_urls_untouched(self):
        assert convert_ipfs_to_http("https://example.com/a.png") == "https://example.com/a.png"

    def test_ipfs_scheme_rewritten(self):
        assert convert_ipfs_to_http("ipfs://QmHash/1.png") == "https://ipfs.io/ipfs/QmHash/1.png"

    def test_ipfs_scheme_with_ipfs_path(self):
        assert convert_ipfs_to_http("ipfs://ipfs/QmHash") == "https://ipfs.io/ipfs/QmHash"

    def test_empty(self):
        assert convert_ipfs_to_http(None) == ""
        assert convert_ipfs_to_http("") == ""


class TestDig:
    def test_nested_path(self):
        assert dig({"a": {"b": [{"c": 1}]}}, "a", "b", 0, "c") == 1

    def test_missing_steps_give_default(self):
        data = {"a": {"b": []}}
        assert dig(data, "a", "b", 0, "c") is None
        assert dig(data, "x", default="d") == "d"
        assert dig(None, "a") is None
        assert dig({"a": "str"}, "a", "b") is None

    def test_present_none_is_returned(self):
        assert dig({"a": None}, "a", default="d") is None


class TestMisc:
    def test_token_number(self):
        assert token_number("0x0c") == 12
        assert token_number("0c") == 12
        assert token_number("zz") == -1

    def test_contains_ci(self):
        assert contains_ci("Bored Ape", "ape")
        assert not contains_ci(None, "ape")
        assert not contains_ci("Doodles", "ape")

    def test_as_text(self):
        assert as_text("x") == "x"
        assert as_text(3) == "3"
        assert as_text(True) is None
        assert as_text({"a": 1}) is None

    def test_require_names_missing_arguments(self):
        with pytest.raises(InvalidArgumentError, match="token_id"):
            require(address="0xA", token_id="")
        with pytest.raises(ValueError):
            require(address=None)
        require(address="0xA", token_id="1")
