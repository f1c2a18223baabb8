"""Tests for uri_components/encoding.py - percent-encoding primitives."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# The library lives under ./app; add it to sys.path for tests.
REPO_ROOT = Path(__file__).resolve().parents[1]
APP_ROOT = REPO_ROOT / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from uri_components.encoding import (  # noqa: E402
    Encoding,
    assert_no_control_characters,
    decode,
    decode_for_display,
    decode_to_str,
    decode_unreserved,
    encode,
    encode_all,
    encode_password,
    encode_path,
    encode_query_or_fragment,
    encode_reg_name,
    encode_user,
)
from uri_components.errors import UnknownEncoding, UriSyntaxError  # noqa: E402


class TestEncode:
    def test_encode_escapes_reserved_and_space_as_uppercase_triplets(self):
        assert encode("a b/c?d", safe="") == "a%20b%2Fc%3Fd"

    def test_encode_keeps_safe_characters(self):
        assert encode("a/b:c", safe="/:") == "a/b:c"

    def test_encode_keeps_existing_triplets_and_uppercases_them(self):
        assert encode("caf%c3%a9 bar") == "caf%C3%A9%20bar"

    def test_encode_escapes_lone_percent(self):
        assert encode("100%") == "100%25"
        assert encode("va%2-lue") == "va%252-lue"

    def test_encode_non_ascii_uses_utf8_bytes(self):
        assert encode("fào") == "f%C3%A0o"

    def test_encode_accepts_bytes(self):
        assert encode(b"a b") == "a%20b"

    def test_encode_is_identity_on_valid_encoded_text(self):
        value = "f%C3%A0o-bar_baz.~"
        assert encode(value) == value

    def test_encode_all_escapes_every_percent(self):
        assert encode_all("%41") == "%2541"


class TestDecode:
    @pytest.mark.parametrize(
        "value",
        ["hello world", "fào/bar?baz", "100%", "%zz", "日本語", "a+b=c&d"],
    )
    def test_decode_reverses_encode(self, value):
        assert decode_to_str(encode(value.replace("%", "%25"))) == value

    def test_decode_returns_bytes(self):
        assert decode("%C3%A9") == "é".encode("utf-8")

    def test_decode_leaves_invalid_sequences(self):
        assert decode_to_str("%zz%4") == "%zz%4"

    def test_decode_to_str_keeps_invalid_utf8_reversible(self):
        decoded = decode_to_str("%FF")
        assert encode_all(decoded) == "%FF"

    def test_decode_unreserved(self):
        assert decode_unreserved("%7euser%2fname%2a") == "~user%2Fname%2A"

    def test_decode_for_display(self):
        assert decode_for_display("/caf%C3%A9%20%2F") == "/café%20%2F"
        assert decode_for_display(None) is None


class TestComponentEncoders:
    def test_encode_user_escapes_colon(self):
        assert encode_user("us:er@x") == "us%3Aer%40x"

    def test_encode_password_keeps_colon(self):
        assert encode_password("p:a ss") == "p:a%20ss"

    def test_encode_reg_name(self):
        assert encode_reg_name("ex ample!") == "ex%20ample!"

    def test_encode_path_keeps_slashes(self):
        assert encode_path("/a b/c") == "/a%20b/c"

    def test_encode_query_or_fragment_keeps_question_mark(self):
        assert encode_query_or_fragment("a=b?c#d") == "a=b?c%23d"

    def test_component_encoders_propagate_none(self):
        assert encode_user(None) is None
        assert encode_path(None) is None


class TestEncodingEnum:
    def test_form_data_is_rfc1738(self):
        assert Encoding.FORM_DATA is Encoding.RFC1738

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1, Encoding.RFC3986),
            ("rfc3987", Encoding.RFC3987),
            ("form-data", Encoding.RFC1738),
            (Encoding.NONE, Encoding.NONE),
        ],
    )
    def test_from_value(self, value, expected):
        assert Encoding.from_value(value) is expected

    @pytest.mark.parametrize("value", [42, "rfc9999", True, None])
    def test_from_value_rejects_unknown(self, value):
        with pytest.raises(UnknownEncoding) as exc:
            Encoding.from_value(value)
        assert exc.value.code == "unknown_encoding"


def test_control_characters_are_rejected():
    with pytest.raises(UriSyntaxError) as exc:
        assert_no_control_characters("a\nb")
    assert exc.value.code == "control_characters"
    assert_no_control_characters(None)
    assert_no_control_characters("plain")
