"""Tests for uri_components/key_value.py - query pair parsing and building."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# The library lives under ./app; add it to sys.path for tests.
REPO_ROOT = Path(__file__).resolve().parents[1]
APP_ROOT = REPO_ROOT / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from uri_components.encoding import Encoding  # noqa: E402
from uri_components.errors import UnknownEncoding, UriSyntaxError  # noqa: E402
from uri_components.key_value import (  # noqa: E402
    KeyValuePairConverter,
    build_query,
    parse_query,
)


class TestConverterConstruction:
    def test_empty_separator_is_rejected(self):
        with pytest.raises(UriSyntaxError) as exc:
            KeyValuePairConverter(separator="")
        assert exc.value.code == "invalid_separator"

    def test_unknown_encoding_is_rejected(self):
        with pytest.raises(UnknownEncoding):
            KeyValuePairConverter.from_encoding(17)

    def test_with_separator_returns_same_instance_when_unchanged(self):
        converter = KeyValuePairConverter.from_rfc3986()
        assert converter.with_separator("&") is converter
        assert converter.with_separator(";").separator == ";"

    def test_form_data_and_rfc1738_are_equal(self):
        assert KeyValuePairConverter.from_form_data() == KeyValuePairConverter.from_rfc1738()


class TestParse:
    def test_none_is_no_pairs(self):
        assert parse_query(None) == []

    def test_empty_string_is_one_empty_pair(self):
        assert parse_query("") == [("", None)]

    def test_pairs_with_and_without_values(self):
        assert parse_query("a=1&b&c=&=d") == [("a", "1"), ("b", None), ("c", ""), ("", "d")]

    def test_value_is_split_on_first_equal_sign(self):
        assert parse_query("a=b=c") == [("a", "b=c")]

    def test_trailing_separator_yields_empty_pair(self):
        assert parse_query("a=b&") == [("a", "b"), ("", None)]

    def test_pairs_are_decoded(self):
        assert parse_query("f%C3%A0o=?%25bar&q=v%61lue") == [("fào", "?%bar"), ("q", "value")]

    def test_custom_separator(self):
        assert parse_query("a=1;b=2", separator=";") == [("a", "1"), ("b", "2")]

    def test_rfc1738_maps_plus_to_space(self):
        assert parse_query("a+b=c+d%2B", encoding=Encoding.RFC1738) == [("a b", "c d+")]

    def test_rfc3986_keeps_plus(self):
        assert parse_query("a+b=c") == [("a+b", "c")]

    def test_no_encoding_does_not_decode(self):
        assert parse_query("a=%41", encoding=Encoding.NONE) == [("a", "%41")]

    def test_control_characters_are_rejected(self):
        with pytest.raises(UriSyntaxError):
            parse_query("a=b\r\nc=d")


class TestBuild:
    def test_no_pairs_is_none(self):
        assert build_query([]) is None

    def test_none_value_omits_equal_sign(self):
        assert build_query([("a", None), ("b", ""), ("", None)]) == "a&b=&"

    def test_rfc3986_escapes_percent_and_non_ascii(self):
        assert build_query([("fào", "?%bar"), ("q", "value")]) == "f%C3%A0o=?%25bar&q=value"

    def test_rfc3986_escapes_equal_sign_in_keys_only(self):
        assert build_query([("a=b", "c=d")]) == "a%3Db=c=d"

    def test_rfc3986_escapes_separator(self):
        assert build_query([("a&b", "c&d")]) == "a%26b=c%26d"
        assert build_query([("a;b", "c;d")], separator=";") == "a%3Bb=c%3Bd"

    def test_rfc3986_escapes_space_and_hash(self):
        assert build_query([("a b", "c#d")]) == "a%20b=c%23d"

    def test_rfc1738_uses_plus_for_space(self):
        assert build_query([("a b", "c+d~")], encoding=Encoding.RFC1738) == "a+b=c%2Bd%7E"

    def test_rfc3987_keeps_unicode(self):
        assert build_query([("fào", "b r#%")], encoding=Encoding.RFC3987) == "fào=b%20r%23%25"

    def test_rfc3987_escapes_undecodable_bytes(self):
        built = build_query([("a", "\udcff"), ("\udcc3", "é")], encoding=Encoding.RFC3987)
        assert built == "a=%FF&%C3=é"
        assert built.encode("utf-8") == "a=%FF&%C3=é".encode("utf-8")

    def test_no_encoding_joins_verbatim(self):
        assert build_query([("a", "%41 b")], encoding=Encoding.NONE) == "a=%41 b"

    def test_scalar_values_are_stringified(self):
        assert build_query([("a", True), ("b", False), ("c", 3), ("d", 1.5)]) == (
            "a=true&b=false&c=3&d=1.5"
        )

    def test_unsupported_value_is_rejected(self):
        with pytest.raises(UriSyntaxError):
            build_query([("a", object())])


@pytest.mark.parametrize(
    "encoding",
    [Encoding.RFC3986, Encoding.RFC3987, Encoding.RFC1738],
)
def test_build_then_parse_restores_pairs(encoding):
    pairs = [
        ("fào", "?%bar"),
        ("a b", "c+d"),
        ("key=eq", "v=al"),
        ("empty", ""),
        ("flag", None),
        ("", "x"),
        ("日本", "語 #"),
    ]
    converter = KeyValuePairConverter(separator="&", encoding=encoding)
    assert converter.parse(converter.build(pairs)) == pairs


def test_build_then_parse_with_multi_character_separator():
    converter = KeyValuePairConverter(separator="&amp;")
    pairs = [("a", "x&amp;y"), ("b", "2")]
    built = converter.build(pairs)
    assert built == "a=x%26amp%3By&amp;b=2"
    assert converter.parse(built) == pairs


def test_multi_character_separator_overlapping_a_token_is_rejected():
    converter = KeyValuePairConverter(separator="aa")
    with pytest.raises(UriSyntaxError) as exc:
        converter.build([("k", "a"), ("b", "c")])
    assert exc.value.code == "ambiguous_separator"


def test_multi_character_separator_round_trips_when_escaped():
    converter = KeyValuePairConverter(separator="aa", encoding=Encoding.RFC3987)
    pairs = [("k", "a"), ("b", "c")]
    built = converter.build(pairs)
    assert built == "k=%61aab=c"
    assert converter.parse(built) == pairs


def test_convert_between_encodings():
    to = KeyValuePairConverter.from_rfc1738()
    assert to.convert("a%20b=c%20d") == "a+b=c+d"
    assert to.convert(None) is None
