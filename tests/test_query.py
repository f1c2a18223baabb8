"""Tests for uri_components/query.py - the query component."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# The library lives under ./app; add it to sys.path for tests.
REPO_ROOT = Path(__file__).resolve().parents[1]
APP_ROOT = REPO_ROOT / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from uri_components.errors import UriSyntaxError  # noqa: E402
from uri_components.query import Query  # noqa: E402
from uri_components.uri_string import UriComponents  # noqa: E402


class TestConstruction:
    def test_null_query(self):
        query = Query.new()
        assert query.value() is None
        assert str(query) == ""
        assert query.uri_component() == ""
        assert len(query) == 0

    def test_empty_query_keeps_question_mark(self):
        query = Query.new("")
        assert query.value() == ""
        assert query.uri_component() == "?"
        assert query.pairs() == [("", None)]

    def test_from_rfc3986_normalizes_encoding(self):
        query = Query.from_rfc3986("fào=?%25bar&q=v%61lue")
        assert query.value() == "f%C3%A0o=?%25bar&q=value"

    def test_from_rfc1738(self):
        query = Query.from_rfc1738("a+b=c%20d")
        assert query.pairs() == [("a b", "c d")]
        assert query.to_rfc1738() == "a+b=c+d"
        assert query.value() == "a%20b=c%20d"

    def test_from_form_data_and_output(self):
        query = Query.from_form_data("q=hello+world")
        assert query.to_form_data() == "q=hello+world"

    def test_from_pairs_accepts_mapping(self):
        assert Query.from_pairs({"a": 1, "b": None}).value() == "a=1&b"

    def test_from_parameters_flattens_nested_values(self):
        query = Query.from_parameters({"filter": {"status": ["open", "closed"]}, "page": 2})
        assert query.pairs() == [
            ("filter[status][0]", "open"),
            ("filter[status][1]", "closed"),
            ("page", "2"),
        ]

    def test_from_uri(self):
        assert Query.from_uri("http://example.com/?a=b#frag").value() == "a=b"
        assert Query.from_uri(UriComponents(host="example.com", query="x")).value() == "x"

    def test_custom_separator(self):
        query = Query.from_rfc3986("a=1;b=2", separator=";")
        assert query.separator == ";"
        assert query.get("b") == "2"
        assert query.value() == "a=1;b=2"

    def test_empty_separator_is_rejected(self):
        with pytest.raises(UriSyntaxError):
            Query.from_rfc3986("a=b", separator="")

    def test_to_rfc3987_escapes_undecodable_bytes(self):
        query = Query.from_rfc3986("a=%FF")
        assert query.to_rfc3987() == "a=%FF"
        assert query.to_rfc3987().encode("utf-8") == b"a=%FF"

    def test_to_rfc3987_keeps_unicode(self):
        assert Query.from_rfc3986("f%C3%A0o=bar").to_rfc3987() == "fào=bar"


class TestLookups:
    def test_get_returns_first_value(self):
        query = Query.new("a=1&a=2&b")
        assert query.get("a") == "1"
        assert query.get("b") is None
        assert query.get("missing") is None
        assert query.get_all("a") == ["1", "2"]

    def test_has(self):
        query = Query.new("a=1&b")
        assert query.has("a", "b")
        assert not query.has("a", "c")
        assert not query.has()

    def test_has_pair(self):
        query = Query.new("a=1&b&c=true")
        assert query.has_pair("a", "1")
        assert query.has_pair("b", None)
        assert query.has_pair("c", True)
        assert not query.has_pair("a", "2")

    def test_iteration_and_keys(self):
        query = Query.new("a=1&b=2&a=3")
        assert list(query) == [("a", "1"), ("b", "2"), ("a", "3")]
        assert query.keys() == ["a", "b"]

    def test_equality(self):
        assert Query.new("a=b") == Query.new("a=b")
        assert Query.new("a=b") != Query.from_rfc3986("a=b", separator=";")
        assert len({Query.new("a=b"), Query.new("a=b")}) == 1


class TestAppendAndMerge:
    def test_merge_replaces_first_occurrence_in_place(self):
        query = Query.new("kingkong=toto&foo=bar").merge("kingkong=ape")
        assert query.value() == "kingkong=ape&foo=bar"

    def test_merge_removes_later_duplicates(self):
        query = Query.new("a=1&b=2&a=3").merge("a=4")
        assert query.value() == "a=4&b=2"

    def test_merge_appends_new_keys(self):
        assert Query.new("a=b").merge("c=d").value() == "a=b&c=d"

    def test_merge_with_empty_string_adds_empty_pair(self):
        assert Query.new("a=b&c=d").merge("").value() == "a=b&c=d&"

    def test_merge_with_none_is_unchanged(self):
        query = Query.new("a=b")
        assert query.merge(None) is query

    def test_append_keeps_duplicates(self):
        query = Query.new("kingkong=toto").append("kingkong=ape")
        assert query.value() == "kingkong=toto&kingkong=ape"

    def test_append_drops_empty_pairs(self):
        assert Query.new("a=b").append("&c=d").value() == "a=b&c=d"

    def test_append_to_empty_query(self):
        assert Query.new().append("a=b").value() == "a=b"

    def test_append_none_is_unchanged(self):
        query = Query.new("a=b")
        assert query.append(None) is query

    def test_append_to(self):
        assert Query.new("a=b").append_to("a", "c").value() == "a=b&a=c"

    def test_with_pair(self):
        query = Query.new("a=b&c=d&a=e")
        assert query.with_pair("a", "z").value() == "a=z&c=d"
        assert query.with_pair("f", None).value() == "a=b&c=d&a=e&f"

    def test_with_pair_unchanged_returns_same_instance(self):
        query = Query.new("a=b")
        assert query.with_pair("a", "b") is query


class TestSortAndFilters:
    def test_sort_is_stable_on_equal_keys(self):
        query = Query.new("kingkong=toto&foo=bar&kingkong=ape").sort()
        assert query.value() == "foo=bar&kingkong=toto&kingkong=ape"

    def test_sort_groups_keys_in_original_order(self):
        assert Query.new("a=3&b=2&a=1").sort().value() == "a=3&a=1&b=2"

    def test_sort_puts_ascii_keys_before_non_ascii(self):
        assert Query.new("%C3%A9=1&z=2&a=3").sort().value() == "a=3&z=2&%C3%A9=1"

    def test_sort_uses_utf8_bytes(self):
        assert Query.new("%C3%A9=1&%C3=2").sort().value() == "%C3=2&%C3%A9=1"

    def test_sort_returns_same_instance_when_sorted(self):
        query = Query.new("a=1&b=2")
        assert query.sort() is query

    def test_without_duplicates(self):
        assert Query.new("a=1&b=2&a=1&a=2").without_duplicates().value() == "a=1&b=2&a=2"

    def test_without_empty_pairs_removes_only_nameless_empty_pairs(self):
        query = Query.new("&a=1&&=&b=&c").without_empty_pairs()
        assert query.pairs() == [("a", "1"), ("b", ""), ("c", None)]

    @pytest.mark.parametrize("value", ["d=", "=d", "="])
    def test_without_blank_pairs_leaves_no_query(self, value):
        query = Query.new(value).without_blank_pairs()
        assert query.value() is None

    def test_without_pair_by_key(self):
        query = Query.new("a=1&b=2&c=3&a=4")
        assert query.without_pair_by_key("a", "c").value() == "b=2"
        assert query.without_pair_by_key() is query
        assert query.without_pair_by_key("z") is query

    def test_without_pair_by_key_compares_decoded_keys(self):
        assert Query.new("f%C3%A0o=1&b=2").without_pair_by_key("fào").value() == "b=2"

    def test_without_pair_by_value(self):
        query = Query.new("a=1&b=2&c=1&d")
        assert query.without_pair_by_value("1").value() == "b=2&d"
        assert query.without_pair_by_value(None).value() == "a=1&b=2&c=1"

    def test_without_pair_by_key_value(self):
        query = Query.new("a=1&a=2&b=1")
        assert query.without_pair_by_key_value("a", "1").value() == "a=2&b=1"
        assert query.without_pair_by_key_value("a", 3) is query

    def test_without_numeric_indices(self):
        query = Query.new("toto[3]=bar[3]&foo=bar")
        assert query.without_numeric_indices().value() == "toto%5B%5D=bar%5B3%5D&foo=bar"

    def test_without_numeric_indices_on_encoded_brackets(self):
        query = Query.new("a%5B0%5D=x&a%5B1%5D=y")
        assert query.without_numeric_indices().pairs() == [("a[]", "x"), ("a[]", "y")]

    def test_without_parameters(self):
        query = Query.new("foo[]=bar&foo[baz]=1&foobar=2&foo=3")
        assert query.without_parameters("foo").value() == "foobar=2"
        assert query.without_parameters() is query

    def test_with_separator(self):
        query = Query.new("a=1&b=2")
        assert query.with_separator("&") is query
        assert query.with_separator(";").value() == "a=1;b=2"
        with pytest.raises(UriSyntaxError):
            query.with_separator("")


class TestParameters:
    def test_parameters_nest_brackets(self):
        query = Query.new("foo[]=bar&foo[]=baz&user[name]=jane&flag")
        assert query.parameters() == {
            "foo": ["bar", "baz"],
            "user": {"name": "jane"},
            "flag": "",
        }

    def test_parameter_lookup(self):
        query = Query.new("foo[]=bar&foo[]=baz")
        assert query.parameter("foo") == ["bar", "baz"]
        assert query.parameter("missing") is None
        assert query.has_parameter("foo")
        assert not query.has_parameter("foo", "missing")

    def test_parameters_after_removing_an_index(self):
        query = Query.new("foo[0]=bar&foo[1]=baz").without_pair_by_key("foo[0]")
        assert query.parameters() == {"foo": {1: "baz"}}

    def test_parameters_skip_empty_names_and_keep_dots(self):
        query = Query.new("=a&first.name=jane&a b=1")
        assert query.parameters() == {"first.name": "jane", "a b": "1"}
