from __future__ import annotations

import re
from typing import Any, Iterable, Iterator, Mapping, Optional, Union

from uri_components.encoding import Encoding
from uri_components.errors import UriSyntaxError
from uri_components.key_value import KeyValuePairConverter, Pair, PairValue, stringify
from uri_components.query_parameters import extract_parameters, flatten_parameters

_NUMERIC_INDEX_REGEX = re.compile(r"\[\d+\]")

QueryInput = Union["Query", str, bytes, None]


def _filter_value(value: PairValue) -> Optional[str]:
    if value is None:
        return None
    return stringify(value, what="query value")


def _add_pair(pairs: list[Pair], pair: Pair) -> list[Pair]:
    """Set the first pair named like ``pair`` and drop later ones, or append it."""
    found = False
    result: list[Pair] = []
    for current in pairs:
        if current[0] != pair[0]:
            result.append(current)
        elif not found:
            result.append(pair)
            found = True
    if not found:
        result.append(pair)
    return result


class Query:
    """Immutable query component: an ordered list of decoded pairs.

    Every modifier returns a new instance, or the same instance when the
    pairs would not change.
    """

    __slots__ = ("_pairs", "_separator")

    def __init__(self, pairs: Iterable[tuple[Any, Any]] = (), separator: str = "&"):
        if not isinstance(separator, str) or separator == "":
            raise UriSyntaxError(
                code="invalid_separator",
                message="the separator can not be the empty string",
            )
        self._separator = separator
        self._pairs: tuple[Pair, ...] = tuple(
            (stringify(key, what="query key"), _filter_value(value)) for key, value in pairs
        )

    # Construction

    @classmethod
    def new(cls, value: QueryInput = None) -> Query:
        return cls.from_rfc3986(value)

    @classmethod
    def _from_string(cls, value: QueryInput, converter: KeyValuePairConverter) -> Query:
        if isinstance(value, Query):
            return cls(value.pairs(), converter.separator)
        return cls(converter.parse(value), converter.separator)

    @classmethod
    def from_rfc3986(cls, value: QueryInput = None, separator: str = "&") -> Query:
        return cls._from_string(value, KeyValuePairConverter.from_rfc3986(separator))

    @classmethod
    def from_rfc3987(cls, value: QueryInput = None, separator: str = "&") -> Query:
        return cls._from_string(value, KeyValuePairConverter.from_rfc3987(separator))

    @classmethod
    def from_rfc1738(cls, value: QueryInput = None, separator: str = "&") -> Query:
        return cls._from_string(value, KeyValuePairConverter.from_rfc1738(separator))

    @classmethod
    def from_form_data(cls, value: QueryInput = None, separator: str = "&") -> Query:
        return cls._from_string(value, KeyValuePairConverter.from_form_data(separator))

    @classmethod
    def from_encoding(
        cls, value: QueryInput, encoding: Union[Encoding, int, str], separator: str = "&"
    ) -> Query:
        return cls._from_string(value, KeyValuePairConverter.from_encoding(encoding, separator))

    @classmethod
    def from_pairs(
        cls,
        pairs: Union[Iterable[tuple[Any, Any]], Mapping[Any, Any]],
        separator: str = "&",
    ) -> Query:
        if isinstance(pairs, Mapping):
            pairs = pairs.items()
        return cls(pairs, separator)

    @classmethod
    def from_parameters(
        cls, parameters: Union[Query, Mapping[Any, Any]], separator: str = "&", prefix: str = ""
    ) -> Query:
        if isinstance(parameters, Query):
            return cls(parameters.pairs(), separator)
        return cls(flatten_parameters(parameters, prefix=prefix), separator)

    @classmethod
    def from_uri(cls, uri: Any) -> Query:
        from uri_components.uri_string import as_uri_components

        return cls.from_rfc3986(as_uri_components(uri).query)

    # Output

    @property
    def separator(self) -> str:
        return self._separator

    def _build(self, encoding: Encoding) -> Optional[str]:
        return KeyValuePairConverter(self._separator, encoding).build(self._pairs)

    def value(self) -> Optional[str]:
        return self.to_rfc3986()

    def to_rfc3986(self) -> Optional[str]:
        return self._build(Encoding.RFC3986)

    def to_rfc3987(self) -> Optional[str]:
        return self._build(Encoding.RFC3987)

    def to_rfc1738(self) -> Optional[str]:
        return self._build(Encoding.RFC1738)

    def to_form_data(self) -> Optional[str]:
        return self._build(Encoding.FORM_DATA)

    def to_encoding(self, encoding: Union[Encoding, int, str]) -> Optional[str]:
        return self._build(Encoding.from_value(encoding))

    def uri_component(self) -> str:
        if not self._pairs:
            return ""
        return "?" + (self.value() or "")

    def __str__(self) -> str:
        return self.value() or ""

    def __repr__(self) -> str:
        return f"Query({self.value()!r}, separator={self._separator!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Query):
            return NotImplemented
        return self._pairs == other._pairs and self._separator == other._separator

    def __hash__(self) -> int:
        return hash((self._pairs, self._separator))

    def __len__(self) -> int:
        return len(self._pairs)

    def __iter__(self) -> Iterator[Pair]:
        return iter(self._pairs)

    # Lookups

    def pairs(self) -> list[Pair]:
        return list(self._pairs)

    def keys(self) -> list[str]:
        return list(dict.fromkeys(key for key, _ in self._pairs))

    def has(self, *keys: str) -> bool:
        present = {key for key, _ in self._pairs}
        return bool(keys) and all(key in present for key in keys)

    def has_pair(self, key: str, value: PairValue) -> bool:
        return (key, _filter_value(value)) in self._pairs

    def get(self, key: str) -> Optional[str]:
        for current, value in self._pairs:
            if current == key:
                return value
        return None

    def get_all(self, key: str) -> list[Optional[str]]:
        return [value for current, value in self._pairs if current == key]

    def parameters(self) -> dict[Union[str, int], Any]:
        return extract_parameters(self._pairs)

    def parameter(self, name: Union[str, int]) -> Any:
        return self.parameters().get(name)

    def has_parameter(self, *names: Union[str, int]) -> bool:
        parameters = self.parameters()
        return bool(names) and all(name in parameters for name in names)

    # Modifiers

    def _with_pairs(self, pairs: Iterable[Pair]) -> Query:
        pairs = tuple(pairs)
        if pairs == self._pairs:
            return self
        return Query(pairs, self._separator)

    def _parse(self, query: QueryInput) -> list[Pair]:
        if isinstance(query, Query):
            return query.pairs()
        return KeyValuePairConverter.from_rfc3986(self._separator).parse(query)

    def with_separator(self, separator: str) -> Query:
        if separator == self._separator:
            return self
        if separator == "":
            raise UriSyntaxError(
                code="invalid_separator",
                message="the separator can not be the empty string",
            )
        return Query(self._pairs, separator)

    def with_pair(self, key: str, value: PairValue) -> Query:
        return self._with_pairs(_add_pair(list(self._pairs), (key, _filter_value(value))))

    def merge(self, query: QueryInput) -> Query:
        pairs = list(self._pairs)
        for pair in self._parse(query):
            pairs = _add_pair(pairs, pair)
        return self._with_pairs(pairs)

    def append(self, query: QueryInput) -> Query:
        pairs = [*self._pairs, *self._parse(query)]
        if tuple(pairs) == self._pairs:
            return self
        return self._with_pairs(pair for pair in pairs if pair[0] != "" or pair[1] is not None)

    def append_to(self, key: str, value: PairValue) -> Query:
        return Query([*self._pairs, (key, _filter_value(value))], self._separator)

    def sort(self) -> Query:
        """Stable sort on the UTF-8 bytes of each key; values of a same key keep their order."""
        return self._with_pairs(
            sorted(self._pairs, key=lambda pair: pair[0].encode("utf-8", "surrogateescape"))
        )

    def without_duplicates(self) -> Query:
        seen: set[Pair] = set()
        pairs: list[Pair] = []
        for pair in self._pairs:
            if pair not in seen:
                seen.add(pair)
                pairs.append(pair)
        return self._with_pairs(pairs)

    def without_empty_pairs(self) -> Query:
        return self._with_pairs(
            pair for pair in self._pairs if not (pair[0] == "" and pair[1] in (None, ""))
        )

    def without_blank_pairs(self) -> Query:
        return self._with_pairs(
            pair for pair in self._pairs if pair[0] != "" and pair[1] not in (None, "")
        )

    def without_pair_by_key(self, *keys: str) -> Query:
        if not keys:
            return self
        return self._with_pairs(pair for pair in self._pairs if pair[0] not in keys)

    def without_pair_by_value(self, *values: PairValue) -> Query:
        if not values:
            return self
        targets = [_filter_value(value) for value in values]
        return self._with_pairs(pair for pair in self._pairs if pair[1] not in targets)

    def without_pair_by_key_value(self, key: str, value: PairValue) -> Query:
        target = (key, _filter_value(value))
        return self._with_pairs(pair for pair in self._pairs if pair != target)

    def without_numeric_indices(self) -> Query:
        return self._with_pairs(
            (_NUMERIC_INDEX_REGEX.sub("[]", key), value) for key, value in self._pairs
        )

    def without_parameters(self, *names: str) -> Query:
        if not names:
            return self
        regex = re.compile(
            "^(" + "|".join(re.escape(name) + r"(\[.*\].*)?" for name in names) + ")$",
            re.DOTALL,
        )
        return self._with_pairs(pair for pair in self._pairs if not regex.match(pair[0]))
