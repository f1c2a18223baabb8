from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Union

from uri_components.encoding import (
    PERCENT,
    Encoding,
    assert_no_control_characters,
    decode_to_str,
    percent_encoded,
)
from uri_components.errors import UriSyntaxError
from uri_components.logging_config import log_with_context

logger = logging.getLogger(__name__)

Pair = tuple[str, Optional[str]]
PairValue = Union[str, int, float, bool, None]

RFC3986_KEY_SAFE = "!$'()*+,;:@?/"
RFC3986_VALUE_SAFE = "!$'()*+,;=:@?/&"
RFC3987_ALWAYS_ESCAPED = " #%"
RFC1738_SAFE = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._*"
)


def stringify(value: object, *, what: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise UriSyntaxError.invalid(what, value)


def _escape_separator(token: str, separator: str) -> str:
    # Multi-character separators can be made of unreserved characters.
    if separator in token:
        return token.replace(separator, PERCENT(separator))
    return token


@dataclass(frozen=True)
class KeyValuePairConverter:
    """Splits and joins ``key=value`` pairs around a separator.

    Pairs are always handled decoded; the encoding only decides how the
    string form is escaped on the way out and unescaped on the way in.
    """

    separator: str = "&"
    encoding: Encoding = Encoding.RFC3986

    def __post_init__(self) -> None:
        if not isinstance(self.separator, str) or self.separator == "":
            raise UriSyntaxError(
                code="invalid_separator",
                message="the separator can not be the empty string",
            )
        object.__setattr__(self, "encoding", Encoding.from_value(self.encoding))

    @classmethod
    def from_encoding(
        cls, encoding: Union[Encoding, int, str], separator: str = "&"
    ) -> KeyValuePairConverter:
        return cls(separator=separator, encoding=Encoding.from_value(encoding))

    @classmethod
    def from_rfc3986(cls, separator: str = "&") -> KeyValuePairConverter:
        return cls(separator=separator, encoding=Encoding.RFC3986)

    @classmethod
    def from_rfc3987(cls, separator: str = "&") -> KeyValuePairConverter:
        return cls(separator=separator, encoding=Encoding.RFC3987)

    @classmethod
    def from_rfc1738(cls, separator: str = "&") -> KeyValuePairConverter:
        return cls(separator=separator, encoding=Encoding.RFC1738)

    @classmethod
    def from_form_data(cls, separator: str = "&") -> KeyValuePairConverter:
        return cls(separator=separator, encoding=Encoding.FORM_DATA)

    @classmethod
    def from_no_encoding(cls, separator: str = "&") -> KeyValuePairConverter:
        return cls(separator=separator, encoding=Encoding.NONE)

    def with_separator(self, separator: str) -> KeyValuePairConverter:
        if separator == self.separator:
            return self
        return replace(self, separator=separator)

    def parse(self, value: Optional[Union[str, bytes]]) -> list[Pair]:
        if value is None:
            return []
        if isinstance(value, bytes):
            value = value.decode("utf-8", "surrogateescape")
        if not isinstance(value, str):
            value = stringify(value, what="query")
        assert_no_control_characters(value)
        if value == "":
            return [("", None)]

        pairs: list[Pair] = []
        for token in value.split(self.separator):
            key, sep, raw_value = token.partition("=")
            pairs.append((self._decode(key), self._decode(raw_value) if sep else None))
        return pairs

    def _decode(self, value: str) -> str:
        if self.encoding is Encoding.NONE:
            return value
        if self.encoding is Encoding.RFC1738:
            value = value.replace("+", " ")
        return decode_to_str(value)

    def build(self, pairs: Iterable[tuple[object, object]]) -> Optional[str]:
        tokens: list[str] = []
        for key, value in pairs:
            key = stringify(key, what="query key")
            token = self._encode(key, is_key=True)
            if value is not None:
                token += "=" + self._encode(stringify(value, what="query value"), is_key=False)
            tokens.append(token)

        if not tokens:
            return None
        joined = self.separator.join(tokens)
        # A token ending in part of a multi-character separator shifts the split.
        if (
            len(self.separator) > 1
            and self.encoding is not Encoding.NONE
            and joined.split(self.separator) != tokens
        ):
            raise UriSyntaxError(
                code="ambiguous_separator",
                message=f"the pairs can not be joined with `{self.separator}` without being split differently",
            )
        return joined

    def _encode(self, value: str, *, is_key: bool) -> str:
        if self.encoding is Encoding.NONE:
            return value

        if self.encoding is Encoding.RFC1738:
            encoded = "".join(
                char if char in RFC1738_SAFE else "+" if char == " " else PERCENT(char)
                for char in value
            )
            return _escape_separator(encoded, self.separator)

        if self.encoding is Encoding.RFC3987:
            escaped = RFC3987_ALWAYS_ESCAPED + self.separator + ("=" if is_key else "")
            encoded = "".join(
                PERCENT(char)
                if char in escaped
                or ord(char) < 0x20
                or ord(char) == 0x7F
                or 0xDC80 <= ord(char) <= 0xDCFF
                else char
                for char in value
            )
            return _escape_separator(encoded, self.separator)

        safe = RFC3986_KEY_SAFE if is_key else RFC3986_VALUE_SAFE
        safe = "".join(char for char in safe if char not in self.separator)
        return _escape_separator(percent_encoded(value, safe=safe), self.separator)

    def convert(
        self, value: Optional[str], *, source: Optional[KeyValuePairConverter] = None
    ) -> Optional[str]:
        """Re-escape a query string built with ``source`` using this converter."""
        source = source or KeyValuePairConverter(separator=self.separator)
        result = self.build(source.parse(value))
        if result != value:
            log_with_context(
                logger, logging.DEBUG, "Converted query encoding", encoding=self.encoding.name
            )
        return result


def parse_query(
    value: Optional[str], separator: str = "&", encoding: Encoding = Encoding.RFC3986
) -> list[Pair]:
    return KeyValuePairConverter(separator=separator, encoding=encoding).parse(value)


def build_query(
    pairs: Iterable[tuple[object, object]],
    separator: str = "&",
    encoding: Encoding = Encoding.RFC3986,
) -> Optional[str]:
    return KeyValuePairConverter(separator=separator, encoding=encoding).build(pairs)
