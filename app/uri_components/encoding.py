"""
Percent-encoding primitives shared by every uri component.

All encoders emit uppercase ``%XX`` triplets over the UTF-8 bytes of the
input. Decoders never fail: malformed triplets are left untouched.

See: https://www.rfc-editor.org/rfc/rfc3986#section-2.1
"""

from __future__ import annotations

import enum
import re
from typing import Optional, Union

from uri_components.errors import UnknownEncoding, UriSyntaxError

# https://datatracker.ietf.org/doc/html/rfc3986.html#section-2.3
UNRESERVED_CHARACTERS = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"
)
SUB_DELIMS = "!$&'()*+,;="
GEN_DELIMS = ":/?#[]@"

USER_SAFE = SUB_DELIMS
PASSWORD_SAFE = SUB_DELIMS + ":"
REG_NAME_SAFE = SUB_DELIMS
PATH_SAFE = SUB_DELIMS + ":@/"
QUERY_OR_FRAGMENT_SAFE = SUB_DELIMS + ":@/?"

PERCENT_ENCODED_REGEX = re.compile("%[A-Fa-f0-9]{2}")
PERCENT_ENCODED_BYTES_REGEX = re.compile(b"%([A-Fa-f0-9]{2})")
CONTROL_CHARACTERS_REGEX = re.compile(r"[\x00-\x1f\x7f]")

Stringable = Union[str, bytes]


class Encoding(enum.IntEnum):
    """How key/value pairs are escaped when a query is built or parsed."""

    NONE = 0
    RFC3986 = 1
    RFC3987 = 2
    RFC1738 = 3
    FORM_DATA = 3  # alias: application/x-www-form-urlencoded

    @classmethod
    def from_value(cls, value: Union[Encoding, int, str]) -> Encoding:
        if isinstance(value, Encoding):
            return value
        if isinstance(value, bool):
            raise UnknownEncoding.for_value(value)
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise UnknownEncoding.for_value(value) from None
        if isinstance(value, str):
            name = value.strip().upper().replace("-", "_")
            if name in cls.__members__:
                return cls.__members__[name]
        raise UnknownEncoding.for_value(value)


def _as_text(value: Stringable) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", "surrogateescape")
    return value


def PERCENT(string: str) -> str:
    return "".join(f"%{byte:02X}" for byte in string.encode("utf-8", "surrogateescape"))


def contains_control_characters(value: str) -> bool:
    return CONTROL_CHARACTERS_REGEX.search(value) is not None


def assert_no_control_characters(value: Optional[str]) -> None:
    if value is not None and contains_control_characters(value):
        raise UriSyntaxError.control_characters(value)


def percent_encoded(string: Stringable, safe: str) -> str:
    """
    Use percent-encoding to quote every character outside the safe set,
    including any '%'.
    """
    string = _as_text(string)
    NON_ESCAPED_CHARS = UNRESERVED_CHARACTERS + safe

    # Fast path for strings that don't need escaping.
    if not string.rstrip(NON_ESCAPED_CHARS):
        return string

    return "".join(
        [char if char in NON_ESCAPED_CHARS else PERCENT(char) for char in string]
    )


def encode(string: Stringable, safe: str = "") -> str:
    """
    Use percent-encoding to quote a string, omitting existing '%xx' escape sequences.

    * `string`: The string to be percent-escaped.
    * `safe`: A string containing characters that may be treated as safe, and do not
        need to be escaped. Unreserved characters are always treated as safe.

    A '%' that does not start a valid triplet is escaped as '%25'.
    """
    string = _as_text(string)
    parts = []
    current_position = 0
    for match in re.finditer(PERCENT_ENCODED_REGEX, string):
        start_position, end_position = match.start(), match.end()
        if start_position != current_position:
            leading_text = string[current_position:start_position]
            parts.append(percent_encoded(leading_text, safe=safe))

        parts.append(match.group(0).upper())
        current_position = end_position

    if current_position != len(string):
        trailing_text = string[current_position:]
        parts.append(percent_encoded(trailing_text, safe=safe))

    return "".join(parts)


def encode_all(string: Stringable, safe: str = "") -> str:
    """Quote a fully decoded string: every '%' is data and gets escaped."""
    return percent_encoded(string, safe=safe)


def decode(string: Stringable) -> bytes:
    raw = string if isinstance(string, bytes) else string.encode("utf-8", "surrogateescape")
    if b"%" not in raw:
        return raw
    return PERCENT_ENCODED_BYTES_REGEX.sub(lambda m: bytes([int(m.group(1), 16)]), raw)


def decode_to_str(string: Stringable) -> str:
    return decode(string).decode("utf-8", "surrogateescape")


def decode_unreserved(string: str) -> str:
    """Decode triplets of unreserved characters, uppercase every other triplet."""

    def _normalize(match: re.Match[str]) -> str:
        char = chr(int(match.group(0)[1:], 16))
        if char in UNRESERVED_CHARACTERS:
            return char
        return match.group(0).upper()

    return PERCENT_ENCODED_REGEX.sub(_normalize, string)


def encode_user(value: Optional[Stringable]) -> Optional[str]:
    return None if value is None else encode(value, safe=USER_SAFE)


def encode_password(value: Optional[Stringable]) -> Optional[str]:
    return None if value is None else encode(value, safe=PASSWORD_SAFE)


def encode_path(value: Optional[Stringable]) -> Optional[str]:
    return None if value is None else encode(value, safe=PATH_SAFE)


def encode_query_or_fragment(value: Optional[Stringable]) -> Optional[str]:
    return None if value is None else encode(value, safe=QUERY_OR_FRAGMENT_SAFE)


def encode_reg_name(value: Optional[Stringable]) -> Optional[str]:
    return None if value is None else encode(value, safe=REG_NAME_SAFE)


_NON_ASCII_TRIPLETS_REGEX = re.compile("(?:%[89A-Fa-f][0-9A-Fa-f])+")


def decode_for_display(string: Optional[str]) -> Optional[str]:
    """Decode unreserved and UTF-8 multi-byte triplets, keep delimiters encoded."""
    if string is None:
        return None

    def _utf8(match: re.Match[str]) -> str:
        try:
            return decode(match.group(0)).decode("utf-8")
        except UnicodeDecodeError:
            return match.group(0).upper()

    return _NON_ASCII_TRIPLETS_REGEX.sub(_utf8, decode_unreserved(string))
