"""
Scheme, port, user information, path and fragment value objects.

Each object is immutable and keeps its RFC 3986 (encoded) form; ``with_*``
methods return a new instance, or the same one when nothing changes.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Union

from uri_components.encoding import (
    assert_no_control_characters,
    decode_for_display,
    decode_to_str,
    encode_password,
    encode_path,
    encode_query_or_fragment,
    encode_user,
)
from uri_components.errors import UriSyntaxError

SCHEME_REGEX = re.compile(r"[a-zA-Z][a-zA-Z0-9+.-]*")
PORT_REGEX = re.compile(r"[0-9]+")


def _as_text(value: object, *, what: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise UriSyntaxError.invalid(what, value)
    assert_no_control_characters(value)
    return value


class Scheme:
    __slots__ = ("_value",)

    def __init__(self, value: Optional[str] = None):
        value = _as_text(value, what="scheme")
        if value is not None and not SCHEME_REGEX.fullmatch(value):
            raise UriSyntaxError.invalid("scheme", value)
        self._value = None if value is None else value.lower()

    @classmethod
    def new(cls, value: Optional[str] = None) -> Scheme:
        return cls(value)

    @classmethod
    def try_new(cls, value: Optional[str] = None) -> Optional[Scheme]:
        try:
            return cls(value)
        except UriSyntaxError:
            return None

    @classmethod
    def from_uri(cls, uri: Any) -> Scheme:
        from uri_components.uri_string import as_uri_components

        return cls(as_uri_components(uri).scheme)

    def value(self) -> Optional[str]:
        return self._value

    def uri_component(self) -> str:
        return "" if self._value is None else f"{self._value}:"

    def __str__(self) -> str:
        return self._value or ""

    def __repr__(self) -> str:
        return f"Scheme({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Scheme):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)


class Port:
    """A port number; any non-negative integer, or ``None`` when absent."""

    __slots__ = ("_value",)

    def __init__(self, value: Union[int, str, None] = None):
        self._value = self._parse(value)

    @staticmethod
    def _parse(value: Union[int, str, None]) -> Optional[int]:
        if value is None:
            return None
        if isinstance(value, bool):
            raise UriSyntaxError.invalid("port", value)
        if isinstance(value, int):
            if value < 0:
                raise UriSyntaxError.invalid("port", value)
            return value
        if isinstance(value, str) and PORT_REGEX.fullmatch(value):
            return int(value)
        raise UriSyntaxError.invalid("port", value)

    @classmethod
    def new(cls, value: Union[int, str, None] = None) -> Port:
        return cls(value)

    @classmethod
    def try_new(cls, value: Union[int, str, None] = None) -> Optional[Port]:
        try:
            return cls(value)
        except UriSyntaxError:
            return None

    @classmethod
    def from_uri(cls, uri: Any) -> Port:
        from uri_components.uri_string import as_uri_components

        return cls(as_uri_components(uri).port)

    def value(self) -> Optional[str]:
        return None if self._value is None else str(self._value)

    def to_int(self) -> Optional[int]:
        return self._value

    def uri_component(self) -> str:
        return "" if self._value is None else f":{self._value}"

    def __str__(self) -> str:
        return self.value() or ""

    def __repr__(self) -> str:
        return f"Port({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Port):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)


class UserInfo:
    """The ``user[:password]`` part of an authority.

    Both parts are kept encoded. A password without a user is dropped.
    """

    __slots__ = ("_user", "_password")

    def __init__(self, user: Optional[str] = None, password: Optional[str] = None):
        self._user = encode_user(_as_text(user, what="user"))
        password = _as_text(password, what="password")
        self._password = None if self._user is None else encode_password(password)

    @classmethod
    def new(cls, value: Optional[str] = None) -> UserInfo:
        """Split ``user:password`` on the first colon."""
        value = _as_text(value, what="user information")
        if value is None:
            return cls()
        user, sep, password = value.partition(":")
        return cls(user, password if sep else None)

    @classmethod
    def try_new(cls, value: Optional[str] = None) -> Optional[UserInfo]:
        try:
            return cls.new(value)
        except UriSyntaxError:
            return None

    @classmethod
    def from_uri(cls, uri: Any) -> UserInfo:
        from uri_components.uri_string import as_uri_components

        components = as_uri_components(uri)
        return cls(components.user, components.password)

    def user(self) -> Optional[str]:
        return self._user

    def password(self) -> Optional[str]:
        return self._password

    def decoded_user(self) -> Optional[str]:
        return None if self._user is None else decode_to_str(self._user)

    def decoded_password(self) -> Optional[str]:
        return None if self._password is None else decode_to_str(self._password)

    def value(self) -> Optional[str]:
        if self._user is None:
            return None
        if self._password is None:
            return self._user
        return f"{self._user}:{self._password}"

    def uri_component(self) -> str:
        value = self.value()
        return "" if value is None else f"{value}@"

    def with_user(self, user: Optional[str]) -> UserInfo:
        return self._with(user, self._password)

    def with_password(self, password: Optional[str]) -> UserInfo:
        return self._with(self._user, password)

    def _with(self, user: Optional[str], password: Optional[str]) -> UserInfo:
        updated = UserInfo(user, password)
        return self if updated == self else updated

    def __str__(self) -> str:
        return self.value() or ""

    def __repr__(self) -> str:
        return f"UserInfo({self.value()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UserInfo):
            return NotImplemented
        return (self._user, self._password) == (other._user, other._password)

    def __hash__(self) -> int:
        return hash((self._user, self._password))


class Fragment:
    __slots__ = ("_value",)

    def __init__(self, value: Optional[str] = None):
        self._value = encode_query_or_fragment(_as_text(value, what="fragment"))

    @classmethod
    def new(cls, value: Optional[str] = None) -> Fragment:
        return cls(value)

    @classmethod
    def try_new(cls, value: Optional[str] = None) -> Optional[Fragment]:
        try:
            return cls(value)
        except UriSyntaxError:
            return None

    @classmethod
    def from_uri(cls, uri: Any) -> Fragment:
        from uri_components.uri_string import as_uri_components

        return cls(as_uri_components(uri).fragment)

    def value(self) -> Optional[str]:
        return self._value

    def decoded(self) -> Optional[str]:
        return None if self._value is None else decode_to_str(self._value)

    def to_display(self) -> Optional[str]:
        return decode_for_display(self._value)

    def uri_component(self) -> str:
        return "" if self._value is None else f"#{self._value}"

    def __str__(self) -> str:
        return self._value or ""

    def __repr__(self) -> str:
        return f"Fragment({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fragment):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)


class Path:
    """A URI path, kept encoded. Dot-segment removal belongs to reference resolution."""

    __slots__ = ("_value",)

    def __init__(self, value: str = ""):
        if value is None:
            raise UriSyntaxError.invalid("path", value)
        self._value = encode_path(_as_text(value, what="path"))

    @classmethod
    def new(cls, value: str = "") -> Path:
        return cls(value)

    @classmethod
    def try_new(cls, value: str = "") -> Optional[Path]:
        try:
            return cls(value)
        except UriSyntaxError:
            return None

    @classmethod
    def from_uri(cls, uri: Any) -> Path:
        from uri_components.uri_string import as_uri_components

        return cls(as_uri_components(uri).path)

    def value(self) -> str:
        return self._value

    def decoded(self) -> str:
        return decode_to_str(self._value)

    def uri_component(self) -> str:
        return self._value

    def is_absolute(self) -> bool:
        return self._value.startswith("/")

    def has_trailing_slash(self) -> bool:
        return self._value.endswith("/")

    def with_trailing_slash(self) -> Path:
        return self if self.has_trailing_slash() else Path(self._value + "/")

    def without_trailing_slash(self) -> Path:
        return Path(self._value[:-1]) if self.has_trailing_slash() else self

    def with_leading_slash(self) -> Path:
        return self if self.is_absolute() else Path("/" + self._value)

    def without_leading_slash(self) -> Path:
        return Path(self._value[1:]) if self.is_absolute() else self

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"Path({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)
