from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Any, Optional, Union

from uri_components.encoding import assert_no_control_characters
from uri_components.errors import UriSyntaxError

# https://www.rfc-editor.org/rfc/rfc3986#appendix-B
URI_REGEX = re.compile(
    (
        r"(?:(?P<scheme>{scheme}):)?"
        r"(?://(?P<authority>{authority}))?"
        r"(?P<path>{path})"
        r"(?:\?(?P<query>{query}))?"
        r"(?:#(?P<fragment>{fragment}))?"
    ).format(
        scheme="[a-zA-Z][a-zA-Z0-9+.-]*",
        authority="[^/?#]*",
        path="[^?#]*",
        query="[^#]*",
        fragment=".*",
    ),
    re.DOTALL,
)

AUTHORITY_REGEX = re.compile(
    r"(?:(?P<userinfo>.*)@)?(?P<host>\[[^\]]*\]|[^:@\[\]]*)(?::(?P<port>.*))?",
    re.DOTALL,
)

PORT_REGEX = re.compile(r"[0-9]*")


@dataclass(frozen=True)
class UriComponents:
    scheme: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    path: str = ""
    query: Optional[str] = None
    fragment: Optional[str] = None

    def with_changes(self, **changes: Any) -> UriComponents:
        updated = replace(self, **changes)
        return self if updated == self else updated

    def authority(self) -> Optional[str]:
        if self.host is None:
            return None
        authority = self.host
        if self.user is not None:
            userinfo = self.user if self.password is None else f"{self.user}:{self.password}"
            authority = f"{userinfo}@{authority}"
        if self.port is not None:
            authority = f"{authority}:{self.port}"
        return authority

    def __str__(self) -> str:
        return build_uri(self)


UriInput = Union[str, UriComponents]


def parse_uri(value: str) -> UriComponents:
    """Split a URI string into its raw (still encoded) components."""
    assert_no_control_characters(value)

    # The URI_REGEX will always match, but may have empty components.
    uri_match = URI_REGEX.match(value)
    assert uri_match is not None
    parts = uri_match.groupdict()

    user = password = host = None
    port: Optional[int] = None
    authority = parts["authority"]
    if authority is not None:
        authority_match = AUTHORITY_REGEX.fullmatch(authority)
        if authority_match is None:
            raise UriSyntaxError.invalid("authority", authority)
        userinfo = authority_match.group("userinfo")
        if userinfo is not None:
            user, sep, raw_password = userinfo.partition(":")
            password = raw_password if sep else None
        host = authority_match.group("host")
        raw_port = authority_match.group("port")
        if raw_port is not None:
            if not PORT_REGEX.fullmatch(raw_port):
                raise UriSyntaxError.invalid("port", raw_port)
            port = int(raw_port) if raw_port else None

    path = parts["path"]
    if authority is not None and path and not path.startswith("/"):
        raise UriSyntaxError.invalid("path", path)

    return UriComponents(
        scheme=parts["scheme"],
        user=user,
        password=password,
        host=host,
        port=port,
        path=path,
        query=parts["query"],
        fragment=parts["fragment"],
    )


def build_uri(components: UriComponents) -> str:
    # https://www.rfc-editor.org/rfc/rfc3986#section-5.3
    parts = []
    if components.scheme is not None:
        parts.append(f"{components.scheme}:")
    authority = components.authority()
    if authority is not None:
        parts.append(f"//{authority}")
    parts.append(components.path)
    if components.query is not None:
        parts.append(f"?{components.query}")
    if components.fragment is not None:
        parts.append(f"#{components.fragment}")
    return "".join(parts)


def as_uri_components(uri: UriInput) -> UriComponents:
    if isinstance(uri, UriComponents):
        return uri
    if isinstance(uri, str):
        return parse_uri(uri)
    raise UriSyntaxError.invalid("uri", uri)
