from __future__ import annotations

import enum
import ipaddress
import re
from typing import Any, Optional

from uri_components.encoding import (
    GEN_DELIMS,
    PERCENT_ENCODED_REGEX,
    contains_control_characters,
    decode,
    decode_to_str,
)
from uri_components.errors import UriSyntaxError
from uri_components.idna_converter import IdnaConverter

_UNRESERVED = r"a-zA-Z0-9\-._~"
_SUB_DELIMS = r"!$&'()*+,;="

IPV4_REGEX = re.compile(
    r"(?:(?:25[0-5]|2[0-4][0-9]|1[0-9]{2}|[1-9]?[0-9])\.){3}"
    r"(?:25[0-5]|2[0-4][0-9]|1[0-9]{2}|[1-9]?[0-9])"
)
IP_FUTURE_REGEX = re.compile(
    rf"v(?P<version>[0-9a-f]+)\.(?P<address>[{_UNRESERVED}{_SUB_DELIMS}:]+)", re.IGNORECASE
)
REG_NAME_REGEX = re.compile(rf"(?:[{_UNRESERVED}{_SUB_DELIMS}]|%[0-9A-Fa-f]{{2}})*")
ZONE_ID_REGEX = re.compile(rf"(?:[{_UNRESERVED}]|%[0-9A-Fa-f]{{2}})+")
DOMAIN_LABEL_REGEX = re.compile(r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?")
INVALID_HOST_CHARS_REGEX = re.compile(r"[:/?#\[\]@ ]")

MAX_DOMAIN_LENGTH = 253
MAX_DOMAIN_LABELS = 127


class HostType(str, enum.Enum):
    REGISTERED_NAME = "registered_name"
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    IPVFUTURE = "ipvfuture"


def _uppercase_triplets(value: str) -> str:
    return PERCENT_ENCODED_REGEX.sub(lambda m: m.group(0).upper(), value)


def _parse_ipv6(inner: str) -> Optional[tuple[str, Optional[str]]]:
    address, sep, zone = inner.partition("%")
    try:
        ip = ipaddress.IPv6Address(address)
    except ValueError:
        return None

    if not sep:
        return address.lower(), None

    # In a URI the zone delimiter is itself percent-encoded: "%25".
    if not zone.startswith("25") or not ZONE_ID_REGEX.fullmatch(zone[2:]):
        raise UriSyntaxError.invalid("host", f"[{inner}]")
    decoded_zone = decode_to_str(zone[2:])
    if contains_control_characters(decoded_zone) or any(
        char in GEN_DELIMS or char == " " for char in decoded_zone
    ):
        raise UriSyntaxError.invalid("host", f"[{inner}]")
    if not ip.is_link_local:
        raise UriSyntaxError(
            code="invalid_zone_identifier",
            message=f"the zone identifier of `[{inner}]` is only allowed on link-local addresses",
        )
    return address.lower(), zone[2:]


class Host:
    """A URI host: registered name, IPv4, IPv6 or IPvFuture literal.

    ``value()`` is always the ASCII (RFC 3986) form; IDN registered names are
    stored punycoded and can be read back with ``to_unicode()``.
    """

    __slots__ = ("_value", "_type", "_ip_version", "_zone_id")

    def __init__(self, value: Optional[str] = None):
        self._type: Optional[HostType] = None
        self._ip_version: Optional[str] = None
        self._zone_id: Optional[str] = None
        self._value = self._parse(value)

    @classmethod
    def new(cls, value: Optional[str] = None) -> Host:
        return cls(value)

    @classmethod
    def try_new(cls, value: Optional[str] = None) -> Optional[Host]:
        try:
            return cls(value)
        except UriSyntaxError:
            return None

    @classmethod
    def from_ip(cls, ip: str, version: str = "") -> Host:
        if version:
            return cls(f"[v{version}.{ip}]")
        try:
            address = ipaddress.ip_address(ip)
        except ValueError:
            raise UriSyntaxError.invalid("IP address", ip) from None
        if address.version == 4:
            return cls(str(address))
        return cls(f"[{ip.replace('%', '%25', 1)}]")

    @classmethod
    def from_uri(cls, uri: Any) -> Host:
        from uri_components.uri_string import as_uri_components

        return cls(as_uri_components(uri).host)

    def _parse(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise UriSyntaxError.invalid("host", value)
        if contains_control_characters(value):
            raise UriSyntaxError.control_characters(value)
        if value == "":
            self._type = HostType.REGISTERED_NAME
            return ""

        if value.startswith("[") and value.endswith("]"):
            return self._parse_ip_literal(value[1:-1])

        if IPV4_REGEX.fullmatch(value):
            self._type = HostType.IPV4
            self._ip_version = "4"
            return value

        self._type = HostType.REGISTERED_NAME
        if value.isascii():
            if not REG_NAME_REGEX.fullmatch(value):
                raise UriSyntaxError.invalid("host", value)
            if "%" not in value:
                return value.lower()
            decoded = decode(value)
            if decoded.isascii():
                return _uppercase_triplets(value.lower())
            value = decoded.decode("utf-8", "surrogateescape")
        elif INVALID_HOST_CHARS_REGEX.search(value):
            raise UriSyntaxError.invalid("host", value)
        else:
            value = decode_to_str(value)

        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise UriSyntaxError.invalid("host", value) from None
        if INVALID_HOST_CHARS_REGEX.search(value) or contains_control_characters(value):
            raise UriSyntaxError.invalid("host", value)
        return IdnaConverter.to_ascii_or_fail(value)

    def _parse_ip_literal(self, inner: str) -> str:
        future = IP_FUTURE_REGEX.fullmatch(inner)
        if future is not None:
            version = future.group("version").lower()
            if version in ("4", "6"):
                raise UriSyntaxError.invalid("host", f"[{inner}]")
            self._type = HostType.IPVFUTURE
            self._ip_version = version
            return f"[v{version}.{future.group('address')}]"

        parsed = _parse_ipv6(inner)
        if parsed is None:
            raise UriSyntaxError.invalid("host", f"[{inner}]")
        address, zone = parsed
        self._type = HostType.IPV6
        self._ip_version = "6"
        self._zone_id = zone
        return f"[{address}]" if zone is None else f"[{address}%25{zone}]"

    # Accessors

    def value(self) -> Optional[str]:
        return self._value

    def to_ascii(self) -> Optional[str]:
        return self._value

    def to_unicode(self) -> Optional[str]:
        if self._type is not HostType.REGISTERED_NAME or not self._value:
            return self._value
        result = IdnaConverter.to_unicode(self._value)
        return self._value if result.has_errors else result.domain

    def uri_component(self) -> str:
        return self._value or ""

    @property
    def type(self) -> Optional[HostType]:
        return self._type

    def __str__(self) -> str:
        return self._value or ""

    def __repr__(self) -> str:
        return f"Host({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Host):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    # Classification

    def is_ip(self) -> bool:
        return self._type in (HostType.IPV4, HostType.IPV6, HostType.IPVFUTURE)

    def is_ipv4(self) -> bool:
        return self._type is HostType.IPV4

    def is_ipv6(self) -> bool:
        return self._type is HostType.IPV6

    def is_ip_future(self) -> bool:
        return self._type is HostType.IPVFUTURE

    def is_registered_name(self) -> bool:
        return self._type is HostType.REGISTERED_NAME

    def is_domain(self) -> bool:
        if self._type is not HostType.REGISTERED_NAME or not self._value:
            return False
        value = self._value
        if value.endswith(".") and len(value) > 1:
            value = value[:-1]
        if len(value) > MAX_DOMAIN_LENGTH:
            return False
        labels = value.split(".")
        if len(labels) > MAX_DOMAIN_LABELS:
            return False
        if not all(DOMAIN_LABEL_REGEX.fullmatch(label) for label in labels):
            return False
        return not IdnaConverter.to_unicode(value).has_errors

    def ip_version(self) -> Optional[str]:
        return self._ip_version

    def ip(self) -> Optional[str]:
        if self._type is HostType.IPV4:
            return self._value
        if self._type is HostType.IPV6:
            inner = self._value[1:-1]
            if self._zone_id is None:
                return inner
            address = inner.partition("%25")[0]
            return f"{address}%{decode_to_str(self._zone_id)}"
        if self._type is HostType.IPVFUTURE:
            return self._value[1:-1].partition(".")[2]
        return None

    def has_zone_identifier(self) -> bool:
        return self._zone_id is not None

    def without_zone_identifier(self) -> Host:
        if self._zone_id is None:
            return self
        return Host(self._value.partition("%25")[0] + "]")
