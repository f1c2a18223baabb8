"""
URI modifier: a small façade editing the query and host of a URI.

The URI is resolved once into ``UriComponents``; every method returns a new
``Modifier`` (or the same one when nothing changes). Host conversions that
do not apply to the current host shape are no-ops, never errors.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from uri_components import ipv6
from uri_components.components import Fragment, Path, Port, Scheme, UserInfo
from uri_components.config import UriConfig, get_config
from uri_components.domain import Domain
from uri_components.encoding import (
    Encoding,
    decode_for_display,
    encode_query_or_fragment,
)
from uri_components.errors import UriSyntaxError
from uri_components.host import Host
from uri_components.ipv4 import IPv4Converter
from uri_components.key_value import KeyValuePairConverter
from uri_components.logging_config import log_with_context
from uri_components.query import Query
from uri_components.uri_string import UriComponents, UriInput, as_uri_components, build_uri

logger = logging.getLogger(__name__)

ConverterInput = Union[KeyValuePairConverter, Encoding, int, str]


def _as_converter(value: ConverterInput, separator: str) -> KeyValuePairConverter:
    if isinstance(value, KeyValuePairConverter):
        return value
    return KeyValuePairConverter.from_encoding(value, separator)


class Modifier:
    __slots__ = ("_uri", "_config", "_ipv4")

    def __init__(
        self,
        uri: UriInput,
        config: Optional[UriConfig] = None,
        ipv4_converter: Optional[IPv4Converter] = None,
    ):
        self._uri = as_uri_components(uri)
        self._config = config or get_config()
        self._ipv4 = ipv4_converter or IPv4Converter.from_config(self._config)

    @classmethod
    def wrap(cls, uri: UriInput, config: Optional[UriConfig] = None) -> Modifier:
        return cls(uri, config)

    def _with(self, **changes: Any) -> Modifier:
        uri = self._uri.with_changes(**changes)
        if uri is self._uri:
            return self
        return Modifier(uri, self._config, self._ipv4)

    def _not_applicable(self, operation: str) -> Modifier:
        if self._config.log_debug_noops:
            log_with_context(
                logger,
                logging.DEBUG,
                "Host modification not applicable",
                component="host",
                operation=operation,
                host=self._uri.host,
            )
        return self

    # Output

    def uri(self) -> UriComponents:
        return self._uri

    def to_string(self) -> str:
        return build_uri(self._uri)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Modifier({self.to_string()!r})"

    def to_display_string(self) -> str:
        """Human readable form: unicode host, decoded non-ASCII characters."""
        host = self._uri.host
        host_object = Host.try_new(host)
        if host_object is not None and host_object.is_registered_name():
            host = host_object.to_unicode()
        query = self._uri.query
        if query is not None:
            query = self._query().to_rfc3987() if query else query
        display = UriComponents(
            scheme=self._uri.scheme,
            user=decode_for_display(self._uri.user),
            password=decode_for_display(self._uri.password),
            host=host,
            port=self._uri.port,
            path=decode_for_display(self._uri.path) or "",
            query=query,
            fragment=decode_for_display(self._uri.fragment),
        )
        return build_uri(display)

    # Components

    def with_query(self, query: Union[Query, str, None]) -> Modifier:
        if isinstance(query, Query):
            query = query.value()
        elif query is not None:
            query = encode_query_or_fragment(query)
        return self._with(query=query)

    def with_fragment(self, fragment: Union[Fragment, str, None]) -> Modifier:
        if not isinstance(fragment, Fragment):
            fragment = Fragment(fragment)
        return self._with(fragment=fragment.value())

    def with_scheme(self, scheme: Union[Scheme, str, None]) -> Modifier:
        if not isinstance(scheme, Scheme):
            scheme = Scheme(scheme)
        return self._with(scheme=scheme.value())

    def with_user_info(
        self, user: Union[UserInfo, str, None], password: Optional[str] = None
    ) -> Modifier:
        user_info = user if isinstance(user, UserInfo) else UserInfo(user, password)
        if user_info.value() is not None and self._uri.host is None:
            raise UriSyntaxError(
                code="missing_host",
                message="user information can not be set on a URI without a host",
            )
        return self._with(user=user_info.user(), password=user_info.password())

    def with_port(self, port: Union[Port, int, str, None]) -> Modifier:
        if not isinstance(port, Port):
            port = Port(port)
        if port.to_int() is not None and self._uri.host is None:
            raise UriSyntaxError(
                code="missing_host",
                message="a port can not be set on a URI without a host",
            )
        return self._with(port=port.to_int())

    def with_path(self, path: Union[Path, str]) -> Modifier:
        if not isinstance(path, Path):
            path = Path(path)
        # https://www.rfc-editor.org/rfc/rfc3986#section-3.3
        if self._uri.host is not None and path.value() and not path.is_absolute():
            raise UriSyntaxError.invalid("path", path.value())
        return self._with(path=path.value())

    def with_host(self, host: Union[Host, str, None]) -> Modifier:
        if isinstance(host, Host):
            return self._with(host=host.value())
        if host is None:
            return self._with(host=None)
        parsed = Host(host)
        value = parsed.value() if host.isascii() else parsed.to_unicode()
        return self._with(host=value)

    # Query

    def _query(self) -> Query:
        return Query.from_rfc3986(self._uri.query, self._config.query_separator)

    def _with_query_object(self, query: Query) -> Modifier:
        return self._with(query=query.value())

    def encode_query(
        self, to: Optional[ConverterInput] = None, source: Optional[ConverterInput] = None
    ) -> Modifier:
        """Re-encode the query; ``to`` defaults to the configured query encoding."""
        separator = self._config.query_separator
        to = _as_converter(to if to is not None else self._config.query_encoding, separator)
        source = _as_converter(source if source is not None else Encoding.RFC3986, separator)
        if to == source:
            return self

        original = self._uri.query
        if original is None or original.strip() == "":
            return self

        return self._with(query=to.convert(original, source=source))

    def sort_query(self) -> Modifier:
        return self._with_query_object(self._query().sort())

    def append_query(self, query: Union[Query, str, None]) -> Modifier:
        return self._with_query_object(self._query().append(query))

    def merge_query(self, query: Union[Query, str, None]) -> Modifier:
        return self._with_query_object(self._query().merge(query))

    def append_query_pairs(self, pairs: Iterable[tuple[Any, Any]]) -> Modifier:
        return self.append_query(Query.from_pairs(pairs, self._config.query_separator))

    def merge_query_pairs(self, pairs: Iterable[tuple[Any, Any]]) -> Modifier:
        pairs = list(pairs)
        if not pairs:
            return self
        return self.merge_query(Query.from_pairs(pairs, self._config.query_separator))

    def append_query_parameters(self, parameters: Mapping[Any, Any], prefix: str = "") -> Modifier:
        return self.append_query(
            Query.from_parameters(parameters, self._config.query_separator, prefix=prefix)
        )

    def merge_query_parameters(self, parameters: Mapping[Any, Any], prefix: str = "") -> Modifier:
        current = self._query().parameters()
        if not parameters or current == dict(parameters):
            return self
        merged = {**current, **parameters}
        return self._with_query_object(
            Query.from_parameters(merged, self._config.query_separator, prefix=prefix)
        )

    def remove_query_pairs_by_key(self, *keys: str) -> Modifier:
        return self._with_query_object(self._query().without_pair_by_key(*keys))

    def remove_query_pairs_by_value(self, *values: Any) -> Modifier:
        return self._with_query_object(self._query().without_pair_by_value(*values))

    def remove_query_pairs_by_key_value(self, key: str, value: Any) -> Modifier:
        return self._with_query_object(self._query().without_pair_by_key_value(key, value))

    def remove_query_parameters(self, *names: str) -> Modifier:
        return self._with_query_object(self._query().without_parameters(*names))

    def remove_empty_query_pairs(self) -> Modifier:
        return self._with_query_object(self._query().without_blank_pairs())

    def remove_query_parameter_indices(self) -> Modifier:
        return self._with_query_object(self._query().without_numeric_indices())

    # Host

    def _render(self, domain: Domain, keep_ascii: bool) -> Optional[str]:
        return domain.to_ascii() if keep_ascii else domain.to_unicode()

    def add_root_label(self) -> Modifier:
        host = self._uri.host
        if host is None or host.endswith("."):
            return self
        return self.with_host(host + ".")

    def remove_root_label(self) -> Modifier:
        host = self._uri.host
        if not host or not host.endswith("."):
            return self
        return self.with_host(host[:-1])

    def append_label(self, label: Optional[str]) -> Modifier:
        current = self._uri.host
        keep_ascii = current is None or current.isascii()
        label_host = Host(label)
        if label_host.value() is None:
            return self

        host = Host(current)
        if host.is_ipv4():
            return self._with(host=f"{host.value()}.{label_host.value().lstrip('.')}")
        if not host.is_domain():
            raise UriSyntaxError(
                code="label_not_supported",
                message=f"the URI host `{current}` cannot be appended",
            )
        return self._with(host=self._render(Domain(host).append(label_host.value()), keep_ascii))

    def prepend_label(self, label: Optional[str]) -> Modifier:
        current = self._uri.host
        keep_ascii = current is None or current.isascii()
        label_host = Host(label)
        if label_host.value() is None:
            return self

        host = Host(current)
        if host.is_ipv4():
            return self._with(host=f"{label_host.value().rstrip('.')}.{host.value()}")
        if not host.is_domain():
            raise UriSyntaxError(
                code="label_not_supported",
                message=f"the URI host `{current}` cannot be prepended",
            )
        return self._with(host=self._render(Domain(host).prepend(label_host.value()), keep_ascii))

    def replace_label(self, offset: int, label: Optional[str]) -> Modifier:
        current = self._uri.host
        keep_ascii = current is None or current.isascii()
        return self._with(host=self._render(Domain(current).with_label(offset, label), keep_ascii))

    def remove_labels(self, *offsets: int) -> Modifier:
        current = self._uri.host
        if current is None:
            return self
        domain = Domain(current).without_label(*offsets)
        return self._with(host=self._render(domain, current.isascii()))

    def slice_labels(self, offset: int, length: Optional[int] = None) -> Modifier:
        current = self._uri.host
        if current is None:
            return self
        domain = Domain(current).slice(offset, length)
        return self._with(host=self._render(domain, current.isascii()))

    def host_to_ascii(self) -> Modifier:
        current = self._uri.host
        if not current:
            return self._not_applicable("host_to_ascii")
        return self._with(host=Host(current).to_ascii())

    def host_to_unicode(self) -> Modifier:
        current = self._uri.host
        if not current:
            return self._not_applicable("host_to_unicode")
        return self._with(host=Host(current).to_unicode())

    def _convert_ipv4(self, operation: str, converted: Optional[str]) -> Modifier:
        current = self._uri.host
        if not current or converted is None or converted == current:
            return self._not_applicable(operation)
        return self._with(host=converted)

    def host_to_decimal(self) -> Modifier:
        return self._convert_ipv4("host_to_decimal", self._ipv4.to_decimal(self._uri.host))

    def host_to_octal(self) -> Modifier:
        return self._convert_ipv4("host_to_octal", self._ipv4.to_octal(self._uri.host))

    def host_to_hexadecimal(self) -> Modifier:
        return self._convert_ipv4("host_to_hexadecimal", self._ipv4.to_hexadecimal(self._uri.host))

    def host_to_ipv6_compressed(self) -> Modifier:
        converted = ipv6.compress(self._uri.host)
        if converted == self._uri.host:
            return self._not_applicable("host_to_ipv6_compressed")
        return self._with(host=converted)

    def host_to_ipv6_expanded(self) -> Modifier:
        converted = ipv6.expand(self._uri.host)
        if converted == self._uri.host:
            return self._not_applicable("host_to_ipv6_expanded")
        return self._with(host=converted)

    def remove_zone_id(self) -> Modifier:
        host = Host(self._uri.host)
        if not host.has_zone_identifier():
            return self._not_applicable("remove_zone_id")
        return self._with(host=host.without_zone_identifier().value())

    def normalize_ip(self) -> Modifier:
        current = self._uri.host
        if not current:
            return self
        converted = self._ipv4.to_decimal(current)
        if converted is None:
            converted = ipv6.compress(current)
        if converted == current:
            return self
        return self._with(host=converted)

    def normalize_host(self) -> Modifier:
        current = self._uri.host
        if not current:
            return self
        normalized = self.normalize_ip()
        if normalized is not self:
            return normalized
        return self._with(host=Host(current).to_ascii())
