from __future__ import annotations

from typing import Any, Iterator, Optional, Union

from uri_components.errors import OffsetOutOfBounds, UriSyntaxError
from uri_components.host import Host
from uri_components.idna_converter import IdnaConverter

SEPARATOR = "."

DomainInput = Union["Domain", Host, str, None]


def _ascii_label(label: Any) -> str:
    if isinstance(label, int) and not isinstance(label, bool):
        label = str(label)
    if not isinstance(label, str):
        raise UriSyntaxError.invalid("label", label)
    if label.isascii():
        return label.lower()
    return IdnaConverter.to_ascii(label).domain


class Domain:
    """A registered name seen as a list of labels.

    Labels are indexed from the right: offset 0 is the top level label and
    negative offsets count from the leftmost label.
    """

    __slots__ = ("_host", "_labels")

    def __init__(self, host: DomainInput = None):
        if isinstance(host, Domain):
            host = host._host
        if not isinstance(host, Host):
            host = Host(host)
        if host.value() is not None and not host.is_domain():
            raise UriSyntaxError.invalid("domain", host.value())
        self._host = host
        value = host.value()
        self._labels: tuple[str, ...] = (
            () if value is None else tuple(reversed(value.split(SEPARATOR)))
        )

    @classmethod
    def new(cls, host: DomainInput = None) -> Domain:
        return cls(host)

    @classmethod
    def try_new(cls, host: DomainInput = None) -> Optional[Domain]:
        try:
            return cls(host)
        except UriSyntaxError:
            return None

    @classmethod
    def from_labels(cls, *labels: Any) -> Domain:
        value = SEPARATOR.join(str(label) for label in reversed(labels))
        return cls(value or None)

    @classmethod
    def from_uri(cls, uri: Any) -> Domain:
        return cls(Host.from_uri(uri))

    # Accessors

    @property
    def host(self) -> Host:
        return self._host

    def value(self) -> Optional[str]:
        return self._host.value()

    def to_ascii(self) -> Optional[str]:
        return self._host.to_ascii()

    def to_unicode(self) -> Optional[str]:
        return self._host.to_unicode()

    def uri_component(self) -> str:
        return self._host.uri_component()

    def __str__(self) -> str:
        return str(self._host)

    def __repr__(self) -> str:
        return f"Domain({self.value()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Domain):
            return NotImplemented
        return self._host == other._host

    def __hash__(self) -> int:
        return hash(self._host)

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def labels(self) -> list[str]:
        return list(self._labels)

    def is_empty(self) -> bool:
        return self._host.value() is None

    def get(self, offset: int) -> Optional[str]:
        if offset < 0:
            offset += len(self._labels)
        if 0 <= offset < len(self._labels):
            return self._labels[offset]
        return None

    def first(self) -> Optional[str]:
        return self.get(0)

    def last(self) -> Optional[str]:
        return self.get(-1)

    def keys(self, label: Optional[str] = None) -> list[int]:
        if label is None:
            return list(range(len(self._labels)))
        label = _ascii_label(label)
        return [offset for offset, current in enumerate(self._labels) if current == label]

    def index_of(self, label: str) -> Optional[int]:
        keys = self.keys(label)
        return keys[0] if keys else None

    def last_index_of(self, label: str) -> Optional[int]:
        keys = self.keys(label)
        return keys[-1] if keys else None

    def contains(self, label: str) -> bool:
        return bool(self.keys(label))

    def is_absolute(self) -> bool:
        return len(self._labels) > 1 and self._labels[0] == ""

    # Relations

    def is_subdomain_of(self, parent: DomainInput) -> bool:
        if self.is_empty():
            return False
        if not isinstance(parent, Domain):
            parent = Domain.try_new(parent)
        if parent is None or parent.is_empty() or len(self) <= len(parent):
            return False
        child_value = self.without_root_label().to_ascii() or ""
        parent_value = parent.without_root_label().to_ascii() or ""
        return child_value.endswith(SEPARATOR + parent_value)

    def has_subdomain(self, child: DomainInput) -> bool:
        if not isinstance(child, Domain):
            child = Domain.try_new(child)
        return child is not None and child.is_subdomain_of(self)

    def is_sibling_of(self, sibling: DomainInput) -> bool:
        if not isinstance(sibling, Domain):
            sibling = Domain.try_new(sibling)
        return (
            sibling is not None
            and not self.is_empty()
            and not sibling.is_empty()
            and self != sibling
            and self.parent_host() == sibling.parent_host()
        )

    def parent_host(self) -> Domain:
        return self.without_root_label().slice(0, -1)

    def common_ancestor_with(self, other: DomainInput) -> Domain:
        if not isinstance(other, Domain):
            other = Domain.try_new(other)
        if other is None:
            return Domain(None)
        other = other.without_root_label()
        labels = []
        for offset, label in enumerate(self.without_root_label()):
            if label != other.get(offset):
                break
            labels.append(label)
        return Domain.from_labels(*labels)

    # Modifiers

    def prepend(self, label: Any) -> Domain:
        if label is None:
            return self
        label = str(label)
        value = self.value()
        if value is None:
            return Domain(label)
        if label.endswith(SEPARATOR):
            return Domain(label + value)
        return Domain(label + SEPARATOR + value)

    def append(self, label: Any) -> Domain:
        if label is None:
            return self
        label = str(label)
        value = self.value()
        if value is None:
            return Domain(label)
        if not self.is_absolute():
            return Domain(value + SEPARATOR + label)
        if label.endswith(SEPARATOR):
            return Domain(value + label)
        return Domain(value + label + SEPARATOR)

    def with_root_label(self) -> Domain:
        if self.is_empty() or self.is_absolute():
            return self
        return self.append("")

    def without_root_label(self) -> Domain:
        if not self.is_absolute():
            return self
        return Domain.from_labels(*self._labels[1:])

    def with_label(self, offset: int, label: Any) -> Domain:
        """Replace the label at ``offset``.

        ``len(domain)`` appends a new rightmost label and ``-len(domain) - 1``
        prepends a new leftmost one.
        """
        size = len(self._labels)
        if offset < -size - 1 or offset > size:
            raise OffsetOutOfBounds.for_offset(offset, size)
        if offset == size:
            return self.append(label)
        if offset == -size - 1:
            return self.prepend(label)
        if offset < 0:
            offset += size

        if label is None:
            return self.without_label(offset)
        label = Host(str(label)).value() or ""
        if label == self._labels[offset]:
            return self
        labels = list(self._labels)
        labels[offset] = label
        return Domain.from_labels(*labels)

    def without_label(self, *offsets: int) -> Domain:
        if not offsets:
            return self
        size = len(self._labels)
        deleted = set()
        for offset in offsets:
            if offset < -size or offset > size - 1:
                raise OffsetOutOfBounds.for_offset(offset, size)
            deleted.add(offset + size if offset < 0 else offset)
        return Domain.from_labels(
            *(label for index, label in enumerate(self._labels) if index not in deleted)
        )

    def slice(self, offset: int, length: Optional[int] = None) -> Domain:
        size = len(self._labels)
        if offset < -size or offset > size:
            raise OffsetOutOfBounds.for_offset(offset, size)
        start = offset + size if offset < 0 else offset
        if length is None:
            end = size
        elif length >= 0:
            end = min(start + length, size)
        else:
            end = size + length
        labels = self._labels[start:end] if end > start else ()
        if labels == self._labels:
            return self
        return Domain.from_labels(*labels)
