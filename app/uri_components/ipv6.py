from __future__ import annotations

import ipaddress
from typing import Callable, Optional


def _split(host: str) -> tuple[bool, str, str]:
    bracketed = host.startswith("[") and host.endswith("]")
    inner = host[1:-1] if bracketed else host
    for delimiter in ("%25", "%"):
        address, found, zone = inner.partition(delimiter)
        if found:
            return bracketed, address, delimiter + zone
    return bracketed, inner, ""


def _parse(address: str) -> Optional[ipaddress.IPv6Address]:
    if "%" in address:
        return None
    try:
        return ipaddress.IPv6Address(address)
    except ValueError:
        return None


def _groups(ip: ipaddress.IPv6Address) -> list[int]:
    packed = ip.packed
    return [int.from_bytes(packed[index:index + 2], "big") for index in range(0, 16, 2)]


def _longest_zero_run(groups: list[int]) -> tuple[int, int]:
    """Return ``(start, length)`` of the leftmost longest run of zero groups."""
    start, length = -1, 0
    index = 0
    while index < len(groups):
        if groups[index]:
            index += 1
            continue
        end = index
        while end < len(groups) and not groups[end]:
            end += 1
        if end - index > length:
            start, length = index, end - index
        index = end
    return start, length


def _render_compressed(ip: ipaddress.IPv6Address, dotted: bool) -> str:
    groups = _groups(ip)
    tail = []
    if dotted:
        groups = groups[:6]
        tail = [str(ipaddress.IPv4Address(ip.packed[12:]))]
    start, length = _longest_zero_run(groups)
    parts = [format(group, "x") for group in groups] + tail
    # RFC 5952 4.2.2: a single zero group is never shortened to "::"
    if length < 2:
        return ":".join(parts)
    return ":".join(parts[:start]) + "::" + ":".join(parts[start + length:])


def _render_expanded(ip: ipaddress.IPv6Address) -> str:
    return ":".join(format(group, "04x") for group in _groups(ip))


def _convert(host: Optional[str], render: Callable[[ipaddress.IPv6Address, str], str]) -> Optional[str]:
    if not host:
        return host
    bracketed, address, zone = _split(host)
    ip = _parse(address)
    if ip is None:
        return host
    rendered = render(ip, address) + zone
    return f"[{rendered}]" if bracketed else rendered


def compress(host: Optional[str]) -> Optional[str]:
    """Return the RFC 5952 text form; anything that is not IPv6 is returned as is.

    A dotted IPv4 tail is kept when the input carries one or when the address
    is IPv4-mapped (``::ffff:0:0/96``).
    """
    return _convert(
        host,
        lambda ip, address: _render_compressed(ip, "." in address or ip.ipv4_mapped is not None),
    )


def expand(host: Optional[str]) -> Optional[str]:
    """Return eight zero padded hexadecimal groups; anything that is not IPv6 is returned as is."""
    return _convert(host, lambda ip, address: _render_expanded(ip))


def is_ipv6(host: Optional[str]) -> bool:
    if not host:
        return False
    _, address, _ = _split(host)
    return _parse(address) is not None


def without_zone_id(host: Optional[str]) -> Optional[str]:
    if not host:
        return host
    bracketed, address, zone = _split(host)
    if not zone or _parse(address) is None:
        return host
    return f"[{address}]" if bracketed else address
