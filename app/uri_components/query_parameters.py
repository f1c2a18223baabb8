"""
PHP-style query parameters.

``extract_parameters`` turns decoded pairs into nested parameters the way
PHP's ``parse_str`` does, without mangling names (dots and spaces are kept).
``flatten_parameters`` is the reverse, producing ``a[b][0]=v`` style pairs.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Optional, Union

from uri_components.errors import UriSyntaxError

ParameterKey = Union[str, int]

_INTEGER_KEY_REGEX = re.compile(r"-?[1-9][0-9]*|0")
_INT64_MAX = 2**63 - 1


def _normalize_key(key: str) -> ParameterKey:
    if _INTEGER_KEY_REGEX.fullmatch(key) and abs(int(key)) <= _INT64_MAX:
        return int(key)
    return key


def _next_index(data: dict) -> int:
    indices = [k for k in data if isinstance(k, int)]
    return max(indices) + 1 if indices and max(indices) >= 0 else 0


def _extract(data: dict, name: str, value: str) -> dict:
    if name == "":
        return data

    left = name.find("[")
    if left == -1:
        data[_normalize_key(name)] = value
        return data

    right = name.find("]", left)
    if right == -1:
        data[_normalize_key(name)] = value
        return data

    key = _normalize_key(name[:left])
    if not isinstance(data.get(key), dict):
        data[key] = {}

    index = name[left + 1 : right]
    if index == "":
        data[key][_next_index(data[key])] = value
        return data

    remaining = name[right + 1 :]
    if not remaining.startswith("[") or remaining.find("]", 1) == -1:
        remaining = ""

    data[key] = _extract(data[key], index + remaining, value)
    return data


def _as_lists(data: Any) -> Any:
    if not isinstance(data, dict):
        return data
    converted = {k: _as_lists(v) for k, v in data.items()}
    if list(converted) == list(range(len(converted))):
        return list(converted.values())
    return converted


def extract_parameters(pairs: Iterable[tuple[str, Optional[str]]]) -> dict[ParameterKey, Any]:
    data: dict = {}
    for name, value in pairs:
        data = _extract(data, name, "" if value is None else value)
    # The top level stays a mapping so lookups by name keep working.
    return {k: _as_lists(v) for k, v in data.items()}


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise UriSyntaxError.invalid("query parameter value", value)


def _flatten(prefix: str, value: Any) -> list[tuple[str, str]]:
    if value is None:
        return []
    if isinstance(value, Mapping):
        items: Iterable[tuple[Any, Any]] = value.items()
    elif isinstance(value, (list, tuple)):
        items = enumerate(value)
    else:
        return [(prefix, _scalar(value))]

    pairs: list[tuple[str, str]] = []
    for key, item in items:
        pairs.extend(_flatten(f"{prefix}[{_scalar(key)}]", item))
    return pairs


def flatten_parameters(parameters: Mapping[Any, Any], prefix: str = "") -> list[tuple[str, str]]:
    """Flatten nested parameters into pairs, skipping ``None`` leaves.

    ``prefix`` is prepended to integer top-level keys only, mirroring the
    numeric prefix of PHP's ``http_build_query``.
    """
    if not isinstance(parameters, Mapping):
        raise UriSyntaxError.invalid("query parameters", parameters)

    pairs: list[tuple[str, str]] = []
    for key, value in parameters.items():
        name = _scalar(key)
        if isinstance(key, int) and not isinstance(key, bool):
            name = prefix + name
        pairs.extend(_flatten(name, value))
    return pairs
