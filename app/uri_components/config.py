from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

IPV4_CALCULATORS = ("auto", "native", "decimal")
QUERY_ENCODINGS = ("none", "rfc3986", "rfc3987", "rfc1738", "form_data")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in ("1", "true", "yes", "y", "on")


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or str(raw).strip() == "":
        return default
    return str(raw).strip()


def _require_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
    if value not in choices:
        raise RuntimeError(f"{name} must be one of: {', '.join(choices)}")


@dataclass(frozen=True)
class UriConfig:
    ipv4_calculator: str = "auto"
    query_separator: str = "&"
    query_encoding: str = "rfc3986"
    log_debug_noops: bool = False

    @staticmethod
    def from_env() -> UriConfig:
        # The separator is read raw: whitespace can be a legitimate separator.
        separator = os.getenv("URI_QUERY_SEPARATOR")
        config = UriConfig(
            ipv4_calculator=_env_str("URI_IPV4_CALCULATOR", "auto").lower(),
            query_separator="&" if separator is None else separator,
            query_encoding=_env_str("URI_QUERY_ENCODING", "rfc3986").lower(),
            log_debug_noops=_env_bool("URI_LOG_DEBUG_NOOPS", False),
        )
        config.validate()
        return config

    def validate(self) -> None:
        _require_choice("URI_IPV4_CALCULATOR", self.ipv4_calculator, IPV4_CALCULATORS)
        _require_choice("URI_QUERY_ENCODING", self.query_encoding, QUERY_ENCODINGS)
        if self.query_separator == "":
            raise RuntimeError("URI_QUERY_SEPARATOR must not be empty")


@lru_cache(maxsize=1)
def get_config() -> UriConfig:
    return UriConfig.from_env()
