from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uri_components.idna_converter import IdnaErrorDetail

DEFAULT_MAX_ERROR_CHARS = 300


@dataclass
class UriError(ValueError):
    code: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class UriSyntaxError(UriError):
    code: str = "syntax_error"
    message: str = "invalid uri component"

    @classmethod
    def invalid(cls, what: str, value: object) -> UriSyntaxError:
        return cls(message=f"the {what} `{value}` is invalid")

    @classmethod
    def control_characters(cls, value: object) -> UriSyntaxError:
        return cls(
            code="control_characters",
            message=f"the value `{value}` contains invalid characters",
        )


@dataclass
class IdnaError(UriSyntaxError):
    code: str = "idna_error"
    message: str = "host could not be converted"
    errors: tuple[IdnaErrorDetail, ...] = field(default_factory=tuple)

    @classmethod
    def from_details(cls, domain: str, errors: tuple[IdnaErrorDetail, ...]) -> IdnaError:
        rules = ", ".join(sorted({e.rule.value for e in errors}))
        return cls(
            message=f"the host `{domain}` is invalid: {rules}",
            errors=tuple(errors),
        )


@dataclass
class UnknownEncoding(UriSyntaxError):
    code: str = "unknown_encoding"
    message: str = "unknown encoding"

    @classmethod
    def for_value(cls, value: object) -> UnknownEncoding:
        return cls(message=f"unknown or unsupported encoding `{value}`")


@dataclass
class OffsetOutOfBounds(UriError):
    code: str = "offset_out_of_bounds"
    message: str = "offset out of bounds"

    @classmethod
    def for_offset(cls, offset: int, size: int) -> OffsetOutOfBounds:
        return cls(message=f"the offset `{offset}` is invalid for a collection of {size} items")


@dataclass
class MissingCapability(UriError):
    code: str = "missing_capability"
    message: str = "missing capability"


@dataclass(frozen=True)
class ErrorInfo:
    code: str
    message: str
    recoverable: bool
    log_traceback: bool = False


def _truncate(value: str, *, max_chars: int) -> str:
    s = str(value or "")
    if max_chars <= 0 or len(s) <= max_chars:
        return s
    return s[: max(0, max_chars - 3)] + "..."


def classify_exception(
    exc: Exception, *, max_error_chars: int = DEFAULT_MAX_ERROR_CHARS
) -> ErrorInfo:
    """Map any exception raised while handling a uri component to a stable code.

    Caller input problems (syntax, idna, encoding, offsets) are recoverable:
    the same call with different input may succeed. A missing capability is a
    deployment problem and anything unknown is treated as a bug.
    """
    if isinstance(exc, MissingCapability):
        return ErrorInfo(
            code=str(exc.code or "missing_capability"),
            message=_truncate(str(exc), max_chars=max_error_chars),
            recoverable=False,
            log_traceback=False,
        )

    if isinstance(exc, UriError):
        return ErrorInfo(
            code=str(exc.code or "syntax_error"),
            message=_truncate(str(exc), max_chars=max_error_chars),
            recoverable=True,
            log_traceback=False,
        )

    if isinstance(exc, UnicodeError):
        return ErrorInfo(
            code="encoding_error",
            message=_truncate(str(exc), max_chars=max_error_chars),
            recoverable=True,
            log_traceback=False,
        )

    return ErrorInfo(
        code="internal_error",
        message=_truncate(exc.__class__.__name__, max_chars=max_error_chars),
        recoverable=False,
        log_traceback=True,
    )
