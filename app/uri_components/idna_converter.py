"""
IDNA host conversion (IDNA 2008 with UTS #46 mapping, non-transitional).

Each label is converted on its own and every failure is collected, so a
caller gets the full list of problems for a host instead of the first one.
"""

from __future__ import annotations

import enum
import logging
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Callable, Optional

import idna

from uri_components.errors import IdnaError
from uri_components.logging_config import log_with_context

logger = logging.getLogger(__name__)

LABEL_SEPARATORS_REGEX = re.compile("[.。．｡]")
MAX_LABEL_LENGTH = 63
MAX_DOMAIN_LENGTH = 253
ACE_PREFIX = "xn--"


class IdnaRule(str, enum.Enum):
    EMPTY_LABEL = "empty_label"
    LABEL_TOO_LONG = "label_too_long"
    DOMAIN_TOO_LONG = "domain_too_long"
    HYPHEN = "hyphen"
    LEADING_COMBINING_MARK = "leading_combining_mark"
    DISALLOWED = "disallowed"
    CONTEXT = "context"
    BIDI = "bidi"
    PUNYCODE = "punycode"
    INVALID_ACE_LABEL = "invalid_ace_label"


@dataclass(frozen=True)
class IdnaErrorDetail:
    label: str
    rule: IdnaRule
    message: str


@dataclass(frozen=True)
class IdnaResult:
    domain: str
    errors: tuple[IdnaErrorDetail, ...] = field(default_factory=tuple)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def unwrap(self) -> str:
        if self.errors:
            raise IdnaError.from_details(self.domain, self.errors)
        return self.domain


def _rule_for(exc: idna.IDNAError) -> IdnaRule:
    if isinstance(exc, idna.IDNABidiError):
        return IdnaRule.BIDI
    if isinstance(exc, idna.InvalidCodepointContext):
        return IdnaRule.CONTEXT
    if isinstance(exc, idna.InvalidCodepoint):
        return IdnaRule.DISALLOWED
    message = str(exc).lower()
    if "too long" in message:
        return IdnaRule.LABEL_TOO_LONG
    if "hyphen" in message:
        return IdnaRule.HYPHEN
    if "combining" in message:
        return IdnaRule.LEADING_COMBINING_MARK
    if "empty" in message:
        return IdnaRule.EMPTY_LABEL
    if "nfc" in message:
        return IdnaRule.DISALLOWED
    return IdnaRule.PUNYCODE


def _check_structure(label: str) -> Optional[IdnaErrorDetail]:
    if label[2:4] == "--" and not label.lower().startswith(ACE_PREFIX):
        return IdnaErrorDetail(label, IdnaRule.HYPHEN, "label has hyphens in the third and fourth positions")
    if label.startswith("-") or label.endswith("-"):
        return IdnaErrorDetail(label, IdnaRule.HYPHEN, "label starts or ends with a hyphen")
    if unicodedata.category(label[0]).startswith("M"):
        return IdnaErrorDetail(label, IdnaRule.LEADING_COMBINING_MARK, "label begins with a combining mark")
    return None


def _label_to_ascii(label: str) -> tuple[str, Optional[IdnaErrorDetail]]:
    if label.isascii():
        label = label.lower()
        if label.startswith(ACE_PREFIX):
            try:
                idna.ulabel(label)
            except (idna.IDNAError, UnicodeError) as exc:
                return label, IdnaErrorDetail(label, IdnaRule.INVALID_ACE_LABEL, str(exc))
        if len(label) > MAX_LABEL_LENGTH:
            return label, IdnaErrorDetail(label, IdnaRule.LABEL_TOO_LONG, "label too long")
        return label, None

    try:
        mapped = idna.uts46_remap(label, std3_rules=True, transitional=False)
    except idna.IDNAError as exc:
        return label, IdnaErrorDetail(label, _rule_for(exc), str(exc))

    if mapped == "":
        return label, IdnaErrorDetail(label, IdnaRule.EMPTY_LABEL, "label is empty after mapping")
    detail = _check_structure(mapped)
    if detail is not None:
        return label, detail

    try:
        ascii_label = idna.alabel(mapped).decode("ascii")
    except idna.IDNAError as exc:
        return label, IdnaErrorDetail(label, _rule_for(exc), str(exc))
    except UnicodeError as exc:
        return label, IdnaErrorDetail(label, IdnaRule.PUNYCODE, str(exc))

    if len(ascii_label) > MAX_LABEL_LENGTH:
        return label, IdnaErrorDetail(label, IdnaRule.LABEL_TOO_LONG, "label too long")
    return ascii_label, None


def _label_to_unicode(label: str) -> tuple[str, Optional[IdnaErrorDetail]]:
    if not label.isascii():
        try:
            return idna.uts46_remap(label, std3_rules=True, transitional=False), None
        except idna.IDNAError as exc:
            return label, IdnaErrorDetail(label, _rule_for(exc), str(exc))

    label = label.lower()
    if not label.startswith(ACE_PREFIX):
        return label, None
    try:
        return idna.ulabel(label), None
    except (idna.IDNAError, UnicodeError) as exc:
        return label, IdnaErrorDetail(label, IdnaRule.INVALID_ACE_LABEL, str(exc))


def _convert(
    domain: str, convert_label: Callable[[str], tuple[str, Optional[IdnaErrorDetail]]]
) -> IdnaResult:
    labels = LABEL_SEPARATORS_REGEX.split(domain)
    is_absolute = len(labels) > 1 and labels[-1] == ""
    if is_absolute:
        labels.pop()

    converted: list[str] = []
    errors: list[IdnaErrorDetail] = []
    for label in labels:
        if label == "":
            converted.append(label)
            errors.append(IdnaErrorDetail(label, IdnaRule.EMPTY_LABEL, "empty label"))
            continue
        result, detail = convert_label(label)
        converted.append(result)
        if detail is not None:
            errors.append(detail)

    if is_absolute:
        converted.append("")
    return IdnaResult(".".join(converted), tuple(errors))


class IdnaConverter:
    @staticmethod
    def to_ascii(domain: str) -> IdnaResult:
        result = _convert(domain, _label_to_ascii)
        length = len(result.domain) - (1 if result.domain.endswith(".") else 0)
        if length > MAX_DOMAIN_LENGTH:
            detail = IdnaErrorDetail(domain, IdnaRule.DOMAIN_TOO_LONG, "domain name too long")
            result = IdnaResult(result.domain, result.errors + (detail,))
        if result.has_errors:
            log_with_context(
                logger, logging.DEBUG, "IDNA conversion failed", operation="to_ascii", host=domain
            )
        return result

    @staticmethod
    def to_unicode(domain: str) -> IdnaResult:
        result = _convert(domain, _label_to_unicode)
        if result.has_errors:
            log_with_context(
                logger, logging.DEBUG, "IDNA conversion failed", operation="to_unicode", host=domain
            )
        return result

    @classmethod
    def to_ascii_or_fail(cls, domain: str) -> str:
        return cls.to_ascii(domain).unwrap()

    @classmethod
    def to_unicode_or_fail(cls, domain: str) -> str:
        return cls.to_unicode(domain).unwrap()
