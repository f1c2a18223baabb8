"""
IPv4 host normalization.

Hosts written with fewer than four parts, or with octal/hexadecimal parts,
are converted to their dotted-decimal form following the WHATWG IPv4 parser:
https://url.spec.whatwg.org/#concept-ipv4-parser

The arithmetic goes through a ``Calculator`` so the integer backend can be
swapped.
"""

from __future__ import annotations

import abc
import decimal
import logging
import re
from functools import lru_cache
from typing import Any, Optional

from uri_components.config import UriConfig, get_config
from uri_components.errors import MissingCapability
from uri_components.logging_config import log_with_context

logger = logging.getLogger(__name__)

MAX_IPV4_NUMBER = 2**32 - 1

_IPV4_NUMBER_PER_BASE = (
    (re.compile(r"0x(?P<number>[0-9a-f]*)", re.IGNORECASE), 16),
    (re.compile(r"0(?P<number>[0-7]*)"), 8),
    (re.compile(r"(?P<number>[0-9]+)"), 10),
)
_DIGITS = "0123456789abcdef"


class Calculator(abc.ABC):
    """Arithmetic used by the IPv4 converter; values are backend specific."""

    @abc.abstractmethod
    def base_convert(self, value: str, base: int) -> Any: ...

    @abc.abstractmethod
    def add(self, value1: Any, value2: Any) -> Any: ...

    @abc.abstractmethod
    def sub(self, value1: Any, value2: Any) -> Any: ...

    @abc.abstractmethod
    def multiply(self, value1: Any, value2: Any) -> Any: ...

    @abc.abstractmethod
    def div(self, value: Any, base: Any) -> Any: ...

    @abc.abstractmethod
    def mod(self, value: Any, base: Any) -> Any: ...

    @abc.abstractmethod
    def pow(self, value: Any, exponent: int) -> Any: ...

    @abc.abstractmethod
    def compare(self, value1: Any, value2: Any) -> int: ...

    @abc.abstractmethod
    def to_int(self, value: Any) -> int: ...


class NativeCalculator(Calculator):
    def base_convert(self, value: str, base: int) -> int:
        return int(value, base) if value else 0

    def add(self, value1: int, value2: int) -> int:
        return value1 + value2

    def sub(self, value1: int, value2: int) -> int:
        return value1 - value2

    def multiply(self, value1: int, value2: int) -> int:
        return value1 * value2

    def div(self, value: int, base: int) -> int:
        return value // base

    def mod(self, value: int, base: int) -> int:
        return value % base

    def pow(self, value: int, exponent: int) -> int:
        return value**exponent

    def compare(self, value1: int, value2: int) -> int:
        return (value1 > value2) - (value1 < value2)

    def to_int(self, value: int) -> int:
        return int(value)


class DecimalCalculator(Calculator):
    """Fixed precision decimal arithmetic, for runtimes without big ints."""

    def __init__(self, precision: int = 40):
        self._context = decimal.Context(prec=precision, rounding=decimal.ROUND_FLOOR)

    def base_convert(self, value: str, base: int) -> decimal.Decimal:
        result = decimal.Decimal(0)
        for char in value.lower():
            result = self._context.add(
                self._context.multiply(result, base), _DIGITS.index(char)
            )
        return result

    def add(self, value1: Any, value2: Any) -> decimal.Decimal:
        return self._context.add(decimal.Decimal(value1), decimal.Decimal(value2))

    def sub(self, value1: Any, value2: Any) -> decimal.Decimal:
        return self._context.subtract(decimal.Decimal(value1), decimal.Decimal(value2))

    def multiply(self, value1: Any, value2: Any) -> decimal.Decimal:
        return self._context.multiply(decimal.Decimal(value1), decimal.Decimal(value2))

    def div(self, value: Any, base: Any) -> decimal.Decimal:
        return self._context.divide_int(decimal.Decimal(value), decimal.Decimal(base))

    def mod(self, value: Any, base: Any) -> decimal.Decimal:
        return self._context.remainder(decimal.Decimal(value), decimal.Decimal(base))

    def pow(self, value: Any, exponent: int) -> decimal.Decimal:
        return self._context.power(decimal.Decimal(value), exponent)

    def compare(self, value1: Any, value2: Any) -> int:
        return int(self._context.compare(decimal.Decimal(value1), decimal.Decimal(value2)))

    def to_int(self, value: Any) -> int:
        return int(value)


CALCULATORS = {
    "native": NativeCalculator,
    "decimal": DecimalCalculator,
}


class IPv4Converter:
    def __init__(self, calculator: Calculator):
        self.calculator = calculator

    @classmethod
    def from_native(cls) -> IPv4Converter:
        return cls(NativeCalculator())

    @classmethod
    def from_decimal(cls) -> IPv4Converter:
        return cls(DecimalCalculator())

    @classmethod
    def from_calculator_name(cls, name: str) -> IPv4Converter:
        name = (name or "").strip().lower()
        if name == "auto":
            name = "native"
        calculator = CALCULATORS.get(name)
        if calculator is None:
            raise MissingCapability(
                message=f"no IPv4 calculator named `{name}` is available"
            )
        return cls(calculator())

    @classmethod
    def from_config(cls, config: UriConfig) -> IPv4Converter:
        return cls.from_calculator_name(config.ipv4_calculator)

    @staticmethod
    def from_environment() -> IPv4Converter:
        return _environment_converter()

    def _label_to_number(self, label: str) -> Any:
        for regex, base in _IPV4_NUMBER_PER_BASE:
            match = regex.fullmatch(label)
            if match is None:
                continue
            number = match.group("number").lstrip("0")
            value = self.calculator.base_convert(number, base)
            if self.calculator.compare(value, MAX_IPV4_NUMBER) > 0:
                return None
            return value
        return None

    def _to_number(self, host: Optional[str]) -> Any:
        if not host:
            return None
        labels = host.split(".")
        if len(labels) > 1 and labels[-1] == "":
            labels.pop()
        if not 1 <= len(labels) <= 4:
            return None

        numbers = []
        for label in labels:
            number = self._label_to_number(label)
            if number is None:
                return None
            numbers.append(number)

        calc = self.calculator
        ipv4 = numbers.pop()
        if calc.compare(ipv4, calc.pow(256, 5 - len(labels))) >= 0:
            return None
        for offset, number in enumerate(numbers):
            if calc.compare(number, 255) > 0:
                return None
            ipv4 = calc.add(ipv4, calc.multiply(number, calc.pow(256, 3 - offset)))
        return ipv4

    def _to_octets(self, host: Optional[str]) -> Optional[list[int]]:
        number = self._to_number(host)
        if number is None:
            return None
        calc = self.calculator
        octets = []
        for _ in range(4):
            octets.append(calc.to_int(calc.mod(number, 256)))
            number = calc.div(number, 256)
        return octets[::-1]

    def is_ipv4(self, host: Optional[str]) -> bool:
        return self._to_number(host) is not None

    def to_decimal(self, host: Optional[str]) -> Optional[str]:
        octets = self._to_octets(host)
        if octets is None:
            return None
        return ".".join(str(octet) for octet in octets)

    def to_octal(self, host: Optional[str]) -> Optional[str]:
        octets = self._to_octets(host)
        if octets is None:
            return None
        return ".".join(format(octet, "o").zfill(4) for octet in octets)

    def to_hexadecimal(self, host: Optional[str]) -> Optional[str]:
        octets = self._to_octets(host)
        if octets is None:
            return None
        return "0x" + "".join(format(octet, "x") for octet in octets)


@lru_cache(maxsize=1)
def _environment_converter() -> IPv4Converter:
    config = get_config()
    converter = IPv4Converter.from_config(config)
    log_with_context(
        logger,
        logging.DEBUG,
        "Selected IPv4 calculator",
        calculator=type(converter.calculator).__name__,
    )
    return converter
