"""
Elements: typed operands appearing inside tag argument lists.

The variant set is closed, so there is no common base class: each variant is a
frozen dataclass and `Element` is the union of them. Every element knows its
canonical source form (`as_text`), which is what rendering writes back into a
document.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from numbers import Real
from typing import Union

OPERATOR_SYMBOLS = frozenset({"+", "-", "*", "/", "%", "^"})

# Signed 32-bit range of integer constants
INTEGER_MIN = -(2 ** 31)
INTEGER_MAX = 2 ** 31 - 1


def is_identifier_start(char: str) -> bool:
    return char.isalpha()


def is_identifier_part(char: str) -> bool:
    return char.isalpha() or char.isdecimal() or char == "_"


def is_identifier(name: str) -> bool:
    """Check that name is a letter followed by letters, digits or underscores."""
    return (
        bool(name)
        and is_identifier_start(name[0])
        and all(is_identifier_part(c) for c in name[1:])
    )


def _require_identifier(name: object, what: str) -> None:
    if not isinstance(name, str):
        raise TypeError(f"{what} name must be a string, got {type(name).__name__}")
    if not is_identifier(name):
        raise ValueError(f"Invalid {what.lower()} name: {name!r}")


@dataclass(frozen=True)
class ConstantInteger:
    """Integer literal, e.g. `42` or `-7`."""
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"Integer constant must be an int, got {type(self.value).__name__}")
        if not INTEGER_MIN <= self.value <= INTEGER_MAX:
            raise ValueError(f"Integer constant out of range: {self.value}")

    def as_text(self) -> str:
        return str(self.value)

    def __str__(self) -> str:
        return self.as_text()


@dataclass(frozen=True, eq=False)
class ConstantDouble:
    """
    Floating point literal, e.g. `3.0` or `-1.25`.

    Only finite values are allowed. Compared numerically, so -0.0 equals 0.0.
    """
    value: float

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, Real):
            raise TypeError(f"Double constant must be a real number, got {type(self.value).__name__}")
        try:
            value = float(self.value)
        except OverflowError:
            raise ValueError(f"Double constant out of range: {self.value}") from None
        if not math.isfinite(value):
            raise ValueError(f"Double constant must be finite, got {value}")
        object.__setattr__(self, "value", value)

    def as_text(self) -> str:
        # Tag grammar has no exponent notation, always spell out digits
        text = format(Decimal(repr(self.value)), "f")
        if "." not in text:
            text += ".0"
        return text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConstantDouble):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash((ConstantDouble, self.value))

    def __str__(self) -> str:
        return self.as_text()


@dataclass(frozen=True)
class String:
    """Quoted string literal; `value` holds the unescaped text."""
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError(f"String value must be a string, got {type(self.value).__name__}")

    def as_text(self) -> str:
        escaped = self.value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'

    def __str__(self) -> str:
        return self.as_text()


@dataclass(frozen=True)
class Function:
    """Function reference `@name`; `name` excludes the `@`."""
    name: str

    def __post_init__(self):
        _require_identifier(self.name, "Function")

    def as_text(self) -> str:
        return f"@{self.name}"

    def __str__(self) -> str:
        return self.as_text()


@dataclass(frozen=True)
class Operator:
    """Arithmetic operator symbol."""
    symbol: str

    def __post_init__(self):
        if self.symbol not in OPERATOR_SYMBOLS:
            raise ValueError(f"Unknown operator: {self.symbol!r}")

    def as_text(self) -> str:
        return self.symbol

    def __str__(self) -> str:
        return self.as_text()


@dataclass(frozen=True)
class Variable:
    """Bare identifier."""
    name: str

    def __post_init__(self):
        _require_identifier(self.name, "Variable")

    def as_text(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.as_text()


Element = Union[ConstantInteger, ConstantDouble, String, Function, Operator, Variable]

ELEMENT_TYPES = (ConstantInteger, ConstantDouble, String, Function, Operator, Variable)


def is_element(value: object) -> bool:
    return isinstance(value, ELEMENT_TYPES)


__all__ = [
    "Element",
    "ELEMENT_TYPES",
    "OPERATOR_SYMBOLS",
    "INTEGER_MIN",
    "INTEGER_MAX",
    "ConstantInteger",
    "ConstantDouble",
    "String",
    "Function",
    "Operator",
    "Variable",
    "is_element",
    "is_identifier",
    "is_identifier_start",
    "is_identifier_part",
]
