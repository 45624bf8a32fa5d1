"""Unit-aware resource quantities.

Quantities follow the Kubernetes resource quantity grammar (``250m``, ``2``,
``512Mi``, ``1e3``) and render back to the canonical scaled form. CPU belongs to
the decimal family (base 1000 suffixes), memory to the binary family (base
1024 suffixes).
"""
from __future__ import annotations
import re
from decimal import Decimal, Context, DecimalException, ROUND_CEILING
from enum import Enum
from functools import total_ordering
from typing import Any, Tuple


class UnitFamily(Enum):
    DECIMAL = 'DecimalSI'
    BINARY = 'BinarySI'


_CTX = Context(prec=64)
_NANO = Decimal('1e-9')
_ONE = Decimal(1)
# largest accepted amount (cores or bytes); sums stay exact at nano precision
MAX_MAGNITUDE = Decimal('1e36')

# suffix -> power of ten, largest first
_DECIMAL_SUFFIXES: Tuple[Tuple[str, int], ...] = (
    ('E', 18), ('P', 15), ('T', 12), ('G', 9), ('M', 6), ('k', 3),
    ('', 0), ('m', -3), ('u', -6), ('n', -9),
)
# suffix -> power of 1024, largest first
_BINARY_SUFFIXES: Tuple[Tuple[str, int], ...] = (
    ('Ei', 6), ('Pi', 5), ('Ti', 4), ('Gi', 3), ('Mi', 2), ('Ki', 1), ('', 0),
)
_DECIMAL_EXP = dict(_DECIMAL_SUFFIXES)
_BINARY_EXP = dict(_BINARY_SUFFIXES)

_QUANTITY_RE = re.compile(
    r'^(?P<number>[+-]?(?:\d+\.?\d*|\.\d+))'
    r'(?:(?P<suffix>Ki|Mi|Gi|Ti|Pi|Ei|[numkMGTPE])|[eE](?P<exponent>[+-]?\d+))?$'
)


def _is_integral(value: Decimal) -> bool:
    return value == value.to_integral_value(context=_CTX)


@total_ordering
class Quantity:
    """A non-negative resource amount tied to a unit family.

    Values are kept exact with :class:`decimal.Decimal`. Decimal-family values
    are rounded up to nano units and binary-family values up to whole bytes,
    the same precision the cluster API itself uses.
    """

    __slots__ = ('_value', 'family')

    def __init__(self, value: Any = 0, family: UnitFamily = UnitFamily.DECIMAL):
        self.family = family
        self._value = self._round(Decimal(value))

    def _round(self, value: Decimal) -> Decimal:
        exp = _NANO if self.family is UnitFamily.DECIMAL else _ONE
        return value.quantize(exp, rounding=ROUND_CEILING, context=_CTX)

    @classmethod
    def zero(cls, family: UnitFamily) -> 'Quantity':
        return cls(0, family)

    def copy(self) -> 'Quantity':
        return Quantity(self._value, self.family)

    @property
    def amount(self) -> Decimal:
        return self._value

    def _check_family(self, other: 'Quantity', op: str):
        if other.family is not self.family:
            raise ValueError(f'cannot {op} {other.family.value} quantity and {self.family.value} quantity')

    def add(self, other: 'Quantity') -> None:
        self._check_family(other, 'add')
        self._value = self._round(_CTX.add(self._value, other._value))

    def compare(self, other: 'Quantity') -> int:
        self._check_family(other, 'compare')
        return (self._value > other._value) - (self._value < other._value)

    def is_zero(self) -> bool:
        return self._value == 0

    def milli_value(self) -> int:
        return int(_CTX.multiply(self._value, Decimal(1000)).to_integral_value(rounding=ROUND_CEILING))

    def value(self) -> int:
        return int(self._value.to_integral_value(rounding=ROUND_CEILING))

    def scaled_value(self) -> int:
        # milli precision keeps sub-core cpu requests from truncating to zero
        if self.family is UnitFamily.DECIMAL:
            return self.milli_value()
        return self.value()

    def canonicalize(self) -> Tuple[str, str]:
        if self.is_zero():
            return '0', ''
        if self.family is UnitFamily.DECIMAL:
            for suffix, exp in _DECIMAL_SUFFIXES:
                scaled = self._value.scaleb(-exp, context=_CTX)
                if _is_integral(scaled):
                    return str(int(scaled)), suffix
        else:
            for suffix, power in _BINARY_SUFFIXES:
                scaled = _CTX.divide(self._value, Decimal(1024 ** power))
                if _is_integral(scaled):
                    return str(int(scaled)), suffix
        # unreachable: the smallest unit always holds an integral value
        raise AssertionError(f'cannot canonicalize {self._value!r}')

    def __eq__(self, other):
        if not isinstance(other, Quantity):
            return NotImplemented
        return self.family is other.family and self._value == other._value

    def __lt__(self, other):
        if not isinstance(other, Quantity):
            return NotImplemented
        return self.compare(other) < 0

    __hash__ = None

    def __str__(self) -> str:
        digits, suffix = self.canonicalize()
        return digits + suffix

    def __repr__(self) -> str:
        return f"Quantity('{self}', {self.family.name})"


def parse_quantity(text: Any, family: UnitFamily) -> Quantity:
    """Parse a quantity string (``'100m'``, ``'1Gi'``, ``'2'``, ``'1e3'``).

    The unit family is imposed by the resource being parsed rather than by the
    suffix, so ``'1G'`` of memory is still a binary-family byte count. Negative
    amounts and amounts above ``MAX_MAGNITUDE`` raise ``ValueError`` like any
    other malformed input.
    """
    if isinstance(text, bool) or text is None:
        raise ValueError(f'invalid quantity: {text!r}')
    raw = str(text).strip()
    m = _QUANTITY_RE.match(raw)
    if not m:
        raise ValueError(f'invalid quantity: {text!r}')
    suffix = m.group('suffix')
    exponent = m.group('exponent')
    try:
        number = Decimal(m.group('number'))
        if exponent is not None:
            number = number.scaleb(int(exponent), context=_CTX)
        elif suffix in _BINARY_EXP:
            number = _CTX.multiply(number, Decimal(1024 ** _BINARY_EXP[suffix]))
        else:
            number = number.scaleb(_DECIMAL_EXP[suffix or ''], context=_CTX)
        if number < 0:
            raise ValueError(f'negative quantity: {text!r}')
        if number > MAX_MAGNITUDE:
            raise ValueError(f'quantity out of range: {text!r}')
        return Quantity(number, family)
    except DecimalException as e:
        raise ValueError(f'invalid quantity: {text!r}') from e
