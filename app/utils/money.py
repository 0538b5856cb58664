import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

ZERO = Decimal("0")
CENTS = Decimal("0.01")

_NOISE = re.compile(r"[$€,\s]")


def to_amount(value: Any) -> Decimal:
    """Coerce a raw monetary value to ``Decimal``.

    Anything that is not a finite number (``None``, empty strings, ``"abc"``,
    NaN, infinities) becomes zero; currency symbols, thousand separators and
    whitespace are stripped from text first.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        text = _NOISE.sub("", str(value))
        if not text:
            return ZERO
        try:
            amount = Decimal(text)
        except (InvalidOperation, ValueError):
            return ZERO
    if not amount.is_finite():
        return ZERO
    return amount


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def sum_amounts(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)
