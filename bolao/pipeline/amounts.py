"""
Monetary parsing and quota arithmetic.

Statements mix Brazilian (``1.234,56``) and ISO (``1234.56``) number formats;
a separator followed by one or two trailing digits is the decimal point, any
other separator groups thousands.
"""
from __future__ import annotations

import re
from decimal import ROUND_FLOOR, Decimal, InvalidOperation

_MONEY = re.compile(
    r"^(?P<sign>[-+])?\s*(?:R\$)?\s*(?P<inner_sign>-)?\s*"
    r"(?P<number>\d[\d.,\s]*)\s*(?P<dc>[CD])?$",
    re.IGNORECASE,
)
_TRAILING_DECIMALS = re.compile(r"[.,](\d{1,2})$")

DEFAULT_TOLERANCE = Decimal("0.01")


def to_decimal(value: float | int | str | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _parse_number(number: str) -> Decimal | None:
    number = re.sub(r"\s", "", number)
    decimals = ""
    m = _TRAILING_DECIMALS.search(number)
    if m:
        decimals = m.group(1)
        number = number[: m.start()]
    integer = re.sub(r"[.,]", "", number)
    if not integer.isdigit():
        return None
    try:
        return Decimal(f"{integer}.{decimals or '0'}")
    except InvalidOperation:
        return None


def parse_amount(token: str) -> Decimal | None:
    """Parse a monetary-looking token; ``None`` if it is not one.

    Debits come back negative (leading ``-`` or trailing ``D``).
    """
    m = _MONEY.match(token.strip())
    if not m:
        return None
    value = _parse_number(m.group("number"))
    if value is None:
        return None
    negative = (
        m.group("sign") == "-"
        or m.group("inner_sign") == "-"
        or (m.group("dc") or "").upper() == "D"
    )
    return -value if negative else value


def first_amount(columns: list[str]) -> Decimal | None:
    """The first monetary-looking column wins."""
    for col in columns:
        value = parse_amount(col)
        if value is not None:
            return value
    return None


def quota_breakdown(
    amount: float | Decimal,
    quota_value: float | Decimal,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> tuple[int, bool]:
    """Return ``(quotas, is_exact_multiple)``.

    Quotas are ``floor(amount / quota_value)`` when the remainder is below
    *tolerance* and 0 otherwise.
    """
    amount = to_decimal(amount)
    quota_value = to_decimal(quota_value)
    if quota_value <= 0:
        raise ValueError("quota_value must be positive")
    if not amount.is_finite():
        raise ValueError("amount must be finite")
    try:
        remainder = amount % quota_value
    except InvalidOperation:
        # quotient wider than the decimal context precision
        return 0, False
    if remainder >= tolerance:
        return 0, False
    quotas = int((amount / quota_value).to_integral_value(rounding=ROUND_FLOOR))
    return quotas, True
