"""
Formatting helpers for documents and report labels.
Brazilian conventions: dot for thousands, comma for decimals, DD/MM/YYYY dates.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional

MONTHS_PT = ('jan', 'fev', 'mar', 'abr', 'mai', 'jun', 'jul', 'ago', 'set', 'out', 'nov', 'dez')


def _group_thousands(integer_part: str) -> str:
    # Reverse, group by 3, reverse back
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    return '.'.join(groups)[::-1]


def num_br(value: Union[int, float, Decimal, str, None], decimals: Optional[int] = None) -> str:
    """
    Format a number Brazilian style, hiding insignificant decimals.

    Examples:
        num_br(1500) -> "1.500"
        num_br(2.5) -> "2,5"
        num_br(1.250, decimals=3) -> "1,25"
        num_br(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    if num == 0:
        return "0"

    if decimals is not None:
        num = num.quantize(Decimal(10) ** -decimals)

    num_str = f"{num:f}"
    if '.' in num_str:
        integer_part, decimal_part = num_str.split('.')
        decimal_part = decimal_part.rstrip('0')
    else:
        integer_part, decimal_part = num_str, ""

    sign_str = ''
    if integer_part.startswith('-'):
        sign_str = '-'
        integer_part = integer_part[1:]

    integer_formatted = _group_thousands(integer_part)
    if decimal_part:
        return f"{sign_str}{integer_formatted},{decimal_part}"
    return f"{sign_str}{integer_formatted}"


def money_br(value: Union[int, float, Decimal, str, None], symbol: str = 'R$') -> str:
    """
    Format a monetary amount with exactly 2 decimals.

    Examples:
        money_br(1500) -> "R$ 1.500,00"
        money_br(-25.5) -> "-R$ 25,50"
        money_br(3, symbol='') -> "3,00"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value)).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    sign = "-" if num < 0 else ""
    integer_part, decimal_part = f"{abs(num):.2f}".split(".")
    amount = f"{_group_thousands(integer_part)},{decimal_part}"
    prefix = f"{symbol} " if symbol else ""
    return f"{sign}{prefix}{amount}"


def percent_br(value: Union[int, float, Decimal, str, None], decimals: int = 1) -> str:
    """percent_br(12.345) -> "12,3%"."""
    if value is None or value == "":
        return "-"
    try:
        num = Decimal(str(value)).quantize(Decimal(10) ** -decimals)
    except (InvalidOperation, ValueError, TypeError):
        return "-"
    return f"{num:f}".replace('.', ',') + '%'


def date_br(value: Union[date, datetime, None]) -> str:
    """
    Format a date as DD/MM/YYYY.

    Examples:
        date_br(date(2026, 1, 12)) -> "12/01/2026"
    """
    if value is None:
        return "-"

    if isinstance(value, datetime):
        value = value.date()

    if not isinstance(value, date):
        return "-"

    return value.strftime("%d/%m/%Y")


def month_label_br(value: date) -> str:
    """Short month label used by the revenue chart, e.g. "mar/26"."""
    return f"{MONTHS_PT[value.month - 1]}/{value.strftime('%y')}"
