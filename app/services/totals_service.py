"""
Quote financial calculations.

Single place where subtotal, discount, total and internal profit figures are
derived, so the editor, the PDF, the public view and the reports always agree.
Everything here is pure: no session, no request context.
"""
from collections.abc import Mapping
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Iterable, NamedTuple, Union

Number = Union[int, float, Decimal, str, None]

ZERO = Decimal('0')
HUNDRED = Decimal('100')
CENTS = Decimal('0.01')

# Max drift between stored discount value and the one implied by the percent
# before the value is recomputed after a subtotal change.
DISCOUNT_SYNC_TOLERANCE = Decimal('0.05')


class QuoteTotals(NamedTuple):
    subtotal: Decimal
    discount: Decimal
    total: Decimal


class DiscountState(NamedTuple):
    value: Decimal
    percent: Decimal


class ProfitSummary(NamedTuple):
    total_cost: Decimal
    gross_profit: Decimal
    net_profit: Decimal
    margin_percent: Decimal


def to_decimal(value: Number) -> Decimal:
    """Convert numeric input to Decimal. None/blank count as zero."""
    if value is None or value == '':
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO


def round_money(value: Number) -> Decimal:
    """Round to 2 decimal places, half up."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    if value < low:
        return low
    if value > high:
        return high
    return value


def _field(item: Any, name: str) -> Decimal:
    # Lines may be ORM rows or plain dicts (transient carts, imports)
    if isinstance(item, Mapping):
        return to_decimal(item.get(name))
    return to_decimal(getattr(item, name, None))


def line_total(item: Any) -> Decimal:
    """quantity * unit_price for one line."""
    return _field(item, 'quantity') * _field(item, 'unit_price')


def line_cost(item: Any) -> Decimal:
    """quantity * cost for one line (missing cost counts as zero)."""
    return _field(item, 'quantity') * _field(item, 'cost')


def compute_subtotal(items: Iterable[Any]) -> Decimal:
    return sum((line_total(item) for item in items or ()), ZERO)


def compute_totals(items: Iterable[Any], discount_value: Number) -> QuoteTotals:
    """
    Compute subtotal, discount and total for a list of line items.

    The discount is clamped into [0, subtotal] so the total is never negative.
    No rounding is applied; formatting to cents is a presentation concern.
    """
    subtotal = compute_subtotal(items)
    upper = subtotal if subtotal > ZERO else ZERO
    discount = clamp(to_decimal(discount_value), ZERO, upper)
    return QuoteTotals(subtotal=subtotal, discount=discount, total=subtotal - discount)


def percent_from_value(discount_value: Number, subtotal: Number) -> Decimal:
    """Percentage that discount_value represents of subtotal, rounded to 2 places."""
    subtotal = to_decimal(subtotal)
    if subtotal <= ZERO:
        return round_money(ZERO)
    return round_money(to_decimal(discount_value) / subtotal * HUNDRED)


def value_from_percent(percent: Number, subtotal: Number) -> Decimal:
    """Absolute discount for a percentage of subtotal, rounded to 2 places."""
    subtotal = to_decimal(subtotal)
    if subtotal <= ZERO:
        return round_money(ZERO)
    return round_money(subtotal * to_decimal(percent) / HUNDRED)


def resync_discount(discount_value: Number, discount_percent: Number, subtotal: Number) -> DiscountState:
    """
    Re-derive the stored discount after the subtotal changed.

    A non-zero percent drives the value, but only once the drift exceeds
    DISCOUNT_SYNC_TOLERANCE. With a zero subtotal both are forced to zero.
    """
    subtotal = to_decimal(subtotal)
    if subtotal <= ZERO:
        return DiscountState(value=round_money(ZERO), percent=round_money(ZERO))

    value = to_decimal(discount_value)
    percent = to_decimal(discount_percent)

    if percent > ZERO:
        expected = value_from_percent(percent, subtotal)
        if abs(value - expected) > DISCOUNT_SYNC_TOLERANCE:
            value = expected

    return DiscountState(value=clamp(value, ZERO, subtotal), percent=percent)


def compute_profit(items: Iterable[Any], totals: QuoteTotals) -> ProfitSummary:
    """
    Cost-aware view of a quote for the business owner.

    gross_profit is before discount, net_profit after it. The margin is
    relative to the client-facing total.
    """
    total_cost = sum((line_cost(item) for item in items or ()), ZERO)
    net_profit = totals.total - total_cost
    margin = net_profit / totals.total * HUNDRED if totals.total > ZERO else ZERO
    return ProfitSummary(
        total_cost=total_cost,
        gross_profit=totals.subtotal - total_cost,
        net_profit=net_profit,
        margin_percent=margin,
    )
