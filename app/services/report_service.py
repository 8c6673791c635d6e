"""
Reports and dashboard figures.

The calculation functions take plain sequences of quotes (ORM rows or any
object with status, issued_on, discount_value and lines) so they can be
tested without a database. Only `owner_quotes` touches the session.
"""
import csv
import io
import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from app.models import ItemKind, Quote, QuoteStatus
from app.services.totals_service import HUNDRED, ZERO, compute_totals, line_total, round_money
from app.utils.formatters import date_br, money_br, month_label_br

logger = logging.getLogger(__name__)

MAX_CHART_MONTHS = 13
TOP_ITEMS = 5
DEFAULT_LOOKBACK_DAYS = 365


def owner_quotes(session: Session, owner_id: int) -> List[Quote]:
    """All quotes of an owner with their lines loaded."""
    return session.query(Quote).options(selectinload(Quote.lines)) \
        .filter(Quote.owner_id == owner_id).all()


def quote_total(quote) -> Decimal:
    return compute_totals(quote.lines, quote.discount_value).total


def filter_by_period(quotes: Iterable, start: date, end: date) -> list:
    """Quotes issued within [start, end], both inclusive."""
    return [q for q in quotes if q.issued_on and start <= q.issued_on <= end]


def calculate_metrics(quotes: Iterable) -> Dict[str, Any]:
    """
    Revenue (approved), pipeline (pending), average ticket and conversion.

    Conversion is approved / (approved + rejected); negotiating and pending
    quotes are not decided yet and do not count.
    """
    quotes = list(quotes)
    approved = [q for q in quotes if q.status == QuoteStatus.APPROVED.value]
    pending = [q for q in quotes if q.status == QuoteStatus.PENDING.value]
    rejected = [q for q in quotes if q.status == QuoteStatus.REJECTED.value]

    revenue = sum((quote_total(q) for q in approved), ZERO)
    pipeline = sum((quote_total(q) for q in pending), ZERO)
    avg_ticket = revenue / len(approved) if approved else ZERO
    decided = len(approved) + len(rejected)
    conversion = Decimal(len(approved)) / decided * HUNDRED if decided else ZERO

    return {
        'revenue': round_money(revenue),
        'pipeline': round_money(pipeline),
        'avg_ticket': round_money(avg_ticket),
        'conversion': round_money(conversion),
        'approved_count': len(approved),
    }


def growth(current, previous) -> Decimal:
    """Percent change from previous to current (100 when starting from zero)."""
    current = Decimal(str(current))
    previous = Decimal(str(previous))
    if previous == 0:
        return round_money(HUNDRED if current > 0 else ZERO)
    return round_money((current - previous) / previous * HUNDRED)


def resolve_period(start: Optional[date] = None, end: Optional[date] = None):
    """Fill in the defaults (last 12 months up to today) and order the bounds."""
    end = end or date.today()
    start = start or end - timedelta(days=DEFAULT_LOOKBACK_DAYS)
    if start > end:
        start, end = end, start
    return start, end


def previous_period(start: date, end: date):
    """Window of the same length ending the day before `start`."""
    prev_end = start - timedelta(days=1)
    return prev_end - (end - start), prev_end


def _month_starts(start: date, end: date) -> List[date]:
    months = []
    cursor = start.replace(day=1)
    while cursor <= end and len(months) < MAX_CHART_MONTHS:
        months.append(cursor)
        cursor = date(cursor.year + 1, 1, 1) if cursor.month == 12 else date(cursor.year, cursor.month + 1, 1)
    return months


def monthly_revenue(quotes: Iterable, start: date, end: date) -> List[Dict[str, Any]]:
    """
    Approved revenue per calendar month touched by the period (at most 13
    buckets), with the same month of the previous year alongside.
    """
    per_month = defaultdict(lambda: ZERO)
    for q in quotes:
        if q.status == QuoteStatus.APPROVED.value and q.issued_on:
            per_month[(q.issued_on.year, q.issued_on.month)] += quote_total(q)

    return [
        {
            'month': month.strftime('%Y-%m'),
            'label': month_label_br(month),
            'value': round_money(per_month[(month.year, month.month)]),
            'previous_year': round_money(per_month[(month.year - 1, month.month)]),
        }
        for month in _month_starts(start, end)
    ]


def top_items(quotes: Iterable, limit: int = TOP_ITEMS) -> Dict[str, List[Dict[str, Any]]]:
    """Best selling services and products by revenue over approved quotes."""
    services = defaultdict(lambda: ZERO)
    products = defaultdict(lambda: ZERO)

    for q in quotes:
        if q.status != QuoteStatus.APPROVED.value:
            continue
        for line in q.lines or ():
            name = (line.description or '').strip() or 'Item sem nome'
            bucket = products if line.kind == ItemKind.PRODUCT.value else services
            bucket[name] += line_total(line)

    def _ranked(bucket):
        ranked = sorted(bucket.items(), key=lambda entry: entry[1], reverse=True)[:limit]
        return [{'name': name, 'value': round_money(value)} for name, value in ranked]

    return {'services': _ranked(services), 'products': _ranked(products)}


def status_counts(quotes: Iterable) -> Dict[str, int]:
    counts = {status.value: 0 for status in QuoteStatus}
    for q in quotes:
        counts[q.status] = counts.get(q.status, 0) + 1
    return counts


def build_report(quotes: Sequence, start: Optional[date] = None, end: Optional[date] = None) -> Dict[str, Any]:
    """
    Full report for [start, end] (defaults to the last 12 months).

    Each metric is compared with the previous period of the same length.
    """
    start, end = resolve_period(start, end)
    prev_start, prev_end = previous_period(start, end)
    current_quotes = filter_by_period(quotes, start, end)
    previous_quotes = filter_by_period(quotes, prev_start, prev_end)

    current = calculate_metrics(current_quotes)
    previous = calculate_metrics(previous_quotes)

    return {
        'period': {'start': start.isoformat(), 'end': end.isoformat()},
        'previous_period': {'start': prev_start.isoformat(), 'end': prev_end.isoformat()},
        'metrics': current,
        'previous_metrics': previous,
        'growth': {
            key: growth(current[key], previous[key])
            for key in ('revenue', 'pipeline', 'avg_ticket', 'conversion')
        },
        'monthly_revenue': monthly_revenue(quotes, start, end),
        'top_items': top_items(current_quotes),
        'status_counts': status_counts(current_quotes),
    }


def dashboard_summary(quotes: Sequence, recent: int = 5) -> Dict[str, Any]:
    """Home screen: counts per status, latest quotes and quotes waiting on the owner."""
    ordered = sorted(
        quotes,
        key=lambda q: (q.issued_on or date.min, q.id or 0),
        reverse=True
    )
    return {
        'status_counts': status_counts(quotes),
        'recent': ordered[:recent],
        'awaiting_response': [q for q in ordered if q.status == QuoteStatus.NEGOTIATING.value],
        'expired_count': sum(1 for q in quotes if getattr(q, 'is_expired', False)),
        'metrics': calculate_metrics(quotes),
    }


CSV_HEADERS = ('Data', 'Número', 'Cliente', 'Documento', 'Status', 'Total', 'Itens')


def export_csv(quotes: Iterable) -> str:
    """Quotes of a report period as CSV (Brazilian date and decimal comma)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADERS)
    for q in sorted(quotes, key=lambda q: (q.issued_on or date.min, q.id or 0)):
        writer.writerow([
            date_br(q.issued_on),
            q.quote_number or '',
            q.client_name or '',
            q.client_document or '',
            q.status,
            money_br(quote_total(q), symbol=''),
            ', '.join(line.description for line in q.lines or ()),
        ])
    return buffer.getvalue()
