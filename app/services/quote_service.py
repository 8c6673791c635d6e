"""Quote service for creating, editing and moving quotes through their workflow."""
import logging
import re
import secrets
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session

from app.exceptions import BusinessLogicError, NotFoundError
from app.models import CatalogItem, Client, Quote, QuoteLine, QuoteStatus
from app.services import quote_workflow
from app.services.client_service import client_snapshot
from app.services.totals_service import (
    HUNDRED, ZERO, clamp, compute_subtotal, line_total, percent_from_value,
    resync_discount, round_money, to_decimal, value_from_percent
)

logger = logging.getLogger(__name__)

QUANTITY_STEP = Decimal('0.001')
NUMBER_DIGITS = re.compile(r'\d+')

DETAIL_FIELDS = (
    'client_name', 'client_person_type', 'client_document', 'client_email',
    'client_phone', 'client_address', 'notes', 'issued_on', 'due_date',
)
LINE_FIELDS = ('description', 'quantity', 'unit_price', 'cost', 'unit', 'kind')


def _lock(session: Session, query):
    """SELECT ... FOR UPDATE where the backend supports it."""
    if session.get_bind().dialect.name == 'sqlite':
        return query
    return query.with_for_update()


def _clean_text(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _normalize_line_value(field: str, value):
    if field == 'quantity':
        return to_decimal(value if value is not None else 1).quantize(QUANTITY_STEP)
    if field in ('unit_price', 'cost'):
        return round_money(value)
    if field == 'description':
        return (value or '').strip()
    return value


# ---------------------------------------------------------------------------
# Numbering and lookup
# ---------------------------------------------------------------------------

def generate_quote_number(session: Session, owner_id: int, prefix: str = 'ORC') -> str:
    """Next display number for an owner: highest numeric part + 1 (ORC1, ORC2, ...)."""
    max_number = 0
    for (number,) in session.query(Quote.quote_number).filter(Quote.owner_id == owner_id):
        digits = ''.join(NUMBER_DIGITS.findall(number or ''))
        if digits:
            max_number = max(max_number, int(digits))
    return f"{prefix}{max_number + 1}"


def get_quote(session: Session, quote_id: int, owner_id: int) -> Quote:
    """Get a quote owned by owner_id or raise NotFoundError."""
    quote = session.query(Quote).filter(Quote.id == quote_id, Quote.owner_id == owner_id).first()
    if not quote:
        raise NotFoundError(f'Orçamento {quote_id} não encontrado.')
    return quote


def get_quote_by_token(session: Session, token: str) -> Quote:
    """Get a quote from its public share token."""
    quote = session.query(Quote).filter(Quote.public_token == token).first() if token else None
    if not quote:
        raise NotFoundError('Orçamento não encontrado.')
    return quote


def list_quotes(session: Session, owner_id: int, page: int = 1, per_page: int = 10,
                search: str = '', status: Optional[str] = None) -> Dict[str, Any]:
    """
    Paginated quote history, most recently updated first.

    Search matches number, client name, client document and issue date.
    """
    query = session.query(Quote).filter(Quote.owner_id == owner_id)

    if status:
        query = query.filter(Quote.status == status)

    search = (search or '').strip()
    if search:
        term = f'%{search}%'
        query = query.filter(
            or_(
                Quote.quote_number.ilike(term),
                Quote.client_name.ilike(term),
                Quote.client_document.ilike(term),
                cast(Quote.issued_on, String).like(term),
                cast(Quote.id, String).like(term),
            )
        )

    page = max(int(page or 1), 1)
    per_page = max(int(per_page or 10), 1)
    total = query.count()
    quotes = query.order_by(Quote.updated_at.desc(), Quote.id.desc()) \
        .offset((page - 1) * per_page).limit(per_page).all()

    return {
        'data': quotes,
        'total': total,
        'page': page,
        'total_pages': (total + per_page - 1) // per_page,
    }


# ---------------------------------------------------------------------------
# Create / update / duplicate / delete
# ---------------------------------------------------------------------------

def ensure_editable(quote: Quote) -> None:
    """Approved and rejected quotes are read-only for the owner."""
    if quote.is_finalized:
        raise BusinessLogicError(
            f'O orçamento {quote.quote_number} está com status {quote.status} e não pode ser editado.',
            status_code=409
        )


def _apply_details(session: Session, quote: Quote, fields: Dict[str, Any]) -> None:
    """
    Copy the chosen client into the snapshot, then apply explicit fields.

    Explicit non-empty client fields override the copied snapshot; blank ones
    do not erase it.
    """
    from_client = bool(fields.get('client_id'))
    if from_client:
        client = session.query(Client).filter(
            Client.id == fields['client_id'], Client.owner_id == quote.owner_id
        ).first()
        if not client:
            raise NotFoundError(f"Cliente {fields['client_id']} não encontrado.")
        for field, value in client_snapshot(client).items():
            setattr(quote, field, value)

    for field in DETAIL_FIELDS:
        if field in fields:
            value = _clean_text(fields[field])
            if from_client and field.startswith('client_') and value is None:
                continue
            if field == 'client_name':
                value = value or ''
            if field == 'client_person_type' and not value:
                continue
            setattr(quote, field, value)


def create_quote(session: Session, owner_id: int, prefix: str = 'ORC', valid_days: Optional[int] = None,
                 **details) -> Quote:
    """
    Create and persist an empty pending quote.

    The display number and the public share token are assigned here, on first save.
    """
    try:
        today = date.today()
        quote = Quote(
            owner_id=owner_id,
            quote_number=generate_quote_number(session, owner_id, prefix),
            status=QuoteStatus.PENDING.value,
            issued_on=today,
            due_date=today + timedelta(days=valid_days) if valid_days else None,
            discount_value=Decimal('0.00'),
            discount_percent=Decimal('0.00'),
            public_token=secrets.token_urlsafe(24),
        )
        session.add(quote)
        _apply_details(session, quote, details)
        session.commit()
        logger.info(f"Quote {quote.quote_number} created for owner {owner_id}")
        return quote
    except Exception:
        session.rollback()
        raise


def update_quote_details(session: Session, quote: Quote, **fields) -> Quote:
    """Update client snapshot, notes and dates of an editable quote."""
    ensure_editable(quote)
    try:
        _apply_details(session, quote, fields)
        session.commit()
        return quote
    except Exception:
        session.rollback()
        raise


def duplicate_quote(session: Session, quote: Quote, prefix: str = 'ORC') -> Quote:
    """Start a new pending quote from an existing one (same client, items and discount)."""
    try:
        clone = Quote(
            owner_id=quote.owner_id,
            quote_number=generate_quote_number(session, quote.owner_id, prefix),
            status=QuoteStatus.PENDING.value,
            issued_on=date.today(),
            due_date=None,
            notes=quote.notes,
            client_id=quote.client_id,
            client_name=quote.client_name,
            client_person_type=quote.client_person_type,
            client_document=quote.client_document,
            client_email=quote.client_email,
            client_phone=quote.client_phone,
            client_address=quote.client_address,
            discount_value=quote.discount_value,
            discount_percent=quote.discount_percent,
            public_token=secrets.token_urlsafe(24),
        )
        for line in quote.lines:
            clone.lines.append(QuoteLine(
                kind=line.kind,
                description=line.description,
                quantity=line.quantity,
                unit=line.unit,
                unit_price=line.unit_price,
                cost=line.cost,
            ))
        session.add(clone)
        session.commit()
        logger.info(f"Quote {quote.quote_number} duplicated as {clone.quote_number}")
        return clone
    except Exception:
        session.rollback()
        raise


def delete_quote(session: Session, quote: Quote) -> None:
    try:
        session.delete(quote)
        session.commit()
    except Exception:
        session.rollback()
        raise


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------

def _sync_discount(quote: Quote, previous_subtotal) -> None:
    """Re-derive the discount when a line edit changed the subtotal."""
    subtotal = compute_subtotal(quote.lines)
    if subtotal == previous_subtotal:
        return
    state = resync_discount(quote.discount_value, quote.discount_percent, subtotal)
    quote.discount_value = round_money(state.value)
    quote.discount_percent = round_money(state.percent)


def _find_line(quote: Quote, line_id: int) -> QuoteLine:
    for line in quote.lines:
        if line.id == line_id:
            return line
    raise NotFoundError(f'Item {line_id} não encontrado no orçamento {quote.quote_number}.')


def add_line(session: Session, quote: Quote, description: str, quantity=1, unit_price=0, cost=0,
             unit: Optional[str] = None, kind: Optional[str] = None) -> QuoteLine:
    """Append a line at the end of the print order."""
    ensure_editable(quote)
    description = _normalize_line_value('description', description)
    if not description:
        raise BusinessLogicError('A descrição do item é obrigatória.')
    try:
        line = QuoteLine(
            description=description,
            quantity=_normalize_line_value('quantity', quantity),
            unit_price=_normalize_line_value('unit_price', unit_price),
            cost=_normalize_line_value('cost', cost),
            unit=unit or 'un',
            kind=kind or 'service',
        )
        previous_subtotal = compute_subtotal(quote.lines)
        quote.lines.append(line)
        _sync_discount(quote, previous_subtotal)
        session.commit()
        return line
    except Exception:
        session.rollback()
        raise


def add_line_from_catalog(session: Session, quote: Quote, catalog_item_id: int, quantity=1) -> QuoteLine:
    """Copy a saved service/product into the quote as a new line."""
    item = session.query(CatalogItem).filter(
        CatalogItem.id == catalog_item_id, CatalogItem.owner_id == quote.owner_id
    ).first()
    if not item:
        raise NotFoundError(f'Item de catálogo {catalog_item_id} não encontrado.')
    return add_line(
        session, quote,
        description=item.description,
        quantity=quantity if quantity is not None else 1,
        unit_price=item.default_price,
        cost=item.default_cost,
        unit=item.unit,
        kind=item.kind,
    )


def update_line(session: Session, quote: Quote, line_id: int, **fields) -> QuoteLine:
    """Edit fields of a line in place."""
    ensure_editable(quote)
    line = _find_line(quote, line_id)
    try:
        previous_subtotal = compute_subtotal(quote.lines)
        for field in LINE_FIELDS:
            if field in fields and fields[field] is not None:
                value = _normalize_line_value(field, fields[field])
                if field == 'description' and not value:
                    raise BusinessLogicError('A descrição do item é obrigatória.')
                setattr(line, field, value)
        _sync_discount(quote, previous_subtotal)
        session.commit()
        return line
    except Exception:
        session.rollback()
        raise


def remove_line(session: Session, quote: Quote, line_id: int) -> None:
    ensure_editable(quote)
    line = _find_line(quote, line_id)
    try:
        previous_subtotal = compute_subtotal(quote.lines)
        quote.lines.remove(line)
        _sync_discount(quote, previous_subtotal)
        session.commit()
    except Exception:
        session.rollback()
        raise


def move_line(session: Session, quote: Quote, line_id: int, direction: str) -> None:
    """Swap a line with its neighbour. Moving past either end is a no-op."""
    if direction not in ('up', 'down'):
        raise BusinessLogicError("Direção inválida. Use 'up' ou 'down'.")
    ensure_editable(quote)
    line = _find_line(quote, line_id)
    index = quote.lines.index(line)
    target = index - 1 if direction == 'up' else index + 1
    if target < 0 or target >= len(quote.lines):
        return
    try:
        quote.lines.insert(target, quote.lines.pop(index))
        session.commit()
    except Exception:
        session.rollback()
        raise


# ---------------------------------------------------------------------------
# Discount
# ---------------------------------------------------------------------------

def set_discount_value(session: Session, quote: Quote, value) -> Quote:
    """
    Owner typed an absolute discount: store it clamped to [0, subtotal]
    and derive the percent from it.
    """
    ensure_editable(quote)
    subtotal = compute_subtotal(quote.lines)
    upper = subtotal if subtotal > ZERO else ZERO
    stored = clamp(round_money(value), ZERO, round_money(upper))
    quote.discount_value = stored
    quote.discount_percent = percent_from_value(stored, subtotal)
    session.commit()
    return quote


def set_discount_percent(session: Session, quote: Quote, percent) -> Quote:
    """Owner typed a percentage: clamp it to [0, 100] and derive the value."""
    ensure_editable(quote)
    subtotal = compute_subtotal(quote.lines)
    if subtotal <= ZERO:
        quote.discount_percent = round_money(ZERO)
        quote.discount_value = round_money(ZERO)
    else:
        percent = clamp(to_decimal(percent), ZERO, HUNDRED)
        quote.discount_percent = round_money(percent)
        quote.discount_value = clamp(value_from_percent(percent, subtotal), ZERO, subtotal)
    session.commit()
    return quote


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

def change_status(session: Session, quote: Quote, action, feedback: Optional[str] = None,
                  signature: Optional[str] = None, client_name: Optional[str] = None) -> Quote:
    """
    Apply a workflow action and persist it.

    The row is re-read under lock so two actors cannot both move the same
    pending quote.
    """
    try:
        locked = _lock(session, session.query(Quote).filter(Quote.id == quote.id)).populate_existing().one()
        quote_workflow.apply_action(locked, action, feedback=feedback, signature=signature, client_name=client_name)
        session.commit()
        return locked
    except Exception:
        session.rollback()
        raise


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def _money(value) -> str:
    return str(round_money(value))


def line_to_dict(line: QuoteLine, include_cost: bool = False) -> Dict[str, Any]:
    data = {
        'id': line.id,
        'position': line.position,
        'kind': line.kind,
        'description': line.description,
        'quantity': f"{to_decimal(line.quantity).normalize():f}",
        'unit': line.unit,
        'unit_price': _money(line.unit_price),
        'line_total': _money(line_total(line)),
    }
    if include_cost:
        data['cost'] = _money(line.cost)
    return data


def quote_to_dict(quote: Quote, include_profit: bool = False) -> Dict[str, Any]:
    """
    Serialize a quote.

    include_profit adds item costs and the profit summary; only owner-facing
    endpoints may pass it.
    """
    totals = quote.totals
    data = {
        'id': quote.id,
        'number': quote.quote_number,
        'status': quote.status,
        'issued_on': quote.issued_on.isoformat() if quote.issued_on else None,
        'due_date': quote.due_date.isoformat() if quote.due_date else None,
        'is_expired': quote.is_expired,
        'client': {
            'id': quote.client_id,
            'name': quote.client_name,
            'person_type': quote.client_person_type,
            'document': quote.client_document,
            'email': quote.client_email,
            'phone': quote.client_phone,
            'address': quote.client_address,
        },
        'notes': quote.notes,
        'items': [line_to_dict(line, include_cost=include_profit) for line in quote.lines],
        'discount_value': _money(quote.discount_value),
        'discount_percent': _money(quote.discount_percent),
        'totals': {
            'subtotal': _money(totals.subtotal),
            'discount': _money(totals.discount),
            'total': _money(totals.total),
        },
        'signature': quote.signature,
        'client_feedback': quote.client_feedback,
        'client_display_name': quote.client_display_name,
    }
    if include_profit:
        profit = quote.profit
        data['profit'] = {
            'total_cost': _money(profit.total_cost),
            'gross_profit': _money(profit.gross_profit),
            'net_profit': _money(profit.net_profit),
            'margin_percent': _money(profit.margin_percent),
        }
        data['public_token'] = quote.public_token
        data['allowed_actions'] = [a.value for a in quote_workflow.allowed_actions(quote.status)]
        data['updated_at'] = quote.updated_at.isoformat() if quote.updated_at else None
    else:
        data['allowed_actions'] = [a.value for a in quote_workflow.allowed_actions(quote.status, public=True)]
    return data
