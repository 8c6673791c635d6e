"""Quotes blueprint: history, editor, discount, status actions and PDF."""
from flask import Blueprint, jsonify, request, g, current_app, send_file
from app.database import get_session
from app.exceptions import BusinessLogicError
from app.forms import validate_or_raise, submitted_fields
from app.forms.quote_forms import (
    QuoteDetailsForm, LineItemForm, LineItemUpdateForm, CatalogLineForm,
    DiscountForm, SignatureForm, StatusActionForm
)
from app.middleware import require_login, require_company
from app.blueprints.metrics import record_transition, quotes_created_total
from app.services import quote_service
from app.services.pdf_service import generate_quote_pdf
from app.services.quote_workflow import OWNER_ACTIONS, QuoteAction, parse_action
from app.utils.pagination import page_args, paginated

quotes_bp = Blueprint('quotes', __name__, url_prefix='/quotes')


def _owned_quote(quote_id: int):
    return quote_service.get_quote(get_session(), quote_id, g.user_id)


def _owner_view(quote):
    return jsonify(quote_service.quote_to_dict(quote, include_profit=True))


@quotes_bp.route('', methods=['GET'])
@require_login
@require_company
def list_quotes():
    """History. Query params: q (number, client, document, date), status, page, per_page."""
    page, per_page = page_args()
    result = quote_service.list_quotes(
        get_session(), g.user_id,
        page=page,
        per_page=per_page,
        search=request.args.get('q', ''),
        status=request.args.get('status') or None
    )
    return jsonify(paginated(result, lambda q: quote_service.quote_to_dict(q, include_profit=True)))


@quotes_bp.route('', methods=['POST'])
@require_login
@require_company
def create():
    """New pending quote. Body may carry the header fields (client, dates, notes)."""
    form = validate_or_raise(QuoteDetailsForm())
    details = submitted_fields(form)
    details.setdefault('notes', current_app.config.get('DEFAULT_QUOTE_NOTES'))

    quote = quote_service.create_quote(
        get_session(), g.user_id,
        prefix=current_app.config.get('QUOTE_NUMBER_PREFIX', 'ORC'),
        valid_days=current_app.config.get('QUOTE_VALID_DAYS'),
        **details
    )
    quotes_created_total.labels(source='new').inc()
    current_app.logger.info(f"Quote {quote.quote_number} created by user {g.user_id}")
    return _owner_view(quote), 201


@quotes_bp.route('/<int:quote_id>', methods=['GET'])
@require_login
@require_company
def show(quote_id: int):
    return _owner_view(_owned_quote(quote_id))


@quotes_bp.route('/<int:quote_id>', methods=['PUT', 'PATCH'])
@require_login
@require_company
def update_details(quote_id: int):
    quote = _owned_quote(quote_id)
    form = validate_or_raise(QuoteDetailsForm())
    quote = quote_service.update_quote_details(get_session(), quote, **submitted_fields(form))
    return _owner_view(quote)


@quotes_bp.route('/<int:quote_id>', methods=['DELETE'])
@require_login
@require_company
def delete(quote_id: int):
    quote = _owned_quote(quote_id)
    quote_service.delete_quote(get_session(), quote)
    current_app.logger.info(f"Quote {quote_id} deleted by user {g.user_id}")
    return jsonify({'status': 'ok'})


@quotes_bp.route('/<int:quote_id>/duplicate', methods=['POST'])
@require_login
@require_company
def duplicate(quote_id: int):
    quote = _owned_quote(quote_id)
    clone = quote_service.duplicate_quote(
        get_session(), quote, prefix=current_app.config.get('QUOTE_NUMBER_PREFIX', 'ORC')
    )
    quotes_created_total.labels(source='duplicate').inc()
    return _owner_view(clone), 201


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

@quotes_bp.route('/<int:quote_id>/items', methods=['POST'])
@require_login
@require_company
def add_item(quote_id: int):
    quote = _owned_quote(quote_id)
    form = validate_or_raise(LineItemForm())
    data = submitted_fields(form)
    quote_service.add_line(
        get_session(), quote,
        description=data['description'],
        quantity=data.get('quantity') if data.get('quantity') is not None else 1,
        unit_price=data.get('unit_price'),
        cost=data.get('cost'),
        unit=data.get('unit'),
        kind=data.get('kind')
    )
    return _owner_view(quote), 201


@quotes_bp.route('/<int:quote_id>/items/from-catalog', methods=['POST'])
@require_login
@require_company
def add_catalog_item(quote_id: int):
    quote = _owned_quote(quote_id)
    form = validate_or_raise(CatalogLineForm())
    quote_service.add_line_from_catalog(
        get_session(), quote, form.catalog_item_id.data,
        quantity=form.quantity.data if form.quantity.data is not None else 1
    )
    return _owner_view(quote), 201


@quotes_bp.route('/<int:quote_id>/items/<int:line_id>', methods=['PATCH', 'PUT'])
@require_login
@require_company
def update_item(quote_id: int, line_id: int):
    quote = _owned_quote(quote_id)
    form = validate_or_raise(LineItemUpdateForm())
    quote_service.update_line(get_session(), quote, line_id, **submitted_fields(form))
    return _owner_view(quote)


@quotes_bp.route('/<int:quote_id>/items/<int:line_id>', methods=['DELETE'])
@require_login
@require_company
def remove_item(quote_id: int, line_id: int):
    quote = _owned_quote(quote_id)
    quote_service.remove_line(get_session(), quote, line_id)
    return _owner_view(quote)


@quotes_bp.route('/<int:quote_id>/items/<int:line_id>/move/<direction>', methods=['POST'])
@require_login
@require_company
def move_item(quote_id: int, line_id: int, direction: str):
    quote = _owned_quote(quote_id)
    quote_service.move_line(get_session(), quote, line_id, direction)
    return _owner_view(quote)


# ---------------------------------------------------------------------------
# Discount
# ---------------------------------------------------------------------------

@quotes_bp.route('/<int:quote_id>/discount', methods=['PUT'])
@require_login
@require_company
def set_discount(quote_id: int):
    """Body: {"value": 25} or {"percent": 10}, never both. Out-of-range input is clamped."""
    quote = _owned_quote(quote_id)
    form = validate_or_raise(DiscountForm())
    if form.percent.data is not None:
        quote_service.set_discount_percent(get_session(), quote, form.percent.data)
    else:
        quote_service.set_discount_value(get_session(), quote, form.value.data)
    return _owner_view(quote)


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

@quotes_bp.route('/<int:quote_id>/sign', methods=['POST'])
@require_login
@require_company
def sign(quote_id: int):
    """In-person approval: the client signs on the owner's device."""
    quote = _owned_quote(quote_id)
    form = validate_or_raise(SignatureForm())
    quote = quote_service.change_status(get_session(), quote, QuoteAction.SIGN, signature=form.signature.data)
    record_transition(QuoteAction.SIGN, quote.status)
    return _owner_view(quote)


@quotes_bp.route('/<int:quote_id>/status/<action>', methods=['POST'])
@require_login
@require_company
def change_status(quote_id: int, action: str):
    """Owner actions: mark_approved, mark_rejected, resend."""
    quote = _owned_quote(quote_id)
    action = parse_action(action)
    if action not in OWNER_ACTIONS or action is QuoteAction.SIGN:
        raise BusinessLogicError(f"Ação '{action.value}' não disponível para o proprietário.")

    form = validate_or_raise(StatusActionForm())
    quote = quote_service.change_status(get_session(), quote, action, feedback=form.feedback.data)
    record_transition(action, quote.status)
    current_app.logger.info(f"Quote {quote.quote_number}: owner action {action.value} -> {quote.status}")
    return _owner_view(quote)


# ---------------------------------------------------------------------------
# Internal summary and PDF
# ---------------------------------------------------------------------------

@quotes_bp.route('/<int:quote_id>/summary', methods=['GET'])
@require_login
@require_company
def summary(quote_id: int):
    """Owner-only cost and profit figures."""
    data = quote_service.quote_to_dict(_owned_quote(quote_id), include_profit=True)
    return jsonify({
        'id': data['id'],
        'number': data['number'],
        'totals': data['totals'],
        'discount_percent': data['discount_percent'],
        'profit': data['profit'],
    })


@quotes_bp.route('/<int:quote_id>/pdf', methods=['GET'])
@require_login
@require_company
def pdf(quote_id: int):
    quote = _owned_quote(quote_id)
    buffer = generate_quote_pdf(quote, g.company)
    return send_file(
        buffer,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=f"orcamento_{quote.quote_number}.pdf"
    )
