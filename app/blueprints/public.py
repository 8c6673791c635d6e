"""
Public quote page, addressed by the share token.

Clients are not logged in, so this blueprint is exempt from CSRF. It never
exposes costs, profit or the owner's status actions.
"""
from flask import Blueprint, jsonify, current_app, send_file
from app.database import get_session
from app.exceptions import NotFoundError
from app.forms import validate_or_raise
from app.forms.quote_forms import FeedbackForm, AdjustmentRequestForm
from app.blueprints.metrics import record_transition
from app.services import quote_service
from app.services.company_service import get_company
from app.services.pdf_service import generate_quote_pdf
from app.services.quote_workflow import PUBLIC_ACTIONS, QuoteAction

public_bp = Blueprint('public', __name__, url_prefix='/p')

PUBLIC_COMPANY_FIELDS = ('nome_fantasia', 'razao_social', 'document', 'email', 'phone',
                         'address', 'brand_color', 'logo_url', 'show_signature')


def _public_view(quote):
    company = get_company(get_session(), quote.owner_id)
    data = quote_service.quote_to_dict(quote)
    data['company'] = {field: getattr(company, field) for field in PUBLIC_COMPANY_FIELDS} if company else None
    return jsonify(data)


@public_bp.route('/<token>', methods=['GET'])
def show(token: str):
    return _public_view(quote_service.get_quote_by_token(get_session(), token))


@public_bp.route('/<token>/<action_name>', methods=['POST'])
def act(token: str, action_name: str):
    """
    Client response: approve, reject or request-adjustment.

    Body: {"feedback": "...", "client_name": "..."}; feedback is mandatory
    when asking for an adjustment.
    """
    action = PUBLIC_ACTIONS.get(action_name)
    if action is None:
        raise NotFoundError(f"Ação '{action_name}' não encontrada.")

    session = get_session()
    quote = quote_service.get_quote_by_token(session, token)

    form_class = AdjustmentRequestForm if action is QuoteAction.CLIENT_REQUEST_ADJUSTMENT else FeedbackForm
    form = validate_or_raise(form_class())

    quote = quote_service.change_status(
        session, quote, action,
        feedback=form.feedback.data,
        client_name=form.client_name.data
    )
    record_transition(action, quote.status)
    current_app.logger.info(f"Quote {quote.quote_number}: client action {action.value} -> {quote.status}")
    return _public_view(quote)


@public_bp.route('/<token>/pdf', methods=['GET'])
def pdf(token: str):
    session = get_session()
    quote = quote_service.get_quote_by_token(session, token)
    buffer = generate_quote_pdf(quote, get_company(session, quote.owner_id))
    return send_file(
        buffer,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=f"orcamento_{quote.quote_number}.pdf"
    )
