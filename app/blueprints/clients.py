"""Clients blueprint (address book)."""
from flask import Blueprint, jsonify, request, g
from app.database import get_session
from app.forms import validate_or_raise, submitted_fields
from app.forms.quote_forms import ClientForm
from app.middleware import require_login, require_company
from app.services import client_service
from app.utils.pagination import page_args, paginated

clients_bp = Blueprint('clients', __name__, url_prefix='/clients')


@clients_bp.route('', methods=['GET'])
@require_login
@require_company
def list_clients():
    """Paginated client list. Query params: q, page, per_page."""
    page, per_page = page_args()
    result = client_service.list_clients(
        get_session(), g.user_id, page=page, per_page=per_page, search=request.args.get('q', '')
    )
    return jsonify(paginated(result, lambda c: c.to_dict()))


@clients_bp.route('', methods=['POST'])
@require_login
@require_company
def create():
    form = validate_or_raise(ClientForm())
    client = client_service.create_client(get_session(), g.user_id, submitted_fields(form))
    return jsonify(client.to_dict()), 201


@clients_bp.route('/<int:client_id>', methods=['GET'])
@require_login
@require_company
def show(client_id: int):
    return jsonify(client_service.get_client(get_session(), client_id, g.user_id).to_dict())


@clients_bp.route('/<int:client_id>', methods=['PUT'])
@require_login
@require_company
def update(client_id: int):
    session = get_session()
    client = client_service.get_client(session, client_id, g.user_id)
    form = validate_or_raise(ClientForm())
    client = client_service.update_client(session, client, submitted_fields(form))
    return jsonify(client.to_dict())


@clients_bp.route('/<int:client_id>', methods=['DELETE'])
@require_login
@require_company
def delete(client_id: int):
    session = get_session()
    client = client_service.get_client(session, client_id, g.user_id)
    client_service.delete_client(session, client)
    return jsonify({'status': 'ok'})
