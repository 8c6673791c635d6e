"""Catalog blueprint for saved services and products."""
from flask import Blueprint, jsonify, request, g
from app.database import get_session
from app.forms import validate_or_raise, submitted_fields
from app.forms.quote_forms import CatalogItemForm
from app.middleware import require_login, require_company
from app.services import catalog_service
from app.utils.pagination import page_args, paginated

catalog_bp = Blueprint('catalog', __name__, url_prefix='/catalog')


@catalog_bp.route('', methods=['GET'])
@require_login
@require_company
def list_items():
    """Paginated catalog. Query params: q, kind (service/product), page, per_page."""
    page, per_page = page_args()
    result = catalog_service.list_items(
        get_session(), g.user_id,
        page=page,
        per_page=per_page,
        search=request.args.get('q', ''),
        kind=request.args.get('kind') or None
    )
    return jsonify(paginated(result, lambda item: item.to_dict()))


@catalog_bp.route('', methods=['POST'])
@require_login
@require_company
def create():
    form = validate_or_raise(CatalogItemForm())
    item = catalog_service.create_item(get_session(), g.user_id, submitted_fields(form))
    return jsonify(item.to_dict()), 201


@catalog_bp.route('/<int:item_id>', methods=['GET'])
@require_login
@require_company
def show(item_id: int):
    return jsonify(catalog_service.get_item(get_session(), item_id, g.user_id).to_dict())


@catalog_bp.route('/<int:item_id>', methods=['PUT'])
@require_login
@require_company
def update(item_id: int):
    session = get_session()
    item = catalog_service.get_item(session, item_id, g.user_id)
    form = validate_or_raise(CatalogItemForm())
    item = catalog_service.update_item(session, item, submitted_fields(form))
    return jsonify(item.to_dict())


@catalog_bp.route('/<int:item_id>', methods=['DELETE'])
@require_login
@require_company
def delete(item_id: int):
    session = get_session()
    item = catalog_service.get_item(session, item_id, g.user_id)
    catalog_service.delete_item(session, item)
    return jsonify({'status': 'ok'})
