"""Company profile blueprint (onboarding and settings)."""
from flask import Blueprint, jsonify, g, current_app
from app.database import get_session
from app.exceptions import NotFoundError
from app.forms import validate_or_raise, submitted_fields
from app.forms.account_forms import CompanyForm
from app.middleware import require_login
from app.services.company_service import get_company, save_company

company_bp = Blueprint('company', __name__, url_prefix='/company')


@company_bp.route('', methods=['GET'])
@require_login
def show():
    company = get_company(get_session(), g.user_id)
    if not company:
        raise NotFoundError('Empresa ainda não cadastrada.')
    return jsonify(company.to_dict())


@company_bp.route('', methods=['PUT', 'POST'])
@require_login
def save():
    """Onboarding (first save) and settings (later edits) share this endpoint."""
    form = validate_or_raise(CompanyForm())
    data = submitted_fields(form)
    if not data.get('brand_color') and g.get('company') is None:
        data['brand_color'] = current_app.config.get('DEFAULT_BRAND_COLOR')

    company = save_company(get_session(), g.user_id, data)
    return jsonify(company.to_dict()), 200
