"""Authentication blueprint for register, login and logout."""
from typing import Tuple
from flask import Blueprint, jsonify, session, g, current_app, Response
from app.database import get_session
from app.forms import validate_or_raise
from app.forms.account_forms import RegisterForm, LoginForm
from app.middleware import require_login
from app.services.auth_service import register_user, authenticate

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


def _session_payload(user) -> dict:
    company = g.get('company') if g.get('user_id') == user.id else None
    return {
        'user': user.to_dict(),
        'company': company.to_dict() if company else None,
        'onboarding_required': company is None,
    }


@auth_bp.route('/register', methods=['POST'])
def register() -> Tuple[Response, int]:
    """Create an owner account and sign it in."""
    form = validate_or_raise(RegisterForm())
    user = register_user(get_session(), form.email.data, form.password.data, form.full_name.data)

    session.clear()
    session['user_id'] = user.id
    current_app.logger.info(f"Registered and logged in user {user.id}")

    return jsonify({'user': user.to_dict(), 'company': None, 'onboarding_required': True}), 201


@auth_bp.route('/login', methods=['POST'])
def login() -> Tuple[Response, int]:
    form = validate_or_raise(LoginForm())
    user = authenticate(get_session(), form.email.data, form.password.data)

    session.clear()
    session['user_id'] = user.id
    g.user_id = user.id
    g.company = user.company

    return jsonify(_session_payload(user)), 200


@auth_bp.route('/logout', methods=['POST'])
def logout() -> Tuple[Response, int]:
    session.clear()
    return jsonify({'status': 'ok'}), 200


@auth_bp.route('/me')
@require_login
def me() -> Tuple[Response, int]:
    """Current user and company (null until onboarding is completed)."""
    return jsonify(_session_payload(g.user)), 200
