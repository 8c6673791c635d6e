"""Middleware for authentication and company context."""
from functools import wraps
from flask import session, g, jsonify, current_app
from app.database import get_session
from app.models import AppUser, CompanyProfile


def load_user_and_company():
    """
    Load current user and company profile into g (Flask's per-request global).

    Called before each request. Sets g.user, g.user_id and g.company when the
    session carries a valid user id.
    """
    g.user = None
    g.user_id = None
    g.company = None

    try:
        user_id = session.get('user_id')
        if user_id:
            db_session = get_session()
            if not db_session:
                return

            user = db_session.query(AppUser).filter_by(id=user_id, active=True).first()
            if user:
                g.user = user
                g.user_id = user.id
                g.company = db_session.query(CompanyProfile).filter_by(owner_id=user.id).first()
            else:
                # Deleted or deactivated account, drop the stale session
                session.pop('user_id', None)
    except Exception as e:
        current_app.logger.error(f"Error in load_user_and_company: {e}")


def require_login(f):
    """
    Decorator: Require user to be logged in.

    Returns 401 JSON when there is no authenticated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            return jsonify({'status': 'error', 'message': 'Faça login para continuar.'}), 401
        return f(*args, **kwargs)
    return decorated_function


def require_company(f):
    """
    Decorator: Require the company profile (onboarding) to be completed.

    Must be used AFTER require_login.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('company') is None:
            return jsonify({
                'status': 'error',
                'message': 'Complete o cadastro da empresa primeiro.',
                'onboarding_required': True
            }), 403
        return f(*args, **kwargs)
    return decorated_function
