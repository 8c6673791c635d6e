"""Main blueprint with health check and CSRF token endpoints."""
from flask import Blueprint, jsonify, g, current_app
from flask_wtf.csrf import generate_csrf
from app.database import get_session, ping
from app.middleware import require_login, require_company
from app.services import report_service
from app.services.quote_service import quote_to_dict

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates database connection.

    Returns:
        200: Healthy (DB connected)
        500: Unhealthy (DB error)
    """
    try:
        if ping():
            return jsonify({
                'status': 'healthy',
                'database': 'connected',
                'message': 'Database connection successful'
            }), 200
        return jsonify({
            'status': 'unhealthy',
            'database': 'error',
            'message': 'Unexpected query result'
        }), 500

    except Exception as e:
        current_app.logger.error(f"Health check failed: {e}")
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': str(e),
            'message': 'Failed to connect to database'
        }), 500


@main_bp.route('/csrf-token')
def csrf_token():
    """Token for the X-CSRFToken header of state-changing requests."""
    return jsonify({'csrf_token': generate_csrf()})


@main_bp.route('/dashboard')
@require_login
@require_company
def dashboard():
    """Counts per status, latest quotes and quotes waiting for the owner."""
    quotes = report_service.owner_quotes(get_session(), g.user_id)
    summary = report_service.dashboard_summary(quotes)
    summary['recent'] = [quote_to_dict(q, include_profit=True) for q in summary['recent']]
    summary['awaiting_response'] = [quote_to_dict(q, include_profit=True) for q in summary['awaiting_response']]
    return jsonify(summary)
