"""Flask application factory."""
import os
import traceback

from flask import Flask, request, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException

from app.database import init_db


def _init_sentry(app):
    """Error tracking, production only."""
    dsn = app.config.get('SENTRY_DSN')
    if not dsn or app.config.get('ENV') != 'production':
        return

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration

    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=float(os.getenv('SENTRY_TRACES_SAMPLE_RATE', '0.1')),
        environment=app.config.get('ENV'),
        release=os.getenv('GIT_COMMIT', 'unknown')
    )


def _register_error_handlers(app):
    """Every error leaves the API as JSON: {"status": "error", "message": ...}."""
    from app.exceptions import AppError

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error on {request.path}: {e.description}")
        return jsonify({'status': 'error', 'message': 'A sessão expirou. Recarregue a página.'}), 400

    @app.errorhandler(AppError)
    def handle_app_error(error):
        log = app.logger.error if error.status_code >= 500 else app.logger.info
        log(f"AppError [{error.status_code}] on {request.method} {request.path}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Recurso não encontrado'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Método não permitido'}), 405

    @app.errorhandler(Exception)
    def unhandled_error(error):
        if isinstance(error, HTTPException) and error.code < 500:
            return jsonify({'status': 'error', 'message': error.description}), error.code
        app.logger.error(f"Unhandled exception on {request.method} {request.path}: {error}")
        app.logger.error(traceback.format_exc())
        return jsonify({'status': 'error', 'message': 'Erro interno do servidor'}), 500


def _register_blueprints(app, csrf):
    from app.blueprints.main import main_bp
    from app.blueprints.auth import auth_bp
    from app.blueprints.company import company_bp
    from app.blueprints.clients import clients_bp
    from app.blueprints.catalog import catalog_bp
    from app.blueprints.quotes import quotes_bp
    from app.blueprints.public import public_bp
    from app.blueprints.reports import reports_bp
    from app.blueprints.metrics import metrics_bp

    for blueprint in (main_bp, auth_bp, company_bp, clients_bp, catalog_bp, quotes_bp, reports_bp, metrics_bp):
        app.register_blueprint(blueprint)

    # Clients answer quotes without a session, so there is no CSRF token to send
    csrf.exempt(public_bp)
    app.register_blueprint(public_bp)


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # State-changing requests carry the X-CSRFToken header (see /csrf-token)
    csrf = CSRFProtect(app)

    _init_sentry(app)

    from app.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    if app.config.get('ENV') == 'production':
        # Behind Nginx: trust one hop of X-Forwarded-For/Proto/Host/Port
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    init_db(app)

    from app.middleware import load_user_and_company
    app.before_request(load_user_and_company)

    _register_error_handlers(app)
    _register_blueprints(app, csrf)

    from app.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"App created (env={app.config.get('ENV')})")
    return app
