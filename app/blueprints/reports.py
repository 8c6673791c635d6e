"""Reports blueprint: KPIs, growth, monthly revenue and top items."""
from datetime import date, datetime
from typing import Optional
from flask import Blueprint, jsonify, request, g, Response
from app.database import get_session
from app.exceptions import BusinessLogicError
from app.middleware import require_login, require_company
from app.services import report_service

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


def _date_arg(name: str) -> Optional[date]:
    value = (request.args.get(name) or '').strip()
    if not value:
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise BusinessLogicError(f"Data inválida para '{name}'. Use o formato AAAA-MM-DD.")


@reports_bp.route('', methods=['GET'])
@require_login
@require_company
def overview():
    """Query params: start, end (YYYY-MM-DD). Defaults to the last 12 months."""
    quotes = report_service.owner_quotes(get_session(), g.user_id)
    return jsonify(report_service.build_report(quotes, _date_arg('start'), _date_arg('end')))


@reports_bp.route('/export.csv', methods=['GET'])
@require_login
@require_company
def export_csv():
    start, end = report_service.resolve_period(_date_arg('start'), _date_arg('end'))
    quotes = report_service.filter_by_period(report_service.owner_quotes(get_session(), g.user_id), start, end)
    return Response(
        report_service.export_csv(quotes),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename=relatorio_{date.today().isoformat()}.csv'}
    )
