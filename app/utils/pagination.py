"""Query-string pagination for the listing endpoints."""
from flask import request, current_app


def _int_arg(name, default):
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default


def page_args():
    """(page, per_page) from ?page=&per_page=, capped by MAX_PAGE_SIZE."""
    page = max(_int_arg('page', 1), 1)
    per_page = _int_arg('per_page', current_app.config.get('PAGE_SIZE', 10))
    per_page = min(max(per_page, 1), current_app.config.get('MAX_PAGE_SIZE', 100))
    return page, per_page


def paginated(result, serialize):
    """Serialize a service listing ({data, total, page, total_pages})."""
    return {
        'data': [serialize(row) for row in result['data']],
        'total': result['total'],
        'page': result['page'],
        'total_pages': result['total_pages'],
    }
