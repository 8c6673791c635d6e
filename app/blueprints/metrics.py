"""
Prometheus metrics: HTTP traffic plus quote workflow counters.

Exposes /metrics. The endpoint is not authenticated, keep it on the internal
network (or behind the monitoring proxy).
"""
import os
import time

from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess, REGISTRY

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn with several workers sets PROMETHEUS_MULTIPROC_DIR
MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None

# Metric objects always register on the default registry; in multi-process
# mode the values are read back from the shared directory at scrape time.
LATENCY_BUCKETS = (0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

http_requests_total = Counter(
    'http_requests_total',
    'HTTP requests by endpoint and status',
    ['method', 'endpoint', 'http_status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    buckets=LATENCY_BUCKETS
)

http_requests_in_flight = Gauge(
    'http_requests_in_flight',
    'Requests currently being served',
    multiprocess_mode='livesum'
)

quote_status_transitions_total = Counter(
    'quote_status_transitions_total',
    'Quote status changes by action and resulting status',
    ['action', 'to_status']
)

quotes_created_total = Counter(
    'quotes_created_total',
    'Quotes created, new or duplicated',
    ['source']
)


def record_transition(action, to_status):
    """Count a successful quote status change."""
    quote_status_transitions_total.labels(
        action=getattr(action, 'value', action),
        to_status=to_status
    ).inc()


def _scrape_registry():
    if not MULTIPROCESS_MODE:
        return REGISTRY
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
    return registry


def setup_metrics_instrumentation(app):
    """Register request hooks that feed the HTTP metrics. Called by the app factory."""

    @app.before_request
    def start_request_timer():
        g._metrics_started_at = time.perf_counter()
        http_requests_in_flight.inc()

    @app.after_request
    def observe_request(response):
        started_at = g.pop('_metrics_started_at', None)
        if started_at is None:
            return response

        try:
            endpoint = request.endpoint or 'unknown'
            http_request_duration_seconds.labels(
                method=request.method, endpoint=endpoint
            ).observe(time.perf_counter() - started_at)
            http_requests_total.labels(
                method=request.method, endpoint=endpoint, http_status=response.status_code
            ).inc()
        except Exception as e:
            app.logger.warning(f"Failed to record metrics: {e}")
        finally:
            http_requests_in_flight.dec()

        return response


@metrics_bp.route('/metrics')
def metrics():
    return Response(generate_latest(_scrape_registry()), mimetype=CONTENT_TYPE_LATEST)
