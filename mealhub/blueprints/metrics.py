"""
Prometheus metrics for the ordering API.

Request series are labelled by route template (``/cart/<owner>``), never by
the concrete path, so owners and order ids do not multiply the series.
/metrics is unauthenticated; keep it on the internal network.
"""
import os
import time

from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess, REGISTRY

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers share metrics through PROMETHEUS_MULTIPROC_DIR
MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None

if MULTIPROCESS_MODE:
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
else:
    registry = REGISTRY

_metric_registry = registry if not MULTIPROCESS_MODE else None


def _counter(name, documentation, labels):
    return Counter(name, documentation, labels, registry=_metric_registry)


http_requests_total = _counter(
    'http_requests_total', 'HTTP requests by route template', ['method', 'route', 'http_status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'route'],
    registry=_metric_registry,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

http_requests_in_flight = Gauge(
    'http_requests_in_flight',
    'Requests currently being served',
    registry=_metric_registry
)

# Ordering
orders_created_total = _counter(
    'orders_created_total', 'Orders created by checkout', ['payment_method']
)
checkout_failures_total = _counter(
    'checkout_failures_total', 'Checkout attempts rejected or rolled back', ['reason']
)
payment_callbacks_total = _counter(
    'payment_callbacks_total', 'Payment provider callbacks by resulting order status', ['status']
)


def _route_label():
    """Route template of the current request; 'unmatched' for 404s."""
    rule = request.url_rule
    return rule.rule if rule is not None else 'unmatched'


def setup_metrics_instrumentation(app):
    """Time every request except the scrape itself."""

    @app.before_request
    def start_request_timer():
        if request.path == '/metrics':
            return
        g._metrics_start = time.time()
        http_requests_in_flight.inc()

    @app.after_request
    def record_request(response):
        start = g.get('_metrics_start')
        if start is not None:
            route = _route_label()
            http_request_duration_seconds.labels(method=request.method, route=route).observe(time.time() - start)
            http_requests_total.labels(
                method=request.method, route=route, http_status=response.status_code
            ).inc()
        return response

    @app.teardown_request
    def release_in_flight(exception=None):
        # Runs even when the view raised
        if g.pop('_metrics_start', None) is not None:
            http_requests_in_flight.dec()


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus text exposition."""
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
