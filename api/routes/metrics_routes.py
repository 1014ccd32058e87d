"""
Prometheus Metrics API Routes.

Provides the /metrics endpoint for Prometheus scraping: request totals by
method, endpoint and status, request duration sum/count, and requests in
flight.
"""

import logging
import threading
import time
from datetime import datetime, timezone

from flask import Blueprint, request, g

logger = logging.getLogger(__name__)

metrics_bp = Blueprint('metrics', __name__)

_lock = threading.Lock()

# Simple metrics storage
_metrics = {
    'requests_total': {},  # (method, endpoint, status) -> count
    'duration_sum': 0.0,
    'duration_count': 0,
    'active_requests': 0,
    'errors_total': 0,
    'start_time': datetime.now(timezone.utc).isoformat(),
}


def get_active_requests() -> int:
    with _lock:
        return _metrics['active_requests']


def reset_metrics():
    """Zero every counter (used by tests)."""
    with _lock:
        _metrics['requests_total'].clear()
        _metrics['duration_sum'] = 0.0
        _metrics['duration_count'] = 0
        _metrics['active_requests'] = 0
        _metrics['errors_total'] = 0


@metrics_bp.before_app_request
def before_request_metrics():
    """Track request start time for latency calculation."""
    g.metrics_start_time = time.time()
    with _lock:
        _metrics['active_requests'] += 1


@metrics_bp.after_app_request
def after_request_metrics(response):
    """Record request metrics after each request."""
    with _lock:
        _metrics['active_requests'] = max(0, _metrics['active_requests'] - 1)

        if request.path == '/metrics':
            return response

        key = (request.method, request.endpoint or 'unknown', str(response.status_code))
        _metrics['requests_total'][key] = _metrics['requests_total'].get(key, 0) + 1

        if hasattr(g, 'metrics_start_time'):
            _metrics['duration_sum'] += time.time() - g.metrics_start_time
            _metrics['duration_count'] += 1

        if response.status_code >= 400:
            _metrics['errors_total'] += 1

    return response


@metrics_bp.route('/metrics')
def prometheus_metrics():
    """Prometheus-compatible metrics endpoint."""
    with _lock:
        requests_total = dict(_metrics['requests_total'])
        duration_sum = _metrics['duration_sum']
        duration_count = _metrics['duration_count']
        # This scrape itself is in flight
        active = max(0, _metrics['active_requests'] - 1)
        errors_total = _metrics['errors_total']

    lines = []

    lines.append('# HELP http_requests_total Total number of HTTP requests')
    lines.append('# TYPE http_requests_total counter')
    for (method, endpoint, status), count in sorted(requests_total.items()):
        lines.append(
            f'http_requests_total{{method="{method}",endpoint="{endpoint}",status="{status}"}} {count}'
        )

    lines.append('# HELP http_request_duration_seconds Duration of HTTP requests')
    lines.append('# TYPE http_request_duration_seconds summary')
    lines.append(f'http_request_duration_seconds_sum {duration_sum:.6f}')
    lines.append(f'http_request_duration_seconds_count {duration_count}')

    lines.append('# HELP http_active_connections Number of requests currently being served')
    lines.append('# TYPE http_active_connections gauge')
    lines.append(f'http_active_connections {active}')

    lines.append('# HELP http_errors_total Total number of error responses (4xx, 5xx)')
    lines.append('# TYPE http_errors_total counter')
    lines.append(f'http_errors_total {errors_total}')

    lines.append('# HELP tokenauth_start_time_seconds Server start time as Unix timestamp')
    lines.append('# TYPE tokenauth_start_time_seconds gauge')
    lines.append(f'tokenauth_start_time_seconds {datetime.fromisoformat(_metrics["start_time"]).timestamp():.0f}')

    response_text = '\n'.join(lines) + '\n'
    return response_text, 200, {'Content-Type': 'text/plain; charset=utf-8'}
