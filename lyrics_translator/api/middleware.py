"""
API Middleware
==============
Request parsing and logging helpers for the control API.
"""
import time
from functools import wraps
from typing import Callable

from flask import g, jsonify, request

from lyrics_translator.utils.logging import get_logger


def json_body(f: Callable) -> Callable:
    """Reject requests whose body is not a JSON object; passes the object on."""
    @wraps(f)
    def decorated(*args, **kwargs):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400
        return f(data, *args, **kwargs)

    return decorated


def start_timer():
    g.request_started = time.perf_counter()


def log_request(response):
    """Log method, path, status and duration of each API request."""
    started = getattr(g, 'request_started', None)
    if started is not None and request.path.startswith('/api/'):
        elapsed_ms = (time.perf_counter() - started) * 1000
        get_logger().api_logger.debug(
            f"{request.method} {request.path} -> {response.status_code} ({elapsed_ms:.1f}ms)"
        )
    return response
