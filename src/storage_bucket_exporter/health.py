"""WSGI application serving metrics and health check endpoints."""

from __future__ import annotations

from typing import Any, Callable

from werkzeug.wrappers import Request, Response

from .metrics import MetricsRegistry

WSGIApp = Callable[[dict[str, Any], Any], Any]


def health_check_app(environ: dict[str, Any], start_response: Any) -> Any:
    """WSGI application for the liveness endpoint."""
    response = Response('{"status":"ok"}', mimetype="application/json", status=200)
    return response(environ, start_response)


def create_metrics_wsgi_app(
    registry: MetricsRegistry,
    is_ready: Callable[[], bool] = lambda: True,
) -> WSGIApp:
    """Create a WSGI app that serves /metrics, /healthz and /readyz.

    Args:
        registry: Registry rendered on every scrape
        is_ready: Returns True once the exporter has completed a poll round

    Returns:
        Combined WSGI application
    """

    def metrics_app(environ: dict[str, Any], start_response: Any) -> Any:
        request = Request(environ)
        path = request.path

        if path == "/metrics":
            if request.method not in ("GET", "HEAD"):
                response = Response(
                    '{"error":"method not allowed"}',
                    mimetype="application/json",
                    status=405,
                    headers={"Allow": "GET, HEAD"},
                )
            else:
                response = Response(registry.render(), status=200)
                response.headers["Content-Type"] = registry.content_type
        elif path == "/healthz":
            return health_check_app(environ, start_response)
        elif path == "/readyz":
            if is_ready():
                response = Response('{"status":"ready"}', mimetype="application/json", status=200)
            else:
                response = Response('{"status":"starting"}', mimetype="application/json", status=503)
        else:
            response = Response('{"error":"not found"}', mimetype="application/json", status=404)

        return response(environ, start_response)

    return metrics_app
