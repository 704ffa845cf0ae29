"""Application-wide request hooks: request id propagation and access logging."""
from __future__ import annotations
import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger("idm.access")

REQUEST_ID_HEADER = "X-Request-ID"


def register_middleware(app: Flask) -> None:
    """Register before/after request hooks on the app."""

    @app.before_request
    def assign_request_id() -> None:
        """Honour an incoming X-Request-ID or generate one."""
        g.request_id = request.headers.get(REQUEST_ID_HEADER, "").strip() or str(uuid.uuid4())
        g.request_started = time.perf_counter()
        logger.info(
            f"request started | method={request.method} | path={request.path} | "
            f"ip={request.remote_addr} | user_agent={request.user_agent.string!r}"
        )

    @app.after_request
    def echo_request_id(response):
        """Echo the request id and log completion."""
        request_id = g.get("request_id")
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id

        started = g.get("request_started")
        duration_ms = (time.perf_counter() - started) * 1000 if started is not None else 0.0
        logger.info(
            f"request completed | method={request.method} | path={request.path} | "
            f"ip={request.remote_addr} | status={response.status_code} | "
            f"duration_ms={duration_ms:.2f}"
        )
        return response
