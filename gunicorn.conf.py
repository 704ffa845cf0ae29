"""Gunicorn configuration.

TLS material comes from the same variables the application validates
(SSL_SERT, SSL_KEY). Each worker owns its own connection pool, which is
disposed when the worker exits so PostgreSQL sessions close cleanly.
"""
import os

wsgi_app = "idm.wsgi:app"
bind = os.environ.get("BIND", "0.0.0.0:8080")

worker_class = "gthread"
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
threads = int(os.environ.get("GUNICORN_THREADS", "8"))

# Requests and shutdown share the 30 second budget
timeout = int(os.environ.get("REQUEST_TIMEOUT_SECONDS", "30"))
graceful_timeout = 30

certfile = os.environ.get("SSL_SERT") or None
keyfile = os.environ.get("SSL_KEY") or None

accesslog = None  # the application writes its own access log


def post_fork(server, worker):
    """Called just after a worker has been forked."""
    worker.log.info(f"Worker {worker.pid} started ({threads} threads)")


def worker_exit(server, worker):
    """Release the worker's database pool before it terminates."""
    app = getattr(worker, "wsgi", None)
    database = app.config.get("DATABASE") if app is not None and hasattr(app, "config") else None
    if database is not None:
        database.dispose()
    worker.log.info(f"Worker {worker.pid} stopped")
