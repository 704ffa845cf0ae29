"""WSGI entrypoint.

Gunicorn loads ``idm.wsgi:app``. Running this module directly starts the
Flask development server with the configured TLS certificate and key.
"""
from idm.flask_app import create_app


# ─────────────────────────────────────────────────────────────────────────────
# Application Instance (for Gunicorn)
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()


if __name__ == "__main__":
    cfg = app.config["APP_CONFIG"]
    app.run(host="0.0.0.0", port=8080, ssl_context=(cfg.ssl_cert, cfg.ssl_key))
