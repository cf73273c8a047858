"""WSGI entry point, e.g. ``gunicorn -k eventlet -w 1 wsgi:app``.

Rooms live in process memory, so run a single worker.
"""

try:
    from backend.app import bootstrap
except ImportError:  # pragma: no cover
    from app import bootstrap

app, socketio = bootstrap()
