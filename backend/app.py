import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

ENV_FILE = Path(__file__).resolve().parents[1] / ".env"


def wants_eventlet() -> bool:
    mode = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip().lower()
    if mode not in ("", "eventlet"):
        return False
    return not sys.platform.startswith("win") and sys.version_info < (3, 13)


def bootstrap():
    """Load .env, monkey patch for eventlet when it will be used, build the app."""
    load_dotenv(ENV_FILE)

    if wants_eventlet():
        import eventlet

        eventlet.monkey_patch()

    try:
        from backend.oddword.server import create_app
    except ImportError:  # pragma: no cover
        from oddword.server import create_app

    return create_app()


def main() -> None:
    app, socketio = bootstrap()

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "3001"))
    debug = os.environ.get("FLASK_DEBUG", "0") == "1"

    logging.getLogger("oddword.app").info("listening on %s:%s", host, port)
    socketio.run(
        app,
        host=host,
        port=port,
        debug=debug,
        allow_unsafe_werkzeug=os.environ.get("ALLOW_UNSAFE_WERKZEUG", "1") == "1",
        use_reloader=False,
    )


if __name__ == "__main__":
    main()
