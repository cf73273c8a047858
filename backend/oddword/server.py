from __future__ import annotations

import logging
import sys
from typing import Any

from flask import Flask, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .game.errors import GameError
from .game.service import GameService
from .logging_setup import configure_logging
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp
from .routes.game import bp as game_bp
from .realtime import events
from .realtime.handlers import register_socketio_handlers


logger = logging.getLogger("oddword.server")


def _pick_async_mode(configured: str) -> str:
    if configured:
        return configured
    # Default choice:
    # - Windows: threading (eventlet has known compatibility issues on newer Python)
    # - Python >= 3.13: threading (safer default)
    # - Otherwise: eventlet
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def _start_idle_sweeper(socketio: SocketIO, game: GameService, interval_sec: int) -> None:
    def _runner() -> None:
        while True:
            socketio.sleep(interval_sec)
            try:
                closed = game.sweep_idle_rooms()
            except Exception:
                logger.exception("idle room sweep failed")
                continue
            for code in closed:
                socketio.emit(events.ROOM_CLOSED, {"roomCode": code, "reason": "idle"}, to=code)
                socketio.close_room(code)

    socketio.start_background_task(_runner)


def create_app(
    overrides: dict[str, Any] | None = None,
    game: GameService | None = None,
) -> tuple[Flask, SocketIO]:
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=_pick_async_mode(app.config.get("SOCKETIO_ASYNC_MODE", "")),
    )

    game = game or GameService.from_config(app.config)
    app.extensions["oddword"] = game

    @app.errorhandler(GameError)
    def handle_game_error(err: GameError):
        return jsonify(err.to_dict()), err.status

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")
    app.register_blueprint(game_bp, url_prefix="/api")

    register_socketio_handlers(socketio, game)

    interval = int(app.config.get("ROOM_SWEEP_INTERVAL_SEC", 0))
    if interval > 0:
        _start_idle_sweeper(socketio, game, interval)

    logger.info("oddword app ready (async_mode=%s)", socketio.async_mode)
    return app, socketio
