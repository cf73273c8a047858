from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..game.errors import InvalidPayload
from ..game.service import GameService

bp = Blueprint("rooms", __name__)


def _game() -> GameService:
    return current_app.extensions["oddword"]


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@bp.post("/create-room")
def create_room():
    return jsonify(_game().create_room())


@bp.post("/join-room")
def join_room():
    data = _body()
    room_code = str(data.get("roomCode", "")).strip()
    if not room_code:
        raise InvalidPayload("roomCode is required")

    joined = _game().join_room(room_code, data.get("playerName"))
    return jsonify({"success": True, "playerId": joined["playerId"], "room": joined["room"]})


@bp.post("/leave-room")
def leave_room():
    left = _game().leave_room(str(_body().get("playerId", "")))
    return jsonify({"success": True, "players": left["players"], "roomDeleted": left["roomDeleted"]})


@bp.get("/room/<code>/status")
def room_status(code: str):
    viewer = request.args.get("playerId") or None
    return jsonify(_game().get_room_status(code, viewer))


# Same snapshot; kept for polling clients.
@bp.get("/room/<code>/poll")
def room_poll(code: str):
    viewer = request.args.get("playerId") or None
    return jsonify(_game().get_room_status(code, viewer))
