from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..game.errors import InvalidPayload
from ..game.service import GameService

bp = Blueprint("game", __name__)

# Routing keys the HTTP client never needs back.
_INTERNAL = ("roomCode",)


def _game() -> GameService:
    return current_app.extensions["oddword"]


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _player_id(data: dict) -> str:
    pid = str(data.get("playerId", "")).strip()
    if not pid:
        raise InvalidPayload("playerId is required")
    return pid


def _ok(payload: dict):
    out = {k: v for k, v in payload.items() if k not in _INTERNAL}
    out["success"] = True
    return jsonify(out)


@bp.post("/start-game")
def start_game():
    data = _body()
    pid = _player_id(data)
    started = _game().start_game(pid, data.get("settings"))
    return _ok(started["views"][pid])


@bp.post("/give-hint")
def give_hint():
    data = _body()
    return _ok(_game().give_hint(_player_id(data), data.get("hint")))


@bp.post("/decision-continue-hints")
def decision_continue_hints():
    return _ok(_game().decision_continue_hints(_player_id(_body())))


@bp.post("/decision-start-voting")
def decision_start_voting():
    return _ok(_game().decision_start_voting(_player_id(_body())))


@bp.post("/cast-vote")
def cast_vote():
    data = _body()
    target = str(data.get("votedPlayerId", "")).strip()
    if not target:
        raise InvalidPayload("votedPlayerId is required")
    return _ok(_game().cast_vote(_player_id(data), target))


@bp.post("/imposter-guess")
def imposter_guess():
    data = _body()
    return _ok(_game().imposter_guess(_player_id(data), data.get("guess")))


@bp.post("/kick-player")
def kick_player():
    data = _body()
    target = str(data.get("targetPlayerId", "")).strip()
    if not target:
        raise InvalidPayload("targetPlayerId is required")
    kicked = _game().kick_player(_player_id(data), target)
    return _ok({"players": kicked["players"], "kickedPlayerId": kicked["kickedPlayerId"]})


@bp.post("/transfer-host")
def transfer_host():
    data = _body()
    new_host = str(data.get("newHostId", "")).strip()
    if not new_host:
        raise InvalidPayload("newHostId is required")
    return _ok(_game().transfer_host(_player_id(data), new_host))


@bp.post("/update-game-settings")
def update_game_settings():
    data = _body()
    return _ok(_game().update_settings(_player_id(data), data.get("settings")))


@bp.post("/set-player-order")
def set_player_order():
    data = _body()
    return _ok(_game().set_player_order(_player_id(data), data.get("customOrder")))


@bp.post("/play-again")
def play_again():
    return _ok(_game().play_again(_player_id(_body())))
