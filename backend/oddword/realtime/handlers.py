from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import request
from flask_socketio import SocketIO, join_room, leave_room

from . import events as ev
from ..game.errors import GameError, InvalidPayload, RoomNotFound
from ..game.service import GameService


logger = logging.getLogger("oddword.realtime")


def register_socketio_handlers(socketio: SocketIO, game: GameService) -> None:
    def _emit_to_player(event: str, payload: dict, player_id: str) -> None:
        sid = game.sessions.sid_for_player(player_id)
        if sid:
            socketio.emit(event, payload, to=sid)

    def _broadcast_room_state(room_code: str) -> None:
        try:
            room = game.registry.get_room(room_code)
        except RoomNotFound:
            return
        # Per viewer: each member sees their own word.
        for pid in game.sessions.players_in(room.code):
            _emit_to_player(ev.ROOM_STATE, game.snapshot(room, pid), pid)

    def _broadcast_resolution(room_code: str, resolution: dict, imposter_id: str | None) -> None:
        if resolution["imposterCaught"]:
            socketio.emit(ev.GAME_IMPOSTER_CAUGHT, {"roomCode": room_code, **resolution}, to=room_code)
            if imposter_id:
                _emit_to_player(
                    ev.GAME_IMPOSTER_PROMPT,
                    {"roomCode": room_code, "timer": resolution["timer"]},
                    imposter_id,
                )
        else:
            socketio.emit(ev.GAME_ENDED, {"roomCode": room_code, **resolution["gameResult"]}, to=room_code)

    def _broadcast_round_event(room_code: str, event: dict | None) -> None:
        if not event:
            return
        kind = event["type"]
        if kind == "aborted":
            socketio.emit(ev.GAME_ABORTED, {"roomCode": room_code, "reason": event["reason"]}, to=room_code)
        elif kind == "ended":
            socketio.emit(ev.GAME_ENDED, {"roomCode": room_code, **event["gameResult"]}, to=room_code)
        elif kind == "decision":
            socketio.emit(ev.GAME_DECISION, {"roomCode": room_code, "phase": "decision"}, to=room_code)
        elif kind == "resolution":
            imposter_id = None
            if event["imposterCaught"]:
                imposter_id = event["votedOutId"]
            _broadcast_resolution(room_code, event, imposter_id)

    def _current_player() -> str:
        pid = game.sessions.player_for_sid(request.sid)
        if not pid:
            raise RoomNotFound("Not in a room")
        return pid

    def _guarded(fn: Callable[[dict], dict | None]) -> Callable[[Any], dict]:
        """Report GameError to the sender only and turn it into a failed ack."""

        @functools.wraps(fn)
        def wrapper(data=None):
            payload = data if isinstance(data, dict) else {}
            try:
                result = fn(payload) or {}
            except GameError as err:
                logger.warning("%s rejected for %s: %s", fn.__name__, request.sid, err.code)
                socketio.emit(ev.ROOM_ERROR, err.to_dict(), to=request.sid)
                return {"ok": False, "error": err.code, "message": err.message}
            return {"ok": True, **result}

        return wrapper

    def _after_removal(removed: dict) -> None:
        code = removed["roomCode"]
        if removed["roomDeleted"]:
            socketio.close_room(code)
            return
        socketio.emit(
            ev.ROOM_PLAYER_LEFT,
            {"roomCode": code, "playerId": removed["playerId"], "players": removed["players"]},
            to=code,
        )
        _broadcast_round_event(code, removed["roundEvent"])
        _broadcast_room_state(code)

    def _join(room_code: str, name: Any) -> dict:
        if game.sessions.player_for_sid(request.sid):
            raise InvalidPayload("Already in a room")
        joined = game.join_room(room_code, name)
        game.sessions.attach(request.sid, joined["playerId"])
        join_room(joined["roomCode"])
        socketio.emit(ev.ROOM_JOINED, {"playerId": joined["playerId"], "room": joined["room"]}, to=request.sid)
        _broadcast_room_state(joined["roomCode"])
        return {"playerId": joined["playerId"], "roomCode": joined["roomCode"]}

    @socketio.on(ev.ROOM_CREATE)
    @_guarded
    def room_create(data):
        created = game.create_room()
        name = data.get("name")
        if name is None:
            return created
        return _join(created["roomCode"], name)

    @socketio.on(ev.ROOM_JOIN)
    @_guarded
    def room_join(data):
        room_code = str(data.get("roomCode", "")).strip()
        if not room_code:
            raise InvalidPayload("roomCode is required")
        return _join(room_code, data.get("name"))

    @socketio.on(ev.ROOM_LEAVE)
    @_guarded
    def room_leave(data):
        pid = _current_player()
        removed = game.leave_room(pid)
        leave_room(removed["roomCode"])
        game.sessions.detach(request.sid)
        _after_removal(removed)
        return {}

    @socketio.on(ev.ROOM_KICK)
    @_guarded
    def room_kick(data):
        target = str(data.get("targetPlayerId", "")).strip()
        if not target:
            raise InvalidPayload("targetPlayerId is required")
        # Look the sid up first; removal drops the binding.
        target_sid = game.sessions.sid_for_player(target)
        removed = game.kick_player(_current_player(), target)
        if target_sid:
            socketio.emit(ev.ROOM_KICKED, {"roomCode": removed["roomCode"]}, to=target_sid)
            leave_room(removed["roomCode"], sid=target_sid)
            game.sessions.detach(target_sid)
        _after_removal(removed)
        return {"players": removed["players"]}

    @socketio.on(ev.ROOM_TRANSFER_HOST)
    @_guarded
    def room_transfer_host(data):
        new_host = str(data.get("newHostId", "")).strip()
        if not new_host:
            raise InvalidPayload("newHostId is required")
        result = game.transfer_host(_current_player(), new_host)
        _broadcast_room_state(result["roomCode"])
        return {"players": result["players"]}

    @socketio.on(ev.ROOM_UPDATE_SETTINGS)
    @_guarded
    def room_update_settings(data):
        result = game.update_settings(_current_player(), data.get("settings"))
        _broadcast_room_state(result["roomCode"])
        return {"settings": result["settings"]}

    @socketio.on(ev.ROOM_SET_PLAYER_ORDER)
    @_guarded
    def room_set_player_order(data):
        result = game.set_player_order(_current_player(), data.get("customOrder"))
        _broadcast_room_state(result["roomCode"])
        return {"customOrder": result["customOrder"]}

    @socketio.on(ev.GAME_START)
    @_guarded
    def game_start(data):
        started = game.start_game(_current_player(), data.get("settings"))
        for pid, view in started["views"].items():
            _emit_to_player(ev.GAME_STARTED, {"roomCode": started["roomCode"], **view}, pid)
        _broadcast_room_state(started["roomCode"])
        return {}

    @socketio.on(ev.GAME_GIVE_HINT)
    @_guarded
    def game_give_hint(data):
        hint = game.give_hint(_current_player(), data.get("hint"))
        code = hint["roomCode"]
        socketio.emit(ev.GAME_HINT, hint, to=code)
        if hint["phase"] == "decision":
            socketio.emit(ev.GAME_DECISION, {"roomCode": code, "phase": "decision"}, to=code)
        else:
            socketio.emit(
                ev.GAME_TURN,
                {"roomCode": code, "currentTurnIndex": hint["currentTurnIndex"], "currentPlayerId": hint["nextPlayerId"]},
                to=code,
            )
        _broadcast_room_state(code)
        return {}

    @socketio.on(ev.GAME_CONTINUE_HINTS)
    @_guarded
    def game_continue_hints(data):
        result = game.decision_continue_hints(_current_player())
        socketio.emit(ev.GAME_TURN, result, to=result["roomCode"])
        _broadcast_room_state(result["roomCode"])
        return {}

    @socketio.on(ev.GAME_START_VOTING)
    @_guarded
    def game_start_voting(data):
        result = game.decision_start_voting(_current_player())
        socketio.emit(ev.GAME_VOTING_STARTED, result, to=result["roomCode"])
        _broadcast_room_state(result["roomCode"])
        return {}

    @socketio.on(ev.GAME_CAST_VOTE)
    @_guarded
    def game_cast_vote(data):
        target = str(data.get("votedPlayerId", "")).strip()
        if not target:
            raise InvalidPayload("votedPlayerId is required")
        result = game.cast_vote(_current_player(), target)
        code = result["roomCode"]
        socketio.emit(ev.GAME_VOTE_CAST, {"roomCode": code, "votes": result["votes"]}, to=code)
        if result["resolution"]:
            _broadcast_resolution(code, result["resolution"], result.get("imposterId"))
        _broadcast_room_state(code)
        return {}

    @socketio.on(ev.GAME_GUESS)
    @_guarded
    def game_imposter_guess(data):
        result = game.imposter_guess(_current_player(), data.get("guess"))
        socketio.emit(ev.GAME_ENDED, result, to=result["roomCode"])
        _broadcast_room_state(result["roomCode"])
        return {}

    @socketio.on(ev.GAME_PLAY_AGAIN)
    @_guarded
    def game_play_again(data):
        result = game.play_again(_current_player())
        _broadcast_room_state(result["roomCode"])
        return {}

    @socketio.on("disconnect")
    def on_disconnect(*args):
        pid = game.sessions.player_for_sid(request.sid)
        if not pid:
            return
        try:
            removed = game.leave_room(pid)
        except GameError:
            game.sessions.detach(request.sid)
            return
        game.sessions.detach(request.sid)
        logger.debug("room %s: %s disconnected", removed["roomCode"], removed["playerName"])
        _after_removal(removed)
