from __future__ import annotations

import logging
import random
from contextlib import contextmanager
from typing import Any, Iterator, Mapping

from . import membership, rules
from .errors import RoomNotFound
from .models import Room, RoomSettings
from .registry import RoomRegistry
from .sessions import SessionBinding


logger = logging.getLogger("oddword.service")


class GameService:
    """Entry point for both transports.

    Actors are identified by the opaque player id issued at join. Every
    operation runs under the target room's lock and returns plain dicts that
    are safe to serialize; nothing returned aliases live room state.
    """

    def __init__(
        self,
        *,
        registry: RoomRegistry | None = None,
        sessions: SessionBinding | None = None,
        max_players: int = membership.MAX_PLAYERS,
        min_players: int = rules.MIN_PLAYERS,
        hint_timer_ms: int = 30000,
        voting_timer_ms: int = rules.VOTING_TIMER_MS,
        guess_timer_ms: int = rules.IMPOSTER_GUESS_TIMER_MS,
        room_idle_ttl_sec: int = 3600,
        rng: random.Random | None = None,
    ) -> None:
        self.registry = registry or RoomRegistry()
        self.sessions = sessions or SessionBinding()
        self.max_players = max_players
        self.min_players = min_players
        self.hint_timer_ms = hint_timer_ms
        self.voting_timer_ms = voting_timer_ms
        self.guess_timer_ms = guess_timer_ms
        self.room_idle_ttl_sec = room_idle_ttl_sec
        self.rng = rng or random.Random()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "GameService":
        return cls(
            max_players=int(config.get("MAX_PLAYERS", membership.MAX_PLAYERS)),
            min_players=int(config.get("MIN_PLAYERS", rules.MIN_PLAYERS)),
            hint_timer_ms=int(config.get("HINT_TIMER_MS", 30000)),
            voting_timer_ms=int(config.get("VOTING_TIMER_MS", rules.VOTING_TIMER_MS)),
            guess_timer_ms=int(config.get("IMPOSTER_GUESS_TIMER_MS", rules.IMPOSTER_GUESS_TIMER_MS)),
            room_idle_ttl_sec=int(config.get("ROOM_IDLE_TTL_SEC", 3600)),
        )

    # -- plumbing ---------------------------------------------------------

    @property
    def _round_opts(self) -> dict:
        return {"min_players": self.min_players, "guess_timer_ms": self.guess_timer_ms}

    @contextmanager
    def _locked_room(self, code: str) -> Iterator[Room]:
        room = self.registry.get_room(code)
        with room.lock:
            # Deleted between lookup and lock.
            if room.code not in self.registry:
                raise RoomNotFound()
            yield room

    @contextmanager
    def _acting(self, player_id: str) -> Iterator[Room]:
        code = self.sessions.resolve(player_id)
        try:
            with self._locked_room(code) as room:
                rules.require_member(room, player_id)
                yield room
        except RoomNotFound:
            self.sessions.unbind(player_id)
            raise

    def room_code_for(self, player_id: str) -> str:
        return self.sessions.resolve(player_id)

    # -- snapshots --------------------------------------------------------

    def snapshot(self, room: Room, viewer_id: str | None = None) -> dict:
        """Immutable view of a room; secret words stay hidden until the end."""
        with room.lock:
            payload: dict[str, Any] = {
                "code": room.code,
                "gameType": room.game_type,
                "playerCount": len(room.players),
                "gameState": room.state,
                "players": [p.to_dict() for p in room.players],
                "settings": room.settings.to_dict(),
                "customOrder": list(room.custom_order) if room.custom_order is not None else None,
                "lastActivity": room.last_activity_ms,
                "gameData": None,
            }

            rnd = room.round
            if rnd is None:
                return payload

            game: dict[str, Any] = {
                "phase": rnd.phase,
                "roundNumber": rnd.round_number,
                "turnOrder": rules.turn_order_names(room),
                "turnOrderIds": list(rnd.turn_order),
                "currentTurnIndex": rnd.current_turn_index,
                "currentPlayerId": rnd.current_player_id(),
                "hints": [h.to_dict() for h in rnd.hints],
                "timer": rnd.timer_ms,
                "phaseStartedAtMs": rnd.phase_started_at_ms,
                "votes": dict(rnd.votes),
                "votesCount": len(rnd.votes),
            }
            if rnd.result is not None:
                game["gameResult"] = rnd.result.to_dict()
            if viewer_id and room.find_player(viewer_id) is not None:
                view = rules.player_view(room, viewer_id)
                game["word"] = view["word"]
                game["isOddOneOut"] = view["isOddOneOut"]
                game["knowsRole"] = view["knowsRole"]

            payload["gameData"] = game
            return payload

    def players_payload(self, room: Room) -> list[dict]:
        return [p.to_dict() for p in room.players]

    # -- registry-level operations -----------------------------------------

    def create_room(self, game_type: str = "oddword") -> dict:
        room = self.registry.create_room(
            game_type=game_type,
            settings=RoomSettings(timer_duration_ms=self.hint_timer_ms),
        )
        return {"roomCode": room.code}

    def join_room(self, room_code: str, player_name: Any) -> dict:
        with self._locked_room(room_code) as room:
            player = membership.add_player(room, player_name, max_players=self.max_players)
            self.sessions.bind(player.id, room.code)
            logger.debug("room %s: %s joined as %s", room.code, player.name, player.id)
            return {
                "playerId": player.id,
                "player": player.to_dict(),
                "roomCode": room.code,
                "room": self.snapshot(room, player.id),
            }

    def get_room_status(self, room_code: str, viewer_id: str | None = None) -> dict:
        room = self.registry.get_room(room_code)
        return self.snapshot(room, viewer_id)

    def leave_room(self, player_id: str) -> dict:
        with self._acting(player_id) as room:
            return self._removed(room, *membership.remove_player(room, player_id, **self._round_opts))

    def kick_player(self, player_id: str, target_player_id: str) -> dict:
        with self._acting(player_id) as room:
            removed, event = membership.kick(room, player_id, target_player_id, **self._round_opts)
            payload = self._removed(room, removed, event)
            payload["kickedPlayerId"] = removed.id
            logger.info("room %s: %s kicked by host", room.code, removed.name)
            return payload

    def _removed(self, room: Room, removed, event: dict | None) -> dict:
        self.sessions.unbind(removed.id)
        deleted = False
        if not room.players:
            # Still under the room lock, so no join can slip in first.
            deleted = self.registry.delete_room(room.code)
            self.sessions.unbind_room(room.code)
        return {
            "roomCode": room.code,
            "playerId": removed.id,
            "playerName": removed.name,
            "players": self.players_payload(room),
            "roomDeleted": deleted,
            "roundEvent": event,
        }

    def sweep_idle_rooms(self, max_idle_ms: int | None = None, now: int | None = None) -> list[str]:
        limit = max_idle_ms if max_idle_ms is not None else self.room_idle_ttl_sec * 1000
        codes = self.registry.sweep_idle_rooms(limit, now=now)
        for code in codes:
            self.sessions.unbind_room(code)
        return codes

    def stats(self) -> dict:
        return {"rooms": len(self.registry), "players": self.registry.player_count()}

    # -- host authority -----------------------------------------------------

    def transfer_host(self, player_id: str, new_host_id: str) -> dict:
        with self._acting(player_id) as room:
            membership.transfer_host(room, player_id, new_host_id)
            return {"roomCode": room.code, "players": self.players_payload(room)}

    def update_settings(self, player_id: str, settings: dict | None) -> dict:
        with self._acting(player_id) as room:
            membership.update_settings(room, player_id, settings)
            return {"roomCode": room.code, "settings": room.settings.to_dict()}

    def set_player_order(self, player_id: str, custom_order: Any) -> dict:
        with self._acting(player_id) as room:
            membership.set_player_order(room, player_id, custom_order)
            return {
                "roomCode": room.code,
                "players": self.players_payload(room),
                "customOrder": list(room.custom_order or []),
            }

    # -- game flow ----------------------------------------------------------

    def start_game(self, player_id: str, settings: dict | None = None) -> dict:
        """Start a round; returns each player's private payload keyed by id."""
        with self._acting(player_id) as room:
            rules.start_game(room, player_id, settings, rng=self.rng, min_players=self.min_players)
            room.touch()
            return {
                "roomCode": room.code,
                "views": {p.id: rules.player_view(room, p.id) for p in room.players},
            }

    def give_hint(self, player_id: str, hint: Any) -> dict:
        with self._acting(player_id) as room:
            entry = rules.give_hint(room, player_id, hint)
            room.touch()
            rnd = room.round
            return {
                "roomCode": room.code,
                **entry.to_dict(),
                "phase": rnd.phase,
                "currentTurnIndex": rnd.current_turn_index,
                "nextPlayerId": rnd.current_player_id(),
                "roundNumber": rnd.round_number,
            }

    def decision_continue_hints(self, player_id: str) -> dict:
        with self._acting(player_id) as room:
            rnd = rules.continue_hints(room, player_id)
            room.touch()
            return {
                "roomCode": room.code,
                "phase": rnd.phase,
                "currentTurnIndex": rnd.current_turn_index,
                "currentPlayerId": rnd.current_player_id(),
                "timer": rnd.timer_ms,
                "roundNumber": rnd.round_number,
            }

    def decision_start_voting(self, player_id: str) -> dict:
        with self._acting(player_id) as room:
            rnd = rules.start_voting(room, player_id, timer_ms=self.voting_timer_ms)
            room.touch()
            return {"roomCode": room.code, "phase": rnd.phase, "timer": rnd.timer_ms}

    def cast_vote(self, player_id: str, voted_player_id: str) -> dict:
        with self._acting(player_id) as room:
            resolution = rules.cast_vote(room, player_id, voted_player_id, guess_timer_ms=self.guess_timer_ms)
            room.touch()
            payload: dict[str, Any] = {
                "roomCode": room.code,
                "votes": dict(room.round.votes),
                "complete": resolution is not None,
                "resolution": resolution,
            }
            if resolution and resolution["imposterCaught"]:
                payload["imposterId"] = room.round.odd_one_out_id
            return payload

    def imposter_guess(self, player_id: str, guess: Any) -> dict:
        with self._acting(player_id) as room:
            result = rules.imposter_guess(room, player_id, guess)
            room.touch()
            return {"roomCode": room.code, **result.to_dict()}

    def play_again(self, player_id: str) -> dict:
        with self._acting(player_id) as room:
            rules.restart(room, player_id)
            room.touch()
            return {"roomCode": room.code, "gameState": room.state}
