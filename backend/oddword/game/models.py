from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from threading import RLock
from typing import Any, Literal

from .errors import InvalidSettings


RoomState = Literal["waiting", "playing", "finished"]
Phase = Literal["hint-giving", "decision", "voting", "imposter-guess", "finished"]
PlayerOrder = Literal["random", "host-set"]

PLAYER_ORDERS = ("random", "host-set")

# Wire name -> field name
_SETTINGS_KEYS = {
    "timerDuration": "timer_duration_ms",
    "timerDurationMs": "timer_duration_ms",
    "timer_duration_ms": "timer_duration_ms",
    "imposterKnowsRole": "imposter_knows_role",
    "imposter_knows_role": "imposter_knows_role",
    "playerOrder": "player_order",
    "player_order": "player_order",
}


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RoomSettings:
    timer_duration_ms: int = 30000
    imposter_knows_role: bool = False
    player_order: PlayerOrder = "random"

    def merged(self, patch: dict[str, Any] | None) -> "RoomSettings":
        """Return a copy with ``patch`` applied; raises InvalidSettings."""
        if not patch:
            return self
        if not isinstance(patch, dict):
            raise InvalidSettings("Settings must be an object")

        changes: dict[str, Any] = {}
        for key, value in patch.items():
            name = _SETTINGS_KEYS.get(key)
            if name is None:
                raise InvalidSettings(f"Unknown setting: {key}")
            changes[name] = value

        if "timer_duration_ms" in changes:
            v = changes["timer_duration_ms"]
            # bool is an int subclass
            if isinstance(v, bool) or not isinstance(v, int) or v <= 0:
                raise InvalidSettings("timerDuration must be a positive integer")
        if "imposter_knows_role" in changes and not isinstance(changes["imposter_knows_role"], bool):
            raise InvalidSettings("imposterKnowsRole must be a boolean")
        if "player_order" in changes and changes["player_order"] not in PLAYER_ORDERS:
            raise InvalidSettings("playerOrder must be 'random' or 'host-set'")

        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "timerDuration": self.timer_duration_ms,
            "imposterKnowsRole": self.imposter_knows_role,
            "playerOrder": self.player_order,
        }


@dataclass
class Player:
    id: str
    name: str
    is_host: bool = False
    joined_at_ms: int = 0

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "isHost": self.is_host}


@dataclass(frozen=True)
class Hint:
    player_id: str
    player_name: str
    hint: str
    player_index: int
    timestamp_ms: int

    def to_dict(self) -> dict:
        return {
            "playerId": self.player_id,
            "playerName": self.player_name,
            "hint": self.hint,
            "playerIndex": self.player_index,
            "timestamp": self.timestamp_ms,
        }


@dataclass(frozen=True)
class GameResult:
    winner: Literal["imposter", "majority"]
    reason: str
    imposter_name: str
    correct_word: str
    odd_word: str
    all_hints: tuple[Hint, ...] = ()
    imposter_guess: str | None = None
    voted_out_player: str | None = None
    vote_counts: dict[str, int] | None = None

    def to_dict(self) -> dict:
        d = {
            "winner": self.winner,
            "reason": self.reason,
            "imposterName": self.imposter_name,
            "correctWord": self.correct_word,
            "oddWord": self.odd_word,
            "allHints": [h.to_dict() for h in self.all_hints],
        }
        if self.imposter_guess is not None:
            d["imposterGuess"] = self.imposter_guess
        if self.voted_out_player is not None:
            d["votedOutPlayer"] = self.voted_out_player
        if self.vote_counts is not None:
            d["voteCounts"] = dict(self.vote_counts)
        return d


@dataclass
class GameRound:
    normal_word: str
    odd_word: str
    odd_one_out_index: int
    odd_one_out_id: str
    turn_order: list[str]
    current_turn_index: int = 0
    hints: list[Hint] = field(default_factory=list)
    round_number: int = 1
    votes: dict[str, str] = field(default_factory=dict)
    phase: Phase = "hint-giving"
    timer_ms: int = 30000
    phase_started_at_ms: int = 0
    voted_out_id: str | None = None
    vote_counts: dict[str, int] | None = None
    result: GameResult | None = None

    def current_player_id(self) -> str | None:
        if self.phase != "hint-giving":
            return None
        if self.current_turn_index >= len(self.turn_order):
            return None
        return self.turn_order[self.current_turn_index]


@dataclass
class Room:
    code: str
    game_type: str = "oddword"
    state: RoomState = "waiting"
    players: list[Player] = field(default_factory=list)
    settings: RoomSettings = field(default_factory=RoomSettings)
    custom_order: list[int] | None = None
    round: GameRound | None = None
    created_at_ms: int = field(default_factory=now_ms)
    last_activity_ms: int = field(default_factory=now_ms)
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)

    def touch(self) -> None:
        self.last_activity_ms = now_ms()

    def find_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def index_of(self, player_id: str) -> int:
        for i, p in enumerate(self.players):
            if p.id == player_id:
                return i
        return -1

    def host(self) -> Player | None:
        for p in self.players:
            if p.is_host:
                return p
        return None
