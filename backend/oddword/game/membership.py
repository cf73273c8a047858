from __future__ import annotations

import uuid
from typing import Any

from . import rules
from .errors import (
    InvalidKick,
    InvalidName,
    InvalidPlayerOrder,
    RoomFull,
    WrongPhase,
)
from .models import Player, Room, now_ms


MAX_PLAYERS = 8
MAX_NAME_LEN = 20


def validate_name(name: Any) -> str:
    n = name.strip() if isinstance(name, str) else ""
    if not n or len(n) > MAX_NAME_LEN:
        raise InvalidName()
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        raise InvalidName("Name contains forbidden characters")
    if any(ord(ch) < 32 for ch in n):
        raise InvalidName("Name contains control characters")
    return n


def add_player(room: Room, name: Any, *, max_players: int = MAX_PLAYERS) -> Player:
    n = validate_name(name)
    if room.state == "playing":
        raise WrongPhase("Game already in progress")
    if len(room.players) >= max_players:
        raise RoomFull()

    player = Player(
        id=uuid.uuid4().hex,
        name=n,
        is_host=not room.players,
        joined_at_ms=now_ms(),
    )
    room.players.append(player)
    room.touch()
    return player


def remove_player(room: Room, player_id: str, **round_opts: Any) -> tuple[Player, dict | None]:
    """Remove a player, keeping exactly one host while anyone remains.

    Returns the removed player and any forced round transition.
    """
    player = rules.require_member(room, player_id)
    index = room.index_of(player_id)

    room.players.pop(index)
    if player.is_host and room.players:
        room.players[0].is_host = True

    if room.custom_order is not None:
        # Keep stored indices pointing at the same people.
        room.custom_order = [i if i < index else i - 1 for i in room.custom_order if i != index]

    room.touch()
    event = rules.handle_departure(room, player, **round_opts)
    return player, event


def kick(room: Room, requester_id: str, target_id: str, **round_opts: Any) -> tuple[Player, dict | None]:
    rules.require_host(room, requester_id)
    if requester_id == target_id:
        raise InvalidKick()
    rules.require_member(room, target_id)
    return remove_player(room, target_id, **round_opts)


def transfer_host(room: Room, requester_id: str, new_host_id: str) -> Player:
    rules.require_host(room, requester_id)
    new_host = rules.require_member(room, new_host_id)
    for p in room.players:
        p.is_host = p.id == new_host.id
    room.touch()
    return new_host


def update_settings(room: Room, requester_id: str, patch: dict[str, Any] | None) -> None:
    rules.require_host(room, requester_id)
    if room.state != "waiting":
        raise WrongPhase("Settings can only change between games")
    room.settings = room.settings.merged(patch)
    room.touch()


def set_player_order(room: Room, requester_id: str, custom_order: Any) -> None:
    rules.require_host(room, requester_id)
    if not isinstance(custom_order, list) or not custom_order:
        raise InvalidPlayerOrder()
    for idx in custom_order:
        if isinstance(idx, bool) or not isinstance(idx, int) or not 0 <= idx < len(room.players):
            raise InvalidPlayerOrder()
    if len(set(custom_order)) != len(custom_order):
        raise InvalidPlayerOrder()

    room.custom_order = list(custom_order)
    room.touch()
