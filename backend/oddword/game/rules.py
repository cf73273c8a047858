"""Round state machine.

Every function here mutates a :class:`Room` in place and expects the caller to
hold ``room.lock``. Validation always happens before the first write, so a
raised :class:`GameError` leaves the room exactly as it was.

Phases::

    waiting -> hint-giving -> decision -> voting -> imposter-guess -> finished
                    ^             |
                    +-- continue -+
"""
from __future__ import annotations

import logging
import random
from typing import Any

from .errors import (
    InvalidHint,
    InvalidPayload,
    NotEnoughPlayers,
    NotHost,
    NotImposter,
    NotYourTurn,
    PlayerNotFound,
    WrongPhase,
)
from .models import GameResult, GameRound, Hint, Player, Room, now_ms
from .words import pick_pair


logger = logging.getLogger("oddword.rules")

MIN_PLAYERS = 3
MAX_HINT_LEN = 100
VOTING_TIMER_MS = 60000
IMPOSTER_GUESS_TIMER_MS = 30000


def require_member(room: Room, player_id: str) -> Player:
    player = room.find_player(player_id)
    if player is None:
        raise PlayerNotFound()
    return player


def require_host(room: Room, player_id: str) -> Player:
    player = require_member(room, player_id)
    if not player.is_host:
        raise NotHost()
    return player


def _require_phase(room: Room, *phases: str) -> GameRound:
    rnd = room.round
    if rnd is None or rnd.phase not in phases:
        raise WrongPhase()
    return rnd


def _enter_phase(rnd: GameRound, phase: str, timer_ms: int) -> None:
    rnd.phase = phase  # type: ignore[assignment]
    rnd.timer_ms = timer_ms
    rnd.phase_started_at_ms = now_ms()


def build_turn_order(room: Room, rng: random.Random) -> list[str]:
    ids = [p.id for p in room.players]

    if room.settings.player_order == "host-set" and room.custom_order:
        order: list[str] = []
        for idx in room.custom_order:
            if 0 <= idx < len(ids) and ids[idx] not in order:
                order.append(ids[idx])
        # Players the host left out still get a turn, after the listed ones.
        order.extend(pid for pid in ids if pid not in order)
        return order

    rng.shuffle(ids)
    return ids


def start_game(
    room: Room,
    requester_id: str,
    settings_patch: dict[str, Any] | None = None,
    *,
    rng: random.Random | None = None,
    min_players: int = MIN_PLAYERS,
) -> GameRound:
    require_host(room, requester_id)
    if room.state != "waiting":
        raise WrongPhase("Game already in progress")
    if len(room.players) < min_players:
        raise NotEnoughPlayers(f"Need at least {min_players} players to start")

    settings = room.settings.merged(settings_patch)
    r = rng or random.Random()

    normal_word, odd_word = pick_pair(r)
    odd_index = r.randrange(len(room.players))

    room.settings = settings
    room.round = GameRound(
        normal_word=normal_word,
        odd_word=odd_word,
        odd_one_out_index=odd_index,
        odd_one_out_id=room.players[odd_index].id,
        turn_order=build_turn_order(room, r),
        timer_ms=settings.timer_duration_ms,
        phase_started_at_ms=now_ms(),
    )
    room.state = "playing"
    logger.info("room %s: game started with %d players", room.code, len(room.players))
    return room.round


def player_view(room: Room, player_id: str) -> dict:
    """Private start-of-round payload for one player."""
    rnd = room.round
    if rnd is None:
        raise WrongPhase()
    is_odd = player_id == rnd.odd_one_out_id
    return {
        "word": rnd.odd_word if is_odd else rnd.normal_word,
        "isOddOneOut": is_odd,
        # Non-imposters implicitly know they are not the imposter.
        "knowsRole": room.settings.imposter_knows_role or not is_odd,
        "turnOrder": turn_order_names(room),
        "currentTurnIndex": rnd.current_turn_index,
        "timer": rnd.timer_ms,
        "settings": room.settings.to_dict(),
    }


def turn_order_names(room: Room) -> list[str]:
    rnd = room.round
    if rnd is None:
        return []
    names = []
    for pid in rnd.turn_order:
        p = room.find_player(pid)
        names.append(p.name if p else "")
    return names


def give_hint(room: Room, player_id: str, hint: str) -> Hint:
    rnd = _require_phase(room, "hint-giving")
    player = require_member(room, player_id)
    if rnd.current_player_id() != player_id:
        raise NotYourTurn()

    text = (hint or "").strip() if isinstance(hint, str) else ""
    if not text or len(text) > MAX_HINT_LEN:
        raise InvalidHint()

    entry = Hint(
        player_id=player.id,
        player_name=player.name,
        hint=text,
        player_index=rnd.current_turn_index,
        timestamp_ms=now_ms(),
    )
    rnd.hints.append(entry)
    rnd.current_turn_index += 1

    if rnd.current_turn_index >= len(rnd.turn_order):
        _enter_phase(rnd, "decision", 0)
    return entry


def continue_hints(room: Room, requester_id: str) -> GameRound:
    require_host(room, requester_id)
    rnd = _require_phase(room, "decision")
    rnd.current_turn_index = 0
    rnd.hints = []
    rnd.round_number += 1
    _enter_phase(rnd, "hint-giving", room.settings.timer_duration_ms)
    return rnd


def start_voting(room: Room, requester_id: str, *, timer_ms: int = VOTING_TIMER_MS) -> GameRound:
    require_host(room, requester_id)
    rnd = _require_phase(room, "decision")
    rnd.votes = {}
    rnd.voted_out_id = None
    rnd.vote_counts = None
    _enter_phase(rnd, "voting", timer_ms)
    return rnd


def cast_vote(
    room: Room,
    voter_id: str,
    target_id: str,
    *,
    guess_timer_ms: int = IMPOSTER_GUESS_TIMER_MS,
) -> dict | None:
    """Record a vote; returns the resolution once every player has voted."""
    rnd = _require_phase(room, "voting")
    require_member(room, voter_id)
    require_member(room, target_id)

    # Last write wins per voter.
    rnd.votes[voter_id] = target_id
    return resolve_votes_if_complete(room, guess_timer_ms=guess_timer_ms)


def tally(room: Room) -> tuple[str, dict[str, int]]:
    """Count votes; ties go to the earliest-joined player."""
    rnd = room.round
    if rnd is None or not rnd.votes:
        raise WrongPhase("No votes to count")
    counts: dict[str, int] = {}
    for target in rnd.votes.values():
        counts[target] = counts.get(target, 0) + 1

    top = max(counts.values())
    leaders = [pid for pid, n in counts.items() if n == top]
    leaders.sort(key=room.index_of)
    return leaders[0], counts


def resolve_votes_if_complete(room: Room, *, guess_timer_ms: int = IMPOSTER_GUESS_TIMER_MS) -> dict | None:
    rnd = room.round
    if rnd is None or rnd.phase != "voting":
        return None
    if not room.players or any(p.id not in rnd.votes for p in room.players):
        return None

    voted_out_id, counts = tally(room)
    voted_out = room.find_player(voted_out_id)
    rnd.voted_out_id = voted_out_id
    rnd.vote_counts = dict(counts)
    caught = voted_out_id == rnd.odd_one_out_id

    resolution: dict[str, Any] = {
        "votedOutId": voted_out_id,
        "votedOutName": voted_out.name if voted_out else "",
        "voteCounts": dict(counts),
        "imposterCaught": caught,
    }

    if caught:
        _enter_phase(rnd, "imposter-guess", guess_timer_ms)
    else:
        _finish(
            room,
            winner="imposter",
            reason="wrong-person-voted",
            voted_out_player=resolution["votedOutName"],
            vote_counts=counts,
        )
        resolution["gameResult"] = rnd.result.to_dict() if rnd.result else None

    resolution["phase"] = rnd.phase
    resolution["timer"] = rnd.timer_ms
    return resolution


def imposter_guess(room: Room, player_id: str, guess: Any) -> GameResult:
    rnd = _require_phase(room, "imposter-guess")
    require_member(room, player_id)
    if player_id != rnd.odd_one_out_id:
        raise NotImposter()

    text = guess.strip() if isinstance(guess, str) else ""
    if not text or len(text) > MAX_HINT_LEN:
        raise InvalidPayload("Guess must be 1-100 characters")
    correct = text.lower() == rnd.normal_word.strip().lower()

    voted_out = room.find_player(rnd.voted_out_id) if rnd.voted_out_id else None
    return _finish(
        room,
        winner="imposter" if correct else "majority",
        reason="imposter-correct-guess" if correct else "imposter-wrong-guess",
        imposter_guess=text,
        voted_out_player=voted_out.name if voted_out else None,
        vote_counts=rnd.vote_counts,
    )


def restart(room: Room, requester_id: str) -> None:
    require_host(room, requester_id)
    room.round = None
    room.state = "waiting"


def _imposter_name(room: Room, rnd: GameRound, fallback: str = "") -> str:
    p = room.find_player(rnd.odd_one_out_id)
    return p.name if p else fallback


def _finish(room: Room, *, winner: str, reason: str, imposter_name: str | None = None, **extra: Any) -> GameResult:
    rnd = room.round
    if rnd is None:
        raise WrongPhase("No game in progress")
    result = GameResult(
        winner=winner,  # type: ignore[arg-type]
        reason=reason,
        imposter_name=imposter_name if imposter_name is not None else _imposter_name(room, rnd),
        correct_word=rnd.normal_word,
        odd_word=rnd.odd_word,
        all_hints=tuple(rnd.hints),
        **extra,
    )
    rnd.result = result
    _enter_phase(rnd, "finished", 0)
    room.state = "finished"
    logger.info("room %s: game finished, winner=%s reason=%s", room.code, winner, reason)
    return result


def handle_departure(
    room: Room,
    player: Player,
    *,
    min_players: int = MIN_PLAYERS,
    guess_timer_ms: int = IMPOSTER_GUESS_TIMER_MS,
) -> dict | None:
    """Repair the running round after ``player`` has left the roster.

    Returns an event describing a forced transition, or None when the round
    simply carries on.
    """
    rnd = room.round
    if rnd is None or rnd.phase == "finished":
        return None

    if len(room.players) < min_players:
        room.round = None
        room.state = "waiting"
        logger.info("room %s: round aborted, not enough players", room.code)
        return {"type": "aborted", "reason": "not-enough-players"}

    if player.id == rnd.odd_one_out_id:
        result = _finish(room, winner="majority", reason="imposter-left", imposter_name=player.name)
        return {"type": "ended", "gameResult": result.to_dict()}

    rnd.odd_one_out_index = room.index_of(rnd.odd_one_out_id)

    if player.id in rnd.turn_order:
        pos = rnd.turn_order.index(player.id)
        rnd.turn_order.pop(pos)
        if pos < rnd.current_turn_index:
            rnd.current_turn_index -= 1
        if rnd.phase == "hint-giving" and rnd.current_turn_index >= len(rnd.turn_order):
            _enter_phase(rnd, "decision", 0)
            return {"type": "decision"}

    if rnd.votes:
        rnd.votes = {v: t for v, t in rnd.votes.items() if v != player.id and t != player.id}
        resolution = resolve_votes_if_complete(room, guess_timer_ms=guess_timer_ms)
        if resolution is not None:
            return {"type": "resolution", **resolution}

    return None
