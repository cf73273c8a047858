from __future__ import annotations


class GameError(Exception):
    """Caller-correctable rejection of a single action.

    Raised before any state is touched, so a failed action never leaves a
    room half-updated. Adapters report it to the originating client only.
    """

    code = "game_error"
    status = 400
    message = "Action not allowed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class RoomNotFound(GameError):
    code = "room_not_found"
    status = 404
    message = "Room not found"


class RoomFull(GameError):
    code = "room_full"
    status = 409
    message = "Room is full"


class PlayerNotFound(GameError):
    code = "player_not_found"
    status = 404
    message = "Player not found in room"


class NotHost(GameError):
    code = "not_host"
    status = 403
    message = "Only the host can do that"


class NotEnoughPlayers(GameError):
    code = "not_enough_players"
    status = 409
    message = "Need at least 3 players to start"


class NotYourTurn(GameError):
    code = "not_your_turn"
    status = 409
    message = "Not your turn"


class WrongPhase(GameError):
    code = "wrong_phase"
    status = 409
    message = "Action not allowed in the current phase"


class NotImposter(GameError):
    code = "not_imposter"
    status = 403
    message = "Only the imposter can submit a guess"


class InvalidKick(GameError):
    code = "invalid_kick"
    status = 400
    message = "Cannot kick yourself"


class InvalidPayload(GameError):
    code = "invalid_payload"
    message = "Invalid payload"


class InvalidName(InvalidPayload):
    code = "invalid_name"
    message = "Name must be 1-20 characters"


class InvalidHint(InvalidPayload):
    code = "invalid_hint"
    message = "Hint must be 1-100 characters"


class InvalidSettings(InvalidPayload):
    code = "invalid_settings"
    message = "Invalid settings"


class InvalidPlayerOrder(InvalidPayload):
    code = "invalid_player_order"
    message = "Player order must list distinct player indices"
