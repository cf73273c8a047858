import random

import pytest

from oddword.game.service import GameService
from oddword.server import create_app


class FixedImposter(random.Random):
    """Random source that always makes players[index] the imposter."""

    def __init__(self, index: int, seed: int = 7):
        super().__init__(seed)
        self.index = index

    def randrange(self, *args, **kwargs):
        return self.index


@pytest.fixture
def game():
    return GameService(rng=random.Random(1234))


@pytest.fixture
def lobby(game):
    """Room with Alice (host), Bob and Carol; returns (code, [ids])."""
    code = game.create_room()["roomCode"]
    ids = [game.join_room(code, name)["playerId"] for name in ("Alice", "Bob", "Carol")]
    return code, ids


@pytest.fixture
def give_all_hints(game):
    def _run(code: str, text: str = "clue") -> None:
        room = game.registry.get_room(code)
        for pid in list(room.round.turn_order):
            game.give_hint(pid, text)

    return _run


@pytest.fixture
def app_and_socketio():
    return create_app(
        {
            "TESTING": True,
            "SOCKETIO_ASYNC_MODE": "threading",
            "ROOM_SWEEP_INTERVAL_SEC": 0,
            "TRUST_PROXY_HEADERS": False,
            "LOG_LEVEL": "WARNING",
        }
    )


@pytest.fixture
def client(app_and_socketio):
    app, _ = app_and_socketio
    return app.test_client()
