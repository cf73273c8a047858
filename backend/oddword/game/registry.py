from __future__ import annotations

import logging
import secrets
import string
from threading import RLock

from .errors import RoomNotFound
from .models import Room, RoomSettings, now_ms


logger = logging.getLogger("oddword.registry")

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


def generate_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


class RoomRegistry:
    """Owns the set of live rooms.

    The registry lock guards only the code -> room map. In-room state is
    guarded by each room's own lock.
    """

    def __init__(self, code_factory=generate_code) -> None:
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        self._code_factory = code_factory

    def create_room(self, game_type: str = "oddword", settings: RoomSettings | None = None) -> Room:
        with self._lock:
            code = self._code_factory()
            while code in self._rooms:
                code = self._code_factory()

            room = Room(code=code, game_type=game_type, settings=settings or RoomSettings())
            self._rooms[code] = room
        logger.info("room %s created", code)
        return room

    def get_room(self, code: str) -> Room:
        with self._lock:
            room = self._rooms.get(normalize_code(code))
        if room is None:
            raise RoomNotFound()
        return room

    def delete_room(self, code: str) -> bool:
        with self._lock:
            removed = self._rooms.pop(normalize_code(code), None)
        if removed is not None:
            logger.info("room %s deleted", removed.code)
            return True
        return False

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def sweep_idle_rooms(self, max_idle_ms: int, now: int | None = None) -> list[str]:
        """Delete rooms idle longer than ``max_idle_ms``; returns their codes.

        ``last_activity_ms`` is read without the room lock. A room that sees
        activity while being swept can still be removed.
        """
        t = now if now is not None else now_ms()
        with self._lock:
            expired = [code for code, room in self._rooms.items() if t - room.last_activity_ms > max_idle_ms]
            for code in expired:
                del self._rooms[code]

        if expired:
            logger.info("swept %d idle room(s): %s", len(expired), ", ".join(expired))
        return expired

    def player_count(self) -> int:
        return sum(len(r.players) for r in self.list_rooms())

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code: str) -> bool:
        with self._lock:
            return normalize_code(code) in self._rooms
