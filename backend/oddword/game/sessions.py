from __future__ import annotations

from threading import Lock

from .errors import RoomNotFound


class SessionBinding:
    """player id -> room code, plus live socket sid <-> player id."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._rooms: dict[str, str] = {}
        self._sid_to_player: dict[str, str] = {}
        self._player_to_sid: dict[str, str] = {}

    def bind(self, player_id: str, room_code: str) -> None:
        with self._lock:
            self._rooms[player_id] = room_code

    def resolve(self, player_id: str) -> str:
        with self._lock:
            code = self._rooms.get(player_id or "")
        if code is None:
            raise RoomNotFound("Player is not in a room")
        return code

    def unbind(self, player_id: str) -> None:
        with self._lock:
            self._rooms.pop(player_id, None)
            sid = self._player_to_sid.pop(player_id, None)
            if sid is not None:
                self._sid_to_player.pop(sid, None)

    def unbind_room(self, room_code: str) -> list[str]:
        with self._lock:
            gone = [pid for pid, code in self._rooms.items() if code == room_code]
        for pid in gone:
            self.unbind(pid)
        return gone

    def players_in(self, room_code: str) -> list[str]:
        with self._lock:
            return [pid for pid, code in self._rooms.items() if code == room_code]

    # Connection-bound transports

    def attach(self, sid: str, player_id: str) -> None:
        with self._lock:
            old = self._sid_to_player.pop(sid, None)
            if old is not None:
                self._player_to_sid.pop(old, None)
            self._sid_to_player[sid] = player_id
            self._player_to_sid[player_id] = sid

    def detach(self, sid: str) -> str | None:
        with self._lock:
            player_id = self._sid_to_player.pop(sid, None)
            if player_id is not None:
                self._player_to_sid.pop(player_id, None)
            return player_id

    def player_for_sid(self, sid: str) -> str | None:
        with self._lock:
            return self._sid_to_player.get(sid)

    def sid_for_player(self, player_id: str) -> str | None:
        with self._lock:
            return self._player_to_sid.get(player_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)
