import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Socket.IO; empty means pick per platform in create_app
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Rooms
    MAX_PLAYERS = int(os.environ.get("MAX_PLAYERS", "8"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "3"))
    ROOM_IDLE_TTL_SEC = int(os.environ.get("ROOM_IDLE_TTL_SEC", "3600"))
    # 0 disables the background sweeper
    ROOM_SWEEP_INTERVAL_SEC = int(os.environ.get("ROOM_SWEEP_INTERVAL_SEC", "1800"))

    # Game timers (advisory, sent to clients)
    HINT_TIMER_MS = int(os.environ.get("HINT_TIMER_MS", "30000"))
    VOTING_TIMER_MS = int(os.environ.get("VOTING_TIMER_MS", "60000"))
    IMPOSTER_GUESS_TIMER_MS = int(os.environ.get("IMPOSTER_GUESS_TIMER_MS", "30000"))
