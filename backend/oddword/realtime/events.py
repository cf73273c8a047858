# Inbound (client -> server)
ROOM_CREATE = "room:create"
ROOM_JOIN = "room:join"
ROOM_LEAVE = "room:leave"
ROOM_KICK = "room:kick"
ROOM_TRANSFER_HOST = "room:transfer_host"
ROOM_UPDATE_SETTINGS = "room:update_settings"
ROOM_SET_PLAYER_ORDER = "room:set_player_order"
GAME_START = "game:start"
GAME_GIVE_HINT = "game:give_hint"
GAME_CONTINUE_HINTS = "game:continue_hints"
GAME_START_VOTING = "game:start_voting"
GAME_CAST_VOTE = "game:cast_vote"
GAME_GUESS = "game:imposter_guess"
GAME_PLAY_AGAIN = "game:play_again"

# Outbound (server -> client)
ROOM_STATE = "room:state"
ROOM_JOINED = "room:joined"
ROOM_PLAYER_LEFT = "room:player_left"
ROOM_KICKED = "room:kicked"
ROOM_ERROR = "room:error"
ROOM_CLOSED = "room:closed"
GAME_STARTED = "game:started"
GAME_HINT = "game:hint"
GAME_TURN = "game:turn"
GAME_DECISION = "game:decision"
GAME_VOTING_STARTED = "game:voting_started"
GAME_VOTE_CAST = "game:vote_cast"
GAME_IMPOSTER_CAUGHT = "game:imposter_caught"
GAME_IMPOSTER_PROMPT = "game:imposter_prompt"
GAME_ENDED = "game:ended"
GAME_ABORTED = "game:aborted"
