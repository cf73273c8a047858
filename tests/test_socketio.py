import pytest


@pytest.fixture
def sio(app_and_socketio):
    app, socketio = app_and_socketio
    clients = []

    def _connect():
        c = socketio.test_client(app)
        clients.append(c)
        return c

    yield _connect

    for c in clients:
        if c.is_connected():
            c.disconnect()


def _events(client, name):
    return [msg["args"][0] for msg in client.get_received() if msg["name"] == name]


def _names(client):
    return [msg["name"] for msg in client.get_received()]


@pytest.fixture
def table(sio):
    """Three connected players; returns (code, [(client, player_id), ...])."""
    alice = sio()
    ack = alice.emit("room:create", {"name": "Alice"}, callback=True)
    assert ack["ok"] is True
    code = ack["roomCode"]

    seats = [(alice, ack["playerId"])]
    for name in ("Bob", "Carol"):
        c = sio()
        joined = c.emit("room:join", {"roomCode": code, "name": name}, callback=True)
        assert joined["ok"] is True
        seats.append((c, joined["playerId"]))

    for c, _ in seats:
        c.get_received()
    return code, seats


def test_join_emits_joined_and_state(sio):
    alice = sio()
    ack = alice.emit("room:create", {"name": "Alice"}, callback=True)
    received = alice.get_received()
    names = [m["name"] for m in received]
    assert "room:joined" in names
    state = [m["args"][0] for m in received if m["name"] == "room:state"][-1]
    assert state["code"] == ack["roomCode"]
    assert state["players"][0]["isHost"] is True


def test_errors_go_to_sender_only(table):
    code, ((alice, _), (bob, _), _carol) = table

    ack = bob.emit("game:start", {}, callback=True)

    assert ack == {"ok": False, "error": "not_host", "message": "Only the host can do that"}
    assert _events(bob, "room:error")[0]["error"] == "not_host"
    assert "room:error" not in _names(alice)


def test_actions_require_joined_connection(sio):
    c = sio()
    ack = c.emit("game:give_hint", {"hint": "x"}, callback=True)
    assert ack["ok"] is False
    assert ack["error"] == "room_not_found"


def test_start_sends_each_player_their_own_word(table, app_and_socketio):
    code, seats = table
    (alice, alice_id) = seats[0]

    assert alice.emit("game:start", {}, callback=True)["ok"] is True

    started = {pid: _events(c, "game:started") for c, pid in seats}
    assert all(len(v) == 1 for v in started.values())
    assert sum(v[0]["isOddOneOut"] for v in started.values()) == 1

    game = app_and_socketio[0].extensions["oddword"]
    rnd = game.registry.get_room(code).round
    for pid, (payload,) in started.items():
        expected = rnd.odd_word if pid == rnd.odd_one_out_id else rnd.normal_word
        assert payload["word"] == expected


def test_hint_round_and_vote_flow(table, app_and_socketio):
    code, seats = table
    by_id = {pid: c for c, pid in seats}
    alice, alice_id = seats[0]
    game = app_and_socketio[0].extensions["oddword"]

    alice.emit("game:start", {}, callback=True)
    order = game.get_room_status(code)["gameData"]["turnOrderIds"]
    for c, _ in seats:
        c.get_received()

    wrong = by_id[order[1]].emit("game:give_hint", {"hint": "early"}, callback=True)
    assert wrong["error"] == "not_your_turn"

    for pid in order:
        assert by_id[pid].emit("game:give_hint", {"hint": "clue"}, callback=True)["ok"] is True

    bob = seats[1][0]
    names = _names(bob)
    assert names.count("game:hint") == 3
    assert "game:decision" in names

    alice.emit("game:start_voting", {}, callback=True)
    imposter_id = game.registry.get_room(code).round.odd_one_out_id
    for c, _ in seats:
        c.get_received()

    for c, _ in seats:
        assert c.emit("game:cast_vote", {"votedPlayerId": imposter_id}, callback=True)["ok"] is True

    imposter_client = by_id[imposter_id]
    others = [c for c, pid in seats if pid != imposter_id]

    imposter_names = _names(imposter_client)
    assert "game:imposter_caught" in imposter_names
    assert "game:imposter_prompt" in imposter_names
    for c in others:
        other_names = _names(c)
        assert "game:imposter_caught" in other_names
        assert "game:imposter_prompt" not in other_names

    word = game.registry.get_room(code).round.normal_word
    assert imposter_client.emit("game:imposter_guess", {"guess": word}, callback=True)["ok"] is True
    ended = _events(others[0], "game:ended")
    assert ended[0]["winner"] == "imposter"
    assert ended[0]["reason"] == "imposter-correct-guess"


def test_kick_notifies_kicked_connection(table):
    code, ((alice, _), (bob, bob_id), (carol, _)) = table

    ack = alice.emit("room:kick", {"targetPlayerId": bob_id}, callback=True)

    assert ack["ok"] is True
    assert [p["name"] for p in ack["players"]] == ["Alice", "Carol"]
    assert _events(bob, "room:kicked") == [{"roomCode": code}]
    assert "room:kicked" not in _names(carol)
    left = _events(alice, "room:player_left")
    assert left[0]["playerId"] == bob_id

    # Kicked connection is no longer bound.
    assert bob.emit("room:leave", {}, callback=True)["ok"] is False


def test_disconnect_acts_like_leave(table, app_and_socketio):
    code, ((alice, alice_id), (bob, bob_id), (carol, _)) = table
    game = app_and_socketio[0].extensions["oddword"]

    alice.disconnect()

    players = game.get_room_status(code)["players"]
    assert [p["name"] for p in players] == ["Bob", "Carol"]
    assert players[0]["isHost"] is True
    assert _events(bob, "room:player_left")[0]["playerId"] == alice_id


def test_last_disconnect_deletes_room(sio, app_and_socketio):
    game = app_and_socketio[0].extensions["oddword"]
    alice = sio()
    code = alice.emit("room:create", {"name": "Alice"}, callback=True)["roomCode"]

    alice.disconnect()

    assert code not in game.registry


def test_host_settings_over_socket(table):
    code, ((alice, _), (bob, _), (carol, carol_id)) = table

    ack = alice.emit("room:update_settings", {"settings": {"imposterKnowsRole": True}}, callback=True)
    assert ack["settings"]["imposterKnowsRole"] is True

    ack = alice.emit("room:set_player_order", {"customOrder": [1, 0, 2]}, callback=True)
    assert ack["customOrder"] == [1, 0, 2]

    ack = alice.emit("room:transfer_host", {"newHostId": carol_id}, callback=True)
    assert [p["isHost"] for p in ack["players"]] == [False, False, True]

    state = _events(bob, "room:state")[-1]
    assert state["players"][2]["isHost"] is True
