import pytest

from oddword.game import membership, rules
from oddword.game.errors import (
    InvalidKick,
    InvalidName,
    InvalidPlayerOrder,
    InvalidSettings,
    NotHost,
    PlayerNotFound,
    RoomFull,
    WrongPhase,
)
from oddword.game.models import Room


def make_room(*names):
    room = Room(code="ABC123")
    players = [membership.add_player(room, n) for n in names]
    return room, players


def hosts(room):
    return [p for p in room.players if p.is_host]


def test_first_joiner_is_host():
    room, (alice, bob) = make_room("Alice", "Bob")
    assert alice.is_host and not bob.is_host
    assert hosts(room) == [alice]


def test_room_full_at_eight():
    room, _ = make_room(*[f"P{i}" for i in range(8)])
    with pytest.raises(RoomFull):
        membership.add_player(room, "Late")
    assert len(room.players) == 8


@pytest.mark.parametrize("name", ["", "   ", "x" * 21, "<script>", "bad\x07name", None, 42])
def test_invalid_names_rejected(name):
    room, _ = make_room()
    with pytest.raises(InvalidName):
        membership.add_player(room, name)
    assert room.players == []


def test_name_is_trimmed_and_duplicates_allowed():
    room, (a, b) = make_room("  Sam ", "Sam")
    assert a.name == "Sam" and b.name == "Sam"
    assert a.id != b.id


def test_host_leaving_promotes_earliest_survivor():
    room, (alice, bob, carol) = make_room("Alice", "Bob", "Carol")
    membership.remove_player(room, alice.id)
    assert hosts(room) == [bob]
    assert [p.name for p in room.players] == ["Bob", "Carol"]


def test_non_host_leaving_keeps_host():
    room, (alice, bob, carol) = make_room("Alice", "Bob", "Carol")
    membership.remove_player(room, bob.id)
    assert hosts(room) == [alice]


def test_remove_unknown_player():
    room, _ = make_room("Alice")
    with pytest.raises(PlayerNotFound):
        membership.remove_player(room, "nope")


def test_kick_rules():
    room, (alice, bob, carol) = make_room("Alice", "Bob", "Carol")

    with pytest.raises(NotHost):
        membership.kick(room, bob.id, carol.id)
    with pytest.raises(InvalidKick):
        membership.kick(room, alice.id, alice.id)
    with pytest.raises(PlayerNotFound):
        membership.kick(room, alice.id, "ghost")
    assert len(room.players) == 3

    removed, event = membership.kick(room, alice.id, bob.id)
    assert removed is bob
    assert event is None
    assert [p.name for p in room.players] == ["Alice", "Carol"]


def test_transfer_host_leaves_exactly_one_host():
    room, (alice, bob, carol) = make_room("Alice", "Bob", "Carol")

    with pytest.raises(NotHost):
        membership.transfer_host(room, bob.id, bob.id)
    with pytest.raises(PlayerNotFound):
        membership.transfer_host(room, alice.id, "ghost")

    membership.transfer_host(room, alice.id, carol.id)
    assert hosts(room) == [carol]

    # Removing the new host hands it back to players[0].
    membership.remove_player(room, carol.id)
    assert hosts(room) == [alice]


def test_update_settings_validates_and_merges():
    room, (alice, bob) = make_room("Alice", "Bob")

    membership.update_settings(room, alice.id, {"timerDuration": 45000, "imposterKnowsRole": True})
    assert room.settings.timer_duration_ms == 45000
    assert room.settings.imposter_knows_role is True
    assert room.settings.player_order == "random"

    for bad in ({"timerDuration": 0}, {"timerDuration": True}, {"playerOrder": "alphabetical"},
                {"imposterKnowsRole": "yes"}, {"colour": "red"}):
        with pytest.raises(InvalidSettings):
            membership.update_settings(room, alice.id, bad)
    assert room.settings.timer_duration_ms == 45000

    with pytest.raises(NotHost):
        membership.update_settings(room, bob.id, {"timerDuration": 1000})


def test_update_settings_refused_mid_game():
    room, (alice, *_rest) = make_room("Alice", "Bob", "Carol")
    rules.start_game(room, alice.id)
    with pytest.raises(WrongPhase):
        membership.update_settings(room, alice.id, {"timerDuration": 1000})


def test_join_refused_while_playing():
    room, (alice, *_rest) = make_room("Alice", "Bob", "Carol")
    rules.start_game(room, alice.id)

    with pytest.raises(WrongPhase):
        membership.add_player(room, "Dave")
    assert [p.name for p in room.players] == ["Alice", "Bob", "Carol"]

    room.state = "finished"
    assert membership.add_player(room, "Dave").name == "Dave"


def test_set_player_order_validation():
    room, (alice, bob, carol) = make_room("Alice", "Bob", "Carol")

    for bad in ([], [0, 0, 1], [0, 3], [-1], "012", [0, "1"], [True]):
        with pytest.raises(InvalidPlayerOrder):
            membership.set_player_order(room, alice.id, bad)
    with pytest.raises(NotHost):
        membership.set_player_order(room, bob.id, [0, 1, 2])

    membership.set_player_order(room, alice.id, [2, 0, 1])
    assert room.custom_order == [2, 0, 1]


def test_custom_order_follows_players_after_a_leave():
    room, (alice, bob, carol, dave) = make_room("Alice", "Bob", "Carol", "Dave")
    membership.set_player_order(room, alice.id, [3, 1, 2, 0])

    membership.remove_player(room, bob.id)

    # Dave, Carol, Alice in the new indexing.
    assert [room.players[i].name for i in room.custom_order] == ["Dave", "Carol", "Alice"]
