import random

from skyjo import GameState, next_player_id, resolve_turn


ALL = [True] * 12
SOME = [True] * 11 + [False]


def _game(**fields) -> GameState:
    base = dict(
        id="g",
        host_id="a",
        active_player_order=["a", "b", "c"],
        current_player_id="a",
        deck=[5, 5, 5],
        discard=[1],
    )
    base.update(fields)
    return GameState(**base)


def test_next_player_wraps_around():
    assert next_player_id(["a", "b", "c"], "a") == "b"
    assert next_player_id(["a", "b", "c"], "c") == "a"
    assert next_player_id(["a", "b"], "zz") == "a"


def test_plain_turn_advances():
    game = _game(turn_phase="resolve")
    res = resolve_turn(game, "a", SOME)
    assert not res.round_complete
    assert res.next_player_id == "b"
    assert game.current_player_id == "b"
    assert game.turn_phase == "choose-draw"
    assert game.ending_player_id is None
    assert game.final_turn_remaining_ids is None


def test_full_reveal_starts_final_lap():
    game = _game()
    res = resolve_turn(game, "a", ALL)
    assert res.ending_player_id == "a"
    assert game.final_turn_remaining_ids == ["b", "c"]
    assert game.current_player_id == "b"
    assert "END_TRIGGER: a" in game.logs


def test_final_lap_completes_after_everyone_else_played():
    game = _game(ending_player_id="a", final_turn_remaining_ids=["b", "c"], current_player_id="b")
    resolve_turn(game, "b", SOME)
    assert game.final_turn_remaining_ids == ["c"]
    assert game.current_player_id == "c"

    res = resolve_turn(game, "c", ALL)
    assert res.round_complete
    assert game.status == "round-complete"
    assert game.current_player_id == "a"
    assert game.final_turn_remaining_ids == []
    # A second full reveal does not move the ending player
    assert game.ending_player_id == "a"


def test_single_player_round_ends_on_full_reveal():
    game = _game(active_player_order=["a"])
    res = resolve_turn(game, "a", ALL)
    assert res.round_complete
    assert game.status == "round-complete"


def test_empty_deck_is_refilled_from_discard():
    game = _game(deck=[], discard=[3, 7, 9])
    res = resolve_turn(game, "a", SOME, random.Random(3).random)
    assert res.deck_refilled
    assert game.discard == [9]
    assert sorted(game.deck) == [3, 7]


def test_no_refill_with_a_single_discard():
    game = _game(deck=[], discard=[9])
    res = resolve_turn(game, "a", SOME)
    assert not res.deck_refilled
    assert game.deck == []


def test_frozen_player_is_skipped_once():
    game = _game(frozen_player_ids=["b"])
    res = resolve_turn(game, "a", SOME)
    assert res.skipped == ["b"]
    assert game.current_player_id == "c"
    assert game.frozen_player_ids == []
    assert "FROZEN_SKIP: b" in game.logs


def test_frozen_player_forfeits_final_turn():
    game = _game(
        ending_player_id="a",
        final_turn_remaining_ids=["b", "c"],
        current_player_id="b",
        frozen_player_ids=["c"],
    )
    res = resolve_turn(game, "b", SOME)
    assert res.round_complete
    assert res.skipped == ["c"]
    assert game.current_player_id == "a"
