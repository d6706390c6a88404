import random
from typing import Any, Dict, List, cast

import pytest

from skyjo import GameConfig, ItemCard, MemoryStore, from_json, public_view, start_game, to_json
from skyjo.models import player_from_json


def _started(config=None):
    store = MemoryStore()
    start_game(store, "g", "a", [("a", "Ann"), ("b", "Bob")], config, rng=random.Random(42).random)
    return store.read_game("g"), store.read_players("g")


def test_round_trip_base():
    game, players = _started()
    data = to_json(game, players)
    game2, players2 = from_json(data)
    assert to_json(game2, players2) == data


def test_round_trip_with_items_and_cleared_slots():
    game, players = _started(GameConfig(spike_mode=True, spike_item_count="high", spike_row_clear=True))
    a = players["a"]
    a.grid[0] = a.grid[4] = a.grid[8] = None
    a.revealed[0] = a.revealed[4] = a.revealed[8] = True
    a.pending_draw = ItemCard("E")
    a.pending_draw_source = "discard"
    game.frozen_player_ids = ["b"]
    game.final_turn_remaining_ids = ["b"]
    game.ending_player_id = "a"
    game.turn_phase = "resolve-item"

    s = cast(Dict[str, Any], to_json(game, players))
    assert s["players"][0]["grid"][0] is None
    assert s["players"][0]["pendingDraw"] == {"code": "E"}
    assert s["config"] == {"spikeMode": True, "spikeItemCount": "high", "spikeRowClear": True, "scoreLimit": 100}
    assert {"code": "A"} in s["deck"]

    game2, players2 = from_json(s)
    assert players2["a"].pending_draw == ItemCard("E")
    assert game2.frozen_player_ids == ["b"]
    assert game2.config.row_clears
    assert to_json(game2, players2) == s


def test_public_view_hides_unrevealed_cards_and_deck():
    game, players = _started()
    players["a"].revealed[5] = True
    view = cast(Dict[str, Any], public_view(game, players))
    assert "deck" not in view
    assert view["deckCount"] == 125
    assert view["discardTop"] == game.discard[-1]
    grid = cast(List[Any], view["players"][0]["grid"])
    assert grid[5] == players["a"].grid[5]
    assert [g for i, g in enumerate(grid) if i != 5] == [None] * 11
    # The stored game is untouched
    assert len(game.deck) == 125


def test_bad_documents_are_rejected():
    game, players = _started()
    data = cast(Dict[str, Any], to_json(game, players))

    with pytest.raises(AssertionError):
        from_json({**data, "schemaVersion": 99})
    with pytest.raises(AssertionError):
        from_json({**data, "turnPhase": "dance"})
    with pytest.raises(AssertionError):
        from_json({**data, "currentPlayerId": "zz"})
    with pytest.raises(AssertionError):
        from_json({**data, "deck": [13]})

    pobj = dict(data["players"][0])
    with pytest.raises(AssertionError):
        player_from_json({**pobj, "grid": pobj["grid"][:11]})
    hidden_empty = list(pobj["grid"])
    hidden_empty[0] = None
    with pytest.raises(AssertionError):
        player_from_json({**pobj, "grid": hidden_empty, "revealed": [False] * 12})


def test_engine_has_no_io_calls():
    import os

    pkg = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "skyjo")
    bad = []
    for root, _dirs, files in os.walk(pkg):
        for fn in files:
            if not fn.endswith(".py"):
                continue
            path = os.path.join(root, fn)
            with open(path, "r", encoding="utf-8") as f:
                txt = f.read()
                if "print(" in txt or "input(" in txt:
                    bad.append(path)
    assert not bad, f"I/O found in engine modules: {bad}"
