import threading

import pytest

from conftest import GAME_ID
from skyjo import GameError, GameState, MemoryStore, NotFound, OutOfTurn, TransactionAborted, draw_from_deck


def test_missing_documents_raise_not_found(store):
    with pytest.raises(NotFound):
        store.atomically(lambda tx: tx.get_game("nope"))
    assert store.atomically(lambda tx: tx.find_game("nope")) is None
    assert store.read_game("nope") is None
    assert store.version("nope") == 0


def test_missing_player(store, seed, make_player):
    seed([make_player("a")])
    with pytest.raises(NotFound):
        store.atomically(lambda tx: tx.get_player(GAME_ID, "zz"))


def test_reads_are_private_copies(store, seed, make_player):
    seed([make_player("a")])
    game = store.read_game(GAME_ID)
    game.deck.clear()
    assert store.read_game(GAME_ID).deck != []


def test_failed_transaction_writes_nothing(store, seed, make_player):
    seed([make_player("a")])
    before = store.version(GAME_ID)

    def body(tx):
        game = tx.get_game(GAME_ID)
        game.deck = []
        tx.set_game(game)
        raise GameError("nope")

    with pytest.raises(GameError):
        store.atomically(body)
    assert store.version(GAME_ID) == before
    assert store.read_game(GAME_ID).deck


def test_conflicting_write_retries_the_body(store, seed, make_player):
    seed([make_player("a")])
    attempts = []

    def bump(tx):
        game = tx.get_game(GAME_ID)
        game.round_number += 10
        tx.set_game(game)

    def body(tx):
        attempts.append(len(attempts) + 1)
        game = tx.get_game(GAME_ID)
        if len(attempts) == 1:
            # Someone else commits between our read and our commit
            store.atomically(bump)
        game.round_number += 1
        tx.set_game(game)
        return game.round_number

    assert store.atomically(body) == 12
    assert attempts == [1, 2]
    assert store.read_game(GAME_ID).round_number == 12


def _plain_game():
    return GameState(id=GAME_ID, host_id="a", active_player_order=["a"], current_player_id="a")


def test_gives_up_after_max_retries():
    store = MemoryStore(max_retries=2)
    store.atomically(lambda tx: tx.set_game(_plain_game()))
    calls = []

    def body(tx):
        calls.append(1)
        tx.get_game(GAME_ID)
        store.atomically(lambda inner: inner.set_game(inner.get_game(GAME_ID)))

    with pytest.raises(TransactionAborted):
        store.atomically(body)
    assert len(calls) == 2


def test_subscribers_see_committed_state(store, seed, make_player):
    seen = []
    unsubscribe = store.subscribe(GAME_ID, lambda game, players: seen.append((game.turn_phase, sorted(players))))
    seed([make_player("a"), make_player("b")])
    draw_from_deck(store, GAME_ID, "a")
    assert seen[-1] == ("resolve-draw", ["a", "b"])

    count = len(seen)
    unsubscribe()
    store.atomically(lambda tx: tx.set_game(tx.get_game(GAME_ID)))
    assert len(seen) == count


def test_failing_listener_does_not_undo_commit(store, seed, make_player):
    def boom(game, players):
        raise RuntimeError("listener down")

    store.subscribe(GAME_ID, boom)
    seed([make_player("a"), make_player("b")])
    draw_from_deck(store, GAME_ID, "a")
    assert store.read_player(GAME_ID, "a").pending_draw == 4


def test_concurrent_draws_only_one_wins(store, seed, make_player):
    seed([make_player("a"), make_player("b")])
    barrier = threading.Barrier(2)
    results = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        try:
            draw_from_deck(store, GAME_ID, "a")
            outcome = "ok"
        except GameError as e:
            outcome = e.code
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == ["WRONG_PHASE", "ok"]
    assert len(store.read_game(GAME_ID).deck) == 19


def test_other_player_cannot_act_in_parallel(store, seed, make_player):
    seed([make_player("a"), make_player("b")])
    draw_from_deck(store, GAME_ID, "a")
    with pytest.raises(OutOfTurn):
        draw_from_deck(store, GAME_ID, "b")


def test_two_players_drawing_at_once(store, seed, make_player):
    seed([make_player("a"), make_player("b")])
    barrier = threading.Barrier(2)
    results = {}
    lock = threading.Lock()

    def worker(pid):
        barrier.wait()
        try:
            draw_from_deck(store, GAME_ID, pid)
            outcome = "ok"
        except GameError as e:
            outcome = e.code
        with lock:
            results[pid] = outcome

    threads = [threading.Thread(target=worker, args=(pid,)) for pid in ("a", "b")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == {"a": "ok", "b": "OUT_OF_TURN"}
    assert sorted(results.values()) == ["OUT_OF_TURN", "ok"]
    assert store.read_player(GAME_ID, "b").pending_draw is None
    assert len(store.read_game(GAME_ID).deck) == 19
