"""Player actions.

Every public function here is one player gesture. It runs a single store
transaction: re-read the game and the player document(s), check every
precondition against those reads, compute the new state and write all
changed documents back. A failed check raises a ``GameError`` and nothing is
written.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import random

from .deck import Rng, create_deck, create_item_cards, draw_random_number, shuffle, COMPOSITION
from .errors import (
    InvalidPendingState,
    InvalidTarget,
    NotFound,
    OutOfTurn,
    PermissionDenied,
    PreconditionNotMet,
    WrongPhase,
    ensure,
)
from .grid import clear_all_matched_columns, clear_matches, hidden_slots, valid_index
from .models import GameConfig, GameState, PlayerState, append_log
from .scoring import score_round
from .store import MemoryStore, Transaction
from .turns import TurnResolution, resolve_turn
from .types import (
    GRID_SIZE,
    ITEM_CODES,
    MAX_VALUE,
    MIN_VALUE,
    Card,
    ItemCard,
    ItemCode,
    SlotRef,
    TurnPhase,
    card_label,
    is_item,
    is_number,
)

# Coordinates each item code needs
ITEM_TARGETS: Dict[str, int] = {"A": 1, "B": 0, "C": 1, "D": 1, "E": 2}

DECK_SIZE = sum(COMPOSITION.values())


# --- shared checks ---

def _load_turn(
    tx: Transaction,
    game_id: str,
    player_id: str,
    phases: Sequence[TurnPhase],
    phase_msg: str,
) -> Tuple[GameState, PlayerState]:
    game = tx.get_game(game_id)
    ensure(game.current_player_id == player_id, OutOfTurn, "Not your turn.")
    ensure(game.status == "playing", WrongPhase, "Round is not in progress.")
    ensure(game.turn_phase in phases, WrongPhase, phase_msg)
    player = tx.get_player(game_id, player_id)
    return game, player


def _check_slot(player: PlayerState, index: int) -> None:
    ensure(valid_index(index), InvalidTarget, "Invalid index.")
    ensure(player.grid[index] is not None, InvalidTarget, "Slot is empty.")


def _clear_after(game: GameState, player: PlayerState, index: int) -> None:
    res = clear_matches(player.grid, player.revealed, index, rows=game.config.row_clears)
    player.grid, player.revealed = res.grid, res.revealed
    if res.removed:
        game.cleared.extend(res.removed)
        append_log(game, f"LINE_CLEAR: {player.id} -> {', '.join(card_label(c) for c in res.removed)}")


def _clear_all(game: GameState, player: PlayerState) -> None:
    res = clear_all_matched_columns(player.grid, player.revealed, rows=game.config.row_clears)
    player.grid, player.revealed = res.grid, res.revealed
    if res.removed:
        game.cleared.extend(res.removed)
        append_log(game, f"LINE_CLEAR: {player.id} -> {', '.join(card_label(c) for c in res.removed)}")


def _has_legal_use(tx: Transaction, game: GameState, actor: PlayerState, item: ItemCard) -> bool:
    """True when ``actor`` could play ``item`` against the current grids."""
    if item.code == "B":
        return True
    own = sum(1 for c in actor.grid if c is not None)
    others = 0
    for pid in game.active_player_order:
        if pid != actor.id:
            others += sum(1 for c in tx.get_player(game.id, pid).grid if c is not None)
    if item.code == "D":
        return others > 0
    if item.code == "E":
        return own + others >= 2
    return own + others > 0


def _finish_turn(
    tx: Transaction,
    game: GameState,
    player: PlayerState,
    action: str,
    rng: Rng,
) -> TurnResolution:
    game.last_turn_player_id = player.id
    game.last_turn_action = action
    resolution = resolve_turn(game, player.id, player.revealed, rng)
    tx.set_player(game.id, player)

    if resolution.round_complete:
        players: Dict[str, PlayerState] = {}
        for pid in game.active_player_order:
            players[pid] = player if pid == player.id else tx.get_player(game.id, pid)
        result = score_round(
            game.active_player_order,
            players,
            resolution.ending_player_id,
            score_limit=game.config.score_limit,
            rows=game.config.row_clears,
        )
        for pid, update in result.updates.items():
            update.apply(players[pid])
            game.cleared.extend(update.removed)
            tx.set_player(game.id, players[pid])
        game.round_scores = dict(result.round_scores)
        scores = ", ".join(f"{pid}={s}" for pid, s in result.round_scores.items())
        append_log(game, f"ROUND_SCORES: {scores}" + ("; ENDING_DOUBLED" if result.doubled else ""))
        if result.game_complete:
            game.status = "game-complete"
            append_log(game, "GAME_COMPLETE")

    tx.set_game(game)
    return resolution


# --- draw ---

def draw_from_deck(store: MemoryStore, game_id: str, player_id: str) -> Card:
    def apply(tx: Transaction) -> Card:
        game, player = _load_turn(tx, game_id, player_id, ("choose-draw",), "Not in draw phase.")
        ensure(len(game.deck) > 0, PreconditionNotMet, "Deck is empty.")
        ensure(player.pending_draw is None, InvalidPendingState, "You already have a pending draw.")

        card = game.deck.pop()
        player.pending_draw = card
        player.pending_draw_source = "deck"
        game.turn_phase = "resolve-item" if is_item(card) else "resolve-draw"
        game.selected_discard_player_id = None
        append_log(game, f"DRAW_DECK: {player_id} -> {card_label(card)}")
        tx.set_player(game_id, player)
        tx.set_game(game)
        return card

    return store.atomically(apply)


def select_discard(store: MemoryStore, game_id: str, player_id: str) -> None:
    def apply(tx: Transaction) -> None:
        game, _player = _load_turn(tx, game_id, player_id, ("choose-draw",), "Not in draw phase.")
        ensure(len(game.discard) > 0, PreconditionNotMet, "Discard pile is empty.")
        game.selected_discard_player_id = player_id
        tx.set_game(game)

    store.atomically(apply)


def draw_from_discard(
    store: MemoryStore,
    game_id: str,
    player_id: str,
    target_index: int,
    rng: Rng = random.random,
) -> Optional[TurnResolution]:
    """Take the discard top into ``target_index``.

    An item on top of the discard becomes the pending draw instead and must
    then be used; the turn does not end here in that case.
    """

    def apply(tx: Transaction) -> Optional[TurnResolution]:
        game, player = _load_turn(tx, game_id, player_id, ("choose-draw",), "Not in draw phase.")
        ensure(len(game.discard) > 0, PreconditionNotMet, "Discard pile is empty.")
        ensure(player.pending_draw is None, InvalidPendingState, "You already have a pending draw.")
        _check_slot(player, target_index)

        top = game.discard[-1]
        # Items taken from the discard must be used, so they need a target
        if isinstance(top, ItemCard):
            ensure(_has_legal_use(tx, game, player, top), InvalidTarget, f"Item {top.code} has no legal target.")

        card = game.discard.pop()
        game.selected_discard_player_id = None
        if is_item(card):
            player.pending_draw = card
            player.pending_draw_source = "discard"
            game.turn_phase = "resolve-item"
            append_log(game, f"DRAW_DISCARD: {player_id} -> {card_label(card)}")
            tx.set_player(game_id, player)
            tx.set_game(game)
            return None

        replaced = player.grid[target_index]
        assert replaced is not None
        player.grid[target_index] = card
        player.revealed[target_index] = True
        game.discard.append(replaced)
        append_log(game, f"DRAW_DISCARD: {player_id} -> {card}; PLACE: {target_index}; DISCARDED: {card_label(replaced)}")
        _clear_after(game, player, target_index)
        return _finish_turn(tx, game, player, f"took a {card} from the discard pile", rng)

    return store.atomically(apply)


# --- resolve a number draw ---

def keep_pending_draw(store: MemoryStore, game_id: str, player_id: str) -> None:
    def apply(tx: Transaction) -> None:
        game, player = _load_turn(tx, game_id, player_id, ("resolve-draw",), "Not in resolve draw phase.")
        ensure(is_number(player.pending_draw), InvalidPendingState, "No pending draw to keep.")
        game.turn_phase = "choose-swap"
        tx.set_game(game)

    store.atomically(apply)


def swap_pending_draw(
    store: MemoryStore,
    game_id: str,
    player_id: str,
    target_index: int,
    rng: Rng = random.random,
) -> TurnResolution:
    def apply(tx: Transaction) -> TurnResolution:
        game, player = _load_turn(tx, game_id, player_id, ("resolve-draw", "choose-swap"), "Not in swap phase.")
        ensure(is_number(player.pending_draw), InvalidPendingState, "No pending draw to keep.")
        _check_slot(player, target_index)

        card = player.pending_draw
        assert card is not None
        replaced = player.grid[target_index]
        assert replaced is not None
        player.grid[target_index] = card
        player.revealed[target_index] = True
        player.pending_draw = None
        player.pending_draw_source = None
        game.discard.append(replaced)
        append_log(game, f"SWAP: {player_id} {card} -> {target_index}; DISCARDED: {card_label(replaced)}")
        _clear_after(game, player, target_index)
        return _finish_turn(tx, game, player, f"swapped in a {card}", rng)

    return store.atomically(apply)


def discard_pending_draw(store: MemoryStore, game_id: str, player_id: str) -> None:
    def apply(tx: Transaction) -> None:
        game, player = _load_turn(tx, game_id, player_id, ("resolve-draw",), "Not in resolve draw phase.")
        ensure(is_number(player.pending_draw), InvalidPendingState, "No pending draw to discard.")
        ensure(bool(hidden_slots(player.grid, player.revealed)), PreconditionNotMet, "No hidden card left to reveal.")

        card = player.pending_draw
        assert card is not None
        game.discard.append(card)
        player.pending_draw = None
        player.pending_draw_source = None
        game.turn_phase = "resolve"
        append_log(game, f"DISCARD: {player_id} -> {card}")
        tx.set_player(game_id, player)
        tx.set_game(game)

    store.atomically(apply)


def reveal_after_discard(
    store: MemoryStore,
    game_id: str,
    player_id: str,
    target_index: int,
    rng: Rng = random.random,
) -> TurnResolution:
    def apply(tx: Transaction) -> TurnResolution:
        game, player = _load_turn(tx, game_id, player_id, ("resolve",), "Not in resolve phase.")
        ensure(valid_index(target_index), InvalidTarget, "Invalid index.")
        ensure(not player.revealed[target_index], InvalidTarget, "Slot already revealed.")
        ensure(player.grid[target_index] is not None, InvalidTarget, "Slot is empty.")

        player.revealed[target_index] = True
        card = player.grid[target_index]
        append_log(game, f"FLIP: {player_id} {target_index} -> {card_label(card)}")
        _clear_after(game, player, target_index)
        return _finish_turn(tx, game, player, f"flipped a {card_label(card)}", rng)

    return store.atomically(apply)


# --- items (spike mode) ---

def discard_item_for_reveal(store: MemoryStore, game_id: str, player_id: str) -> None:
    def apply(tx: Transaction) -> None:
        game, player = _load_turn(tx, game_id, player_id, ("resolve-item",), "Not resolving an item.")
        ensure(is_item(player.pending_draw), InvalidPendingState, "No pending item to discard.")
        ensure(
            player.pending_draw_source == "deck",
            InvalidPendingState,
            "Items taken from the discard pile must be used.",
        )
        ensure(bool(hidden_slots(player.grid, player.revealed)), PreconditionNotMet, "No hidden card left to reveal.")

        item = player.pending_draw
        assert item is not None
        game.discard.append(item)
        player.pending_draw = None
        player.pending_draw_source = None
        game.turn_phase = "resolve"
        game.selected_discard_player_id = None
        append_log(game, f"DISCARD_ITEM: {player_id} -> {card_label(item)}")
        tx.set_player(game_id, player)
        tx.set_game(game)

    store.atomically(apply)


def _target_player(
    tx: Transaction,
    game: GameState,
    actor: PlayerState,
    target: SlotRef,
) -> PlayerState:
    ensure(target.player_id in game.active_player_order, InvalidTarget, "Target player is not in this game.")
    p = actor if target.player_id == actor.id else tx.get_player(game.id, target.player_id)
    _check_slot(p, target.index)
    return p


def use_item_card(
    store: MemoryStore,
    game_id: str,
    player_id: str,
    code: ItemCode,
    targets: Sequence[SlotRef] = (),
    value: Optional[int] = None,
    rng: Rng = random.random,
) -> TurnResolution:
    """Resolve the pending item ``code`` against ``targets``.

    A rerolls a number card, B shuffles the actor's own grid, C writes the
    chosen ``value``, D freezes the target's owner for one turn and E swaps
    two slots (which may belong to different players).
    """

    def apply(tx: Transaction) -> TurnResolution:
        game, actor = _load_turn(tx, game_id, player_id, ("resolve-item",), "Not resolving an item.")
        item = actor.pending_draw
        ensure(isinstance(item, ItemCard), InvalidPendingState, "No pending item to use.")
        assert isinstance(item, ItemCard)
        ensure(code in ITEM_CODES and item.code == code, InvalidPendingState, "Pending item does not match.")
        ensure(len(targets) == ITEM_TARGETS[code], InvalidTarget, f"Item {code} needs {ITEM_TARGETS[code]} target(s).")

        resolved: List[Tuple[PlayerState, int]] = [(_target_player(tx, game, actor, t), t.index) for t in targets]
        affected: Dict[str, PlayerState] = {}

        if code == "A":
            p, i = resolved[0]
            old = p.grid[i]
            ensure(is_number(old), InvalidTarget, "Only number cards can be rerolled.")
            assert old is not None
            game.deck = shuffle(game.deck + [old], rng)
            new_value, game.deck = draw_random_number(game.deck, rng)
            p.grid[i] = new_value
            affected[p.id] = p
            append_log(game, f"ITEM_A: {player_id} reroll {p.id}:{i} {old} -> {new_value}")
            narration = "rerolled a card"
        elif code == "B":
            pairs = shuffle(list(zip(actor.grid, actor.revealed)), rng)
            actor.grid = [c for c, _ in pairs]
            actor.revealed = [r for _, r in pairs]
            affected[actor.id] = actor
            append_log(game, f"ITEM_B: {player_id} shuffled their grid")
            narration = "shuffled their grid"
        elif code == "C":
            ensure(
                is_number(value) and value is not None and MIN_VALUE <= value <= MAX_VALUE,
                InvalidTarget,
                f"Wild value must be between {MIN_VALUE} and {MAX_VALUE}.",
            )
            assert value is not None
            p, i = resolved[0]
            old = p.grid[i]
            assert old is not None
            game.discard.append(old)
            p.grid[i] = value
            p.revealed[i] = True
            affected[p.id] = p
            append_log(game, f"ITEM_C: {player_id} set {p.id}:{i} {card_label(old)} -> {value}")
            narration = f"set a card to {value}"
        elif code == "D":
            p, _i = resolved[0]
            ensure(p.id != actor.id, InvalidTarget, "You cannot freeze yourself.")
            if p.id not in game.frozen_player_ids:
                game.frozen_player_ids.append(p.id)
            append_log(game, f"ITEM_D: {player_id} froze {p.id}")
            narration = "froze a player"
        else:
            (p1, i1), (p2, i2) = resolved
            ensure(not (p1.id == p2.id and i1 == i2), InvalidTarget, "Pick two different cards to swap.")
            c1, r1 = p1.grid[i1], p1.revealed[i1]
            c2, r2 = p2.grid[i2], p2.revealed[i2]
            p1.grid[i1], p1.revealed[i1] = c2, r2
            p2.grid[i2], p2.revealed[i2] = c1, r1
            affected[p1.id] = p1
            affected[p2.id] = p2
            append_log(game, f"ITEM_E: {player_id} swap {p1.id}:{i1} <-> {p2.id}:{i2}")
            narration = "swapped two cards"

        for p in affected.values():
            _clear_all(game, p)
            if p.id != actor.id:
                tx.set_player(game_id, p)

        game.discard.append(item)
        actor.pending_draw = None
        actor.pending_draw_source = None
        return _finish_turn(tx, game, actor, f"used item {code}: {narration}", rng)

    return store.atomically(apply)


# --- rounds ---

def _deal_round(game: GameState, players: Iterable[PlayerState], starter_id: str, rng: Rng) -> None:
    # Grids and the first discard only ever get number cards
    numbers = shuffle(create_deck(), rng)
    for p in players:
        p.grid = [numbers.pop() for _ in range(GRID_SIZE)]
        p.revealed = [False] * GRID_SIZE
        p.pending_draw = None
        p.pending_draw_source = None
        p.is_ready = False
        p.round_score = 0
    discard: List[Card] = [numbers.pop()]
    deck: List[Card] = list(numbers)
    items = create_item_cards(game.config.item_density)
    if items:
        deck = shuffle(deck + items, rng)

    game.deck = deck
    game.discard = discard
    game.cleared = []
    game.turn_phase = "choose-draw"
    game.status = "playing"
    game.current_player_id = starter_id
    game.ending_player_id = None
    game.final_turn_remaining_ids = None
    game.selected_discard_player_id = None
    game.frozen_player_ids = []
    game.round_scores = {}
    game.last_turn_player_id = None
    game.last_turn_action = None
    append_log(game, f"ROUND_START: {game.round_number}; STARTER: {starter_id}; INIT_DISCARD: {discard[-1]}")


def start_game(
    store: MemoryStore,
    game_id: str,
    host_id: str,
    players: Sequence[Tuple[str, str]],
    config: Optional[GameConfig] = None,
    rng: Rng = random.random,
) -> GameState:
    """Create the game and its player records and deal the first round.

    ``players`` is the seating order as ``(player_id, display_name)`` pairs.
    """
    cfg = config if config is not None else GameConfig()
    order = [pid for pid, _name in players]

    def apply(tx: Transaction) -> GameState:
        ensure(len(order) > 0, PreconditionNotMet, "Add at least one player before starting.")
        ensure(len(set(order)) == len(order), InvalidTarget, "Player ids must be unique.")
        ensure(host_id in order, PreconditionNotMet, "Host must be one of the players.")
        ensure(len(order) * GRID_SIZE < DECK_SIZE, PreconditionNotMet, "Too many players for one deck.")
        ensure(cfg.score_limit > 0, PreconditionNotMet, "Score limit must be positive.")
        ensure(tx.find_game(game_id) is None, PreconditionNotMet, "Game already exists.")

        game = GameState(
            id=game_id,
            host_id=host_id,
            active_player_order=list(order),
            current_player_id=order[0],
            config=GameConfig(
                spike_mode=cfg.spike_mode,
                spike_item_count=cfg.spike_item_count,
                spike_row_clear=cfg.spike_row_clear,
                score_limit=cfg.score_limit,
            ),
            round_number=1,
        )
        states = [PlayerState(id=pid, display_name=name) for pid, name in players]
        _deal_round(game, states, order[0], rng)
        for p in states:
            tx.set_player(game_id, p)
        tx.set_game(game)
        return game

    return store.atomically(apply)


def _pick_starter(order: Sequence[str], round_scores: Dict[str, int]) -> str:
    # Highest previous round score opens; first in seating order on ties
    best = order[0]
    for pid in order:
        if round_scores.get(pid, 0) > round_scores.get(best, 0):
            best = pid
    return best


def start_next_round(
    store: MemoryStore,
    game_id: str,
    player_id: str,
    rng: Rng = random.random,
) -> GameState:
    def apply(tx: Transaction) -> GameState:
        game = tx.get_game(game_id)
        ensure(game.status != "game-complete", WrongPhase, "The game is over.")
        ensure(game.status == "round-complete", WrongPhase, "Round is not complete.")
        ensure(game.host_id == player_id, PermissionDenied, "Only the host can start the next round.")
        players = [tx.get_player(game_id, pid) for pid in game.active_player_order]
        ensure(
            all(p.is_ready for p in players),
            PreconditionNotMet,
            "All players must be ready to start the next round.",
        )

        starter = _pick_starter(game.active_player_order, game.round_scores)
        game.round_number += 1
        _deal_round(game, players, starter, rng)
        for p in players:
            tx.set_player(game_id, p)
        tx.set_game(game)
        return game

    return store.atomically(apply)


def ready_for_next_round(store: MemoryStore, game_id: str, player_id: str) -> None:
    def apply(tx: Transaction) -> None:
        game = tx.get_game(game_id)
        ensure(game.status == "round-complete", WrongPhase, "Round is not complete.")
        ensure(player_id in game.active_player_order, NotFound, "Player not found.")
        player = tx.get_player(game_id, player_id)
        player.is_ready = True
        tx.set_player(game_id, player)

    store.atomically(apply)
