from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import random

from .deck import Rng, refill_from_discard
from .grid import is_fully_revealed
from .models import GameState, append_log


@dataclass
class TurnResolution:
    round_complete: bool
    ending_player_id: Optional[str]
    final_turn_remaining_ids: Optional[List[str]]
    next_player_id: str
    # Frozen players passed over on the way to ``next_player_id``
    skipped: List[str] = field(default_factory=list)
    deck_refilled: bool = False


def next_player_id(order: Sequence[str], current: str) -> str:
    if current not in order:
        return order[0]
    return order[(order.index(current) + 1) % len(order)]


def _advance(
    order: Sequence[str],
    player_id: str,
    frozen: List[str],
    remaining: Optional[List[str]],
) -> Tuple[str, List[str]]:
    # A frozen player loses one turn; in the final lap that turn was their last
    skipped: List[str] = []
    candidate = next_player_id(order, player_id)
    for _ in range(len(order)):
        if candidate not in frozen:
            break
        frozen.remove(candidate)
        skipped.append(candidate)
        if remaining is not None and candidate in remaining:
            remaining.remove(candidate)
        candidate = next_player_id(order, candidate)
    return candidate, skipped


def resolve_turn(
    game: GameState,
    player_id: str,
    revealed: Sequence[bool],
    rng: Rng = random.random,
) -> TurnResolution:
    """Close ``player_id``'s turn on ``game`` (mutated in place).

    ``revealed`` is the acting player's mask after the action. The caller runs
    the scoring pass when the resolution reports a completed round.
    """
    order = game.active_player_order
    ending = game.ending_player_id
    remaining = None if game.final_turn_remaining_ids is None else list(game.final_turn_remaining_ids)

    if ending is None and is_fully_revealed(revealed):
        ending = player_id
        remaining = [pid for pid in order if pid != player_id]
        append_log(game, f"END_TRIGGER: {player_id}")

    if ending is not None and remaining is not None and player_id in remaining:
        remaining.remove(player_id)

    nxt = player_id
    skipped: List[str] = []
    if not (ending is not None and remaining == []):
        nxt, skipped = _advance(order, player_id, game.frozen_player_ids, remaining)
        for pid in skipped:
            append_log(game, f"FROZEN_SKIP: {pid}")

    game.ending_player_id = ending
    game.turn_phase = "choose-draw"
    game.selected_discard_player_id = None

    if ending is not None and remaining == []:
        game.current_player_id = ending
        game.final_turn_remaining_ids = []
        game.status = "round-complete"
        append_log(game, f"ROUND_COMPLETE: round {game.round_number}")
        return TurnResolution(
            round_complete=True,
            ending_player_id=ending,
            final_turn_remaining_ids=[],
            next_player_id=ending,
            skipped=skipped,
        )

    game.current_player_id = nxt
    game.final_turn_remaining_ids = remaining
    refilled = False
    if not game.deck and len(game.discard) > 1:
        game.deck, game.discard = refill_from_discard(game.deck, game.discard, rng)
        refilled = True
        append_log(game, f"DECK_REFILL: {len(game.deck)} cards")
    return TurnResolution(
        round_complete=False,
        ending_player_id=ending,
        final_turn_remaining_ids=remaining,
        next_player_id=nxt,
        skipped=skipped,
        deck_refilled=refilled,
    )
