from .types import Card, ItemCard, ItemCode, SlotRef, GRID_SIZE, ITEM_CODES, ITEM_DESCRIPTIONS
from .errors import (
    GameError,
    NotFound,
    OutOfTurn,
    WrongPhase,
    InvalidTarget,
    InvalidPendingState,
    PermissionDenied,
    PreconditionNotMet,
    TransactionAborted,
)
from .deck import create_deck, create_item_cards, shuffle, refill_from_discard, card_counts, full_composition
from .grid import (
    column_slots,
    row_slots,
    clear_column_if_matched,
    clear_all_matched_columns,
    is_fully_revealed,
    score,
)
from .models import GameConfig, GameState, PlayerState, to_json, from_json, public_view
from .scoring import RoundResult, PlayerUpdate, score_round, should_double, final_standings
from .turns import TurnResolution, resolve_turn, next_player_id
from .store import MemoryStore, Transaction
from .actions import (
    start_game,
    draw_from_deck,
    select_discard,
    draw_from_discard,
    keep_pending_draw,
    swap_pending_draw,
    discard_pending_draw,
    reveal_after_discard,
    discard_item_for_reveal,
    use_item_card,
    start_next_round,
    ready_for_next_round,
)

__all__ = [
    "Card",
    "ItemCard",
    "ItemCode",
    "SlotRef",
    "GRID_SIZE",
    "ITEM_CODES",
    "ITEM_DESCRIPTIONS",
    "GameError",
    "NotFound",
    "OutOfTurn",
    "WrongPhase",
    "InvalidTarget",
    "InvalidPendingState",
    "PermissionDenied",
    "PreconditionNotMet",
    "TransactionAborted",
    "create_deck",
    "create_item_cards",
    "shuffle",
    "refill_from_discard",
    "card_counts",
    "full_composition",
    "column_slots",
    "row_slots",
    "clear_column_if_matched",
    "clear_all_matched_columns",
    "is_fully_revealed",
    "score",
    "GameConfig",
    "GameState",
    "PlayerState",
    "to_json",
    "from_json",
    "public_view",
    "RoundResult",
    "PlayerUpdate",
    "score_round",
    "should_double",
    "final_standings",
    "TurnResolution",
    "resolve_turn",
    "next_player_id",
    "MemoryStore",
    "Transaction",
    "start_game",
    "draw_from_deck",
    "select_discard",
    "draw_from_discard",
    "keep_pending_draw",
    "swap_pending_draw",
    "discard_pending_draw",
    "reveal_after_discard",
    "discard_item_for_reveal",
    "use_item_card",
    "start_next_round",
    "ready_for_next_round",
]
