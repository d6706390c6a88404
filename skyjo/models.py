from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, cast

from .types import (
    GRID_SIZE,
    ITEM_CODES,
    ITEM_DESCRIPTIONS,
    MAX_VALUE,
    MIN_VALUE,
    Card,
    DrawSource,
    GameStatus,
    ItemCard,
    ItemDensity,
    Slot,
    TurnPhase,
)

SCHEMA_VERSION = 1
SCORE_LIMIT = 100

TURN_PHASES = ("choose-draw", "resolve-draw", "choose-swap", "resolve", "resolve-item")
STATUSES = ("playing", "round-complete", "game-complete")


@dataclass
class GameConfig:
    spike_mode: bool = False
    spike_item_count: ItemDensity = "low"
    spike_row_clear: bool = False
    score_limit: int = SCORE_LIMIT

    @property
    def item_density(self) -> ItemDensity:
        return self.spike_item_count if self.spike_mode else "none"

    @property
    def row_clears(self) -> bool:
        return self.spike_mode and self.spike_row_clear


@dataclass
class PlayerState:
    id: str
    display_name: str
    grid: List[Slot] = field(default_factory=lambda: [None] * GRID_SIZE)
    revealed: List[bool] = field(default_factory=lambda: [True] * GRID_SIZE)
    pending_draw: Optional[Card] = None
    pending_draw_source: Optional[DrawSource] = None
    is_ready: bool = False
    round_score: int = 0
    total_score: int = 0


@dataclass
class GameState:
    id: str
    host_id: str
    active_player_order: List[str]
    current_player_id: str
    deck: List[Card] = field(default_factory=list)
    discard: List[Card] = field(default_factory=list)
    # Cards removed from grids by line clears
    cleared: List[Card] = field(default_factory=list)
    turn_phase: TurnPhase = "choose-draw"
    config: GameConfig = field(default_factory=GameConfig)
    status: GameStatus = "playing"
    ending_player_id: Optional[str] = None
    final_turn_remaining_ids: Optional[List[str]] = None
    selected_discard_player_id: Optional[str] = None
    frozen_player_ids: List[str] = field(default_factory=list)
    round_number: int = 1
    round_scores: Dict[str, int] = field(default_factory=dict)
    last_turn_player_id: Optional[str] = None
    last_turn_action: Optional[str] = None
    logs: List[str] = field(default_factory=list)

    @property
    def spike_mode(self) -> bool:
        return self.config.spike_mode

    def top_discard(self) -> Optional[Card]:
        return self.discard[-1] if self.discard else None


def append_log(game: GameState, msg: str) -> None:
    game.logs.append(msg)


# --- JSON serialization (pure, no I/O) ---

def card_to_obj(card: Slot) -> object:
    if card is None:
        return None
    if isinstance(card, ItemCard):
        return {"code": card.code}
    return int(card)


def obj_to_card(obj: object) -> Slot:
    if obj is None:
        return None
    if isinstance(obj, dict):
        code = obj.get("code")
        assert code in ITEM_CODES, f"Unknown item code: {code}"
        return ItemCard(code)
    assert isinstance(obj, int) and not isinstance(obj, bool), "Invalid card value"
    assert MIN_VALUE <= obj <= MAX_VALUE, f"Invalid value: {obj}"
    return int(obj)


def _cards_to_obj(cards: List[Card]) -> List[object]:
    return [card_to_obj(c) for c in cards]


def _obj_to_cards(objs: object) -> List[Card]:
    assert isinstance(objs, list), "Card list required"
    cards: List[Card] = []
    for o in objs:
        card = obj_to_card(o)
        assert card is not None, "Card list cannot hold empty slots"
        cards.append(card)
    return cards


def player_to_json(p: PlayerState) -> Dict[str, object]:
    return {
        "id": p.id,
        "displayName": p.display_name,
        "grid": [card_to_obj(c) for c in p.grid],
        "revealed": [bool(r) for r in p.revealed],
        "pendingDraw": card_to_obj(p.pending_draw),
        "pendingDrawSource": p.pending_draw_source,
        "isReady": bool(p.is_ready),
        "roundScore": int(p.round_score),
        "totalScore": int(p.total_score),
    }


def player_from_json(data: Mapping[str, Any]) -> PlayerState:
    pid = data.get("id")
    name = data.get("displayName", "")
    assert isinstance(pid, str) and pid, "Player id required"
    assert isinstance(name, str), "Invalid display name"
    grid_obj = data.get("grid")
    revealed_obj = data.get("revealed")
    assert isinstance(grid_obj, list) and len(grid_obj) == GRID_SIZE, f"Grid must have {GRID_SIZE} slots"
    assert isinstance(revealed_obj, list) and len(revealed_obj) == GRID_SIZE, "Revealed mask length mismatch"
    grid = [obj_to_card(o) for o in grid_obj]
    revealed = [bool(r) for r in revealed_obj]
    for card, rev in zip(grid, revealed):
        assert card is not None or rev, "Empty slot must be revealed"
    source = data.get("pendingDrawSource")
    assert source in (None, "deck", "discard"), "Invalid pending draw source"
    return PlayerState(
        id=pid,
        display_name=name,
        grid=grid,
        revealed=revealed,
        pending_draw=obj_to_card(data.get("pendingDraw")),
        pending_draw_source=cast(Optional[DrawSource], source),
        is_ready=bool(data.get("isReady", False)),
        round_score=int(data.get("roundScore", 0)),
        total_score=int(data.get("totalScore", 0)),
    )


def to_json(game: GameState, players: Mapping[str, PlayerState]) -> Dict[str, object]:
    cfg = game.config
    return {
        "schemaVersion": SCHEMA_VERSION,
        "id": game.id,
        "hostId": game.host_id,
        "config": {
            "spikeMode": bool(cfg.spike_mode),
            "spikeItemCount": cfg.spike_item_count,
            "spikeRowClear": bool(cfg.spike_row_clear),
            "scoreLimit": int(cfg.score_limit),
        },
        "activePlayerOrder": list(game.active_player_order),
        "currentPlayerId": game.current_player_id,
        "deck": _cards_to_obj(game.deck),
        "discard": _cards_to_obj(game.discard),
        "cleared": _cards_to_obj(game.cleared),
        "turnPhase": game.turn_phase,
        "spikeMode": bool(cfg.spike_mode),
        "status": game.status,
        "endingPlayerId": game.ending_player_id,
        "finalTurnRemainingIds": None if game.final_turn_remaining_ids is None else list(game.final_turn_remaining_ids),
        "selectedDiscardPlayerId": game.selected_discard_player_id,
        "frozenPlayerIds": list(game.frozen_player_ids),
        "roundNumber": int(game.round_number),
        "roundScores": {k: int(v) for k, v in game.round_scores.items()},
        "lastTurnPlayerId": game.last_turn_player_id,
        "lastTurnAction": game.last_turn_action,
        "logs": list(game.logs),
        "players": [player_to_json(players[pid]) for pid in game.active_player_order if pid in players],
    }


def from_json(data: Mapping[str, Any]) -> Tuple[GameState, Dict[str, PlayerState]]:
    assert isinstance(data, dict), "Data must be a dict"
    assert data.get("schemaVersion") == SCHEMA_VERSION, "Unsupported schemaVersion"

    cfgd = data.get("config")
    assert isinstance(cfgd, dict), "Missing config"
    density = cfgd.get("spikeItemCount", "low")
    assert density in ("none", "low", "medium", "high"), "Invalid spikeItemCount"
    cfg = GameConfig(
        spike_mode=bool(cfgd.get("spikeMode", False)),
        spike_item_count=cast(ItemDensity, density),
        spike_row_clear=bool(cfgd.get("spikeRowClear", False)),
        score_limit=int(cfgd.get("scoreLimit", SCORE_LIMIT)),
    )

    order = data.get("activePlayerOrder")
    assert isinstance(order, list) and order, "activePlayerOrder required"
    assert all(isinstance(pid, str) for pid in order), "Invalid player id in order"
    cpid = data.get("currentPlayerId")
    assert cpid in order, "currentPlayerId not found in players"
    phase = data.get("turnPhase")
    assert phase in TURN_PHASES, f"Invalid turnPhase: {phase}"
    status = data.get("status", "playing")
    assert status in STATUSES, f"Invalid status: {status}"

    remaining = data.get("finalTurnRemainingIds")
    assert remaining is None or isinstance(remaining, list)
    scores = data.get("roundScores") or {}
    assert isinstance(scores, dict)

    game = GameState(
        id=str(data.get("id", "")),
        host_id=str(data.get("hostId", "")),
        active_player_order=list(order),
        current_player_id=cast(str, cpid),
        deck=_obj_to_cards(data.get("deck", [])),
        discard=_obj_to_cards(data.get("discard", [])),
        cleared=_obj_to_cards(data.get("cleared", [])),
        turn_phase=cast(TurnPhase, phase),
        config=cfg,
        status=cast(GameStatus, status),
        ending_player_id=data.get("endingPlayerId"),
        final_turn_remaining_ids=None if remaining is None else [str(x) for x in remaining],
        selected_discard_player_id=data.get("selectedDiscardPlayerId"),
        frozen_player_ids=[str(x) for x in data.get("frozenPlayerIds", [])],
        round_number=int(data.get("roundNumber", 1)),
        round_scores={str(k): int(v) for k, v in scores.items()},
        last_turn_player_id=data.get("lastTurnPlayerId"),
        last_turn_action=data.get("lastTurnAction"),
        logs=[str(x) for x in data.get("logs", [])],
    )

    players: Dict[str, PlayerState] = {}
    p_list = data.get("players", [])
    assert isinstance(p_list, list), "players list required"
    for pobj in p_list:
        assert isinstance(pobj, dict), "Invalid player entry"
        p = player_from_json(pobj)
        players[p.id] = p
    return game, players


def public_view(game: GameState, players: Mapping[str, PlayerState]) -> Dict[str, object]:
    """Persisted shape with hidden information removed.

    Unrevealed grid cards are sent as null and the draw pile only as a count;
    pending draws stay visible since every client shows the drawn card. Spike
    games also carry the item rules text keyed by code.
    """
    data = to_json(game, players)
    deck_count = len(game.deck)
    data.pop("deck")
    data["deckCount"] = deck_count
    data["discardTop"] = card_to_obj(game.top_discard())
    if game.config.spike_mode:
        data["itemDescriptions"] = dict(ITEM_DESCRIPTIONS)
    for pobj in cast(List[Dict[str, Any]], data["players"]):
        grid = cast(List[object], pobj["grid"])
        revealed = cast(List[bool], pobj["revealed"])
        pobj["grid"] = [g if r else None for g, r in zip(grid, revealed)]
    return data
