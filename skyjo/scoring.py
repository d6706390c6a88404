from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .grid import clear_all_matched_columns, score
from .models import PlayerState, SCORE_LIMIT
from .types import GRID_SIZE, Card, Slot


@dataclass
class PlayerUpdate:
    grid: List[Slot]
    revealed: List[bool]
    round_score: int
    total_score: int
    is_ready: bool = False
    # Cards taken out by the forced end-of-round clears
    removed: List[Card] = field(default_factory=list)

    def apply(self, player: PlayerState) -> None:
        player.grid = list(self.grid)
        player.revealed = list(self.revealed)
        player.round_score = self.round_score
        player.total_score = self.total_score
        player.is_ready = self.is_ready


@dataclass
class RoundResult:
    round_scores: Dict[str, int]
    updates: Dict[str, PlayerUpdate]
    game_complete: bool
    doubled: bool = False


def should_double(ending_score: int, scores: Sequence[int]) -> bool:
    """True unless the ending player holds the sole lowest score."""
    lowest = min(scores)
    lowest_count = sum(1 for s in scores if s == lowest)
    return ending_score > lowest or (ending_score == lowest and lowest_count > 1)


def score_round(
    order: Sequence[str],
    players: Mapping[str, PlayerState],
    ending_player_id: Optional[str],
    score_limit: int = SCORE_LIMIT,
    rows: bool = False,
) -> RoundResult:
    # Force the full reveal, then clear lines that only match now
    raw: Dict[str, int] = {}
    cleared: Dict[str, Tuple[List[Slot], List[bool], List[Card]]] = {}
    for pid in order:
        p = players[pid]
        res = clear_all_matched_columns(p.grid, [True] * GRID_SIZE, rows=rows)
        cleared[pid] = (res.grid, res.revealed, res.removed)
        raw[pid] = score(res.grid)

    round_scores = dict(raw)
    doubled = False
    if ending_player_id is not None and ending_player_id in raw:
        ending_score = raw[ending_player_id]
        if should_double(ending_score, list(raw.values())):
            round_scores[ending_player_id] = ending_score * 2
            doubled = True

    updates: Dict[str, PlayerUpdate] = {}
    for pid in order:
        grid, revealed, removed = cleared[pid]
        updates[pid] = PlayerUpdate(
            grid=grid,
            revealed=revealed,
            round_score=round_scores[pid],
            total_score=players[pid].total_score + round_scores[pid],
            removed=removed,
        )
    game_complete = any(u.total_score >= score_limit for u in updates.values())
    return RoundResult(round_scores=round_scores, updates=updates, game_complete=game_complete, doubled=doubled)


def final_standings(players: Sequence[PlayerState]) -> List[Tuple[int, PlayerState]]:
    """Rank by total score ascending (lowest wins); ties share a place.

    Ties are listed by display name, then id, so the order is stable.
    """
    ordered = sorted(players, key=lambda p: (p.total_score, p.display_name, p.id))
    ranking: List[Tuple[int, PlayerState]] = []
    place = 0
    prev: Optional[int] = None
    for i, p in enumerate(ordered):
        if p.total_score != prev:
            place = i + 1
            prev = p.total_score
        ranking.append((place, p))
    return ranking
