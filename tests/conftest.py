from typing import Callable, List, Optional, Sequence

import pytest

from skyjo import GameConfig, GameState, MemoryStore, PlayerState
from skyjo.types import Card, Slot


GAME_ID = "g1"

# Column values (1,5,9) (2,6,10) (3,7,11) (4,8,12): nothing matches
DEFAULT_GRID: List[Slot] = list(range(1, 13))


def _make_player(
    pid: str,
    grid: Optional[Sequence[Slot]] = None,
    revealed: Optional[Sequence[bool]] = None,
    name: Optional[str] = None,
    total: int = 0,
    pending: Optional[Card] = None,
    source: Optional[str] = None,
    ready: bool = False,
) -> PlayerState:
    g = list(DEFAULT_GRID if grid is None else grid)
    rv = [False] * 12 if revealed is None else list(revealed)
    # Empty slots are always revealed
    rv = [r or c is None for c, r in zip(g, rv)]
    return PlayerState(
        id=pid,
        display_name=name or pid.upper(),
        grid=g,
        revealed=rv,
        pending_draw=pending,
        pending_draw_source=source,  # type: ignore[arg-type]
        is_ready=ready,
        total_score=total,
    )


@pytest.fixture
def make_player() -> Callable[..., PlayerState]:
    return _make_player


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def seed(store: MemoryStore) -> Callable[..., GameState]:
    def _seed(
        players: List[PlayerState],
        *,
        deck: Optional[Sequence[Card]] = None,
        discard: Optional[Sequence[Card]] = None,
        phase: str = "choose-draw",
        current: Optional[str] = None,
        host: Optional[str] = None,
        config: Optional[GameConfig] = None,
        **fields: object,
    ) -> GameState:
        game = GameState(
            id=GAME_ID,
            host_id=host or players[0].id,
            active_player_order=[p.id for p in players],
            current_player_id=current or players[0].id,
            deck=list(deck) if deck is not None else [4] * 20,
            discard=list(discard) if discard is not None else [0],
            turn_phase=phase,  # type: ignore[arg-type]
            config=config or GameConfig(),
            **fields,  # type: ignore[arg-type]
        )

        def apply(tx) -> None:
            for p in players:
                tx.set_player(GAME_ID, p)
            tx.set_game(game)

        store.atomically(apply)
        return game

    return _seed
