from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple, TypeVar
import logging
import random
import uuid

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from backend.config import Config
from backend.models import (
    ActorReq,
    GetStateResp,
    NewGameReq,
    StateEnvelope,
    TargetReq,
    UseItemReq,
)

from skyjo import actions
from skyjo.errors import (
    GameError,
    INVALID_PENDING_STATE,
    INVALID_TARGET,
    NOT_FOUND,
    OUT_OF_TURN,
    PERMISSION_DENIED,
    PRECONDITION_NOT_MET,
    TRANSACTION_ABORTED,
    WRONG_PHASE,
)
from skyjo.models import GameConfig, public_view
from skyjo.scoring import final_standings
from skyjo.store import MemoryStore
from skyjo.types import SlotRef


logging.basicConfig(level=Config.LOG_LEVEL)
logger = logging.getLogger(__name__)

T = TypeVar("T")

STATUS_BY_CODE: Dict[str, int] = {
    NOT_FOUND: 404,
    OUT_OF_TURN: 409,
    WRONG_PHASE: 409,
    INVALID_PENDING_STATE: 409,
    PRECONDITION_NOT_MET: 409,
    INVALID_TARGET: 422,
    PERMISSION_DENIED: 403,
    TRANSACTION_ABORTED: 503,
}

# Shared document store for every game served by this process
STORE = MemoryStore(max_retries=Config.TX_RETRIES)

_rng = random.Random(int(Config.SEED)).random if Config.SEED else random.random


def _new_game_id() -> str:
    return uuid.uuid4().hex


def _view(game_id: str) -> Dict[str, Any]:
    game = STORE.read_game(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="Game not found")
    return public_view(game, STORE.read_players(game_id))


def _call(what: str, fn: Callable[[], T]) -> T:
    try:
        return fn()
    except GameError as e:
        logger.info("%s rejected: %s", what, e)
        raise HTTPException(
            status_code=STATUS_BY_CODE.get(e.code, 400),
            detail={"code": e.code, "message": e.message},
        )
    except AssertionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("%s failed", what)
        raise HTTPException(status_code=500, detail=f"{what} failed: {e}")


app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> Dict[str, bool]:
    return {"ok": True}


@app.post("/games", response_model=StateEnvelope)
def new_game(req: NewGameReq) -> StateEnvelope:
    gid = req.gameId or _new_game_id()
    seats: List[Tuple[str, str]] = [(p.id, p.displayName or p.id) for p in req.players]
    cfg = GameConfig(
        spike_mode=req.spikeMode,
        spike_item_count=req.spikeItemCount,
        spike_row_clear=req.spikeRowClear,
        score_limit=req.scoreLimit,
    )
    _call("new-game", lambda: actions.start_game(STORE, gid, req.hostId, seats, cfg, rng=_rng))
    logger.info("game %s started with %d players", gid, len(seats))
    return StateEnvelope(gameId=gid, state=_view(gid))


@app.get("/games/{gameId}", response_model=GetStateResp)
def get_game(gameId: str) -> GetStateResp:
    return GetStateResp(state=_view(gameId))


@app.get("/games/{gameId}/standings")
def get_standings(gameId: str) -> Dict[str, Any]:
    _view(gameId)
    players = STORE.read_players(gameId)
    return {
        "standings": [
            {"place": place, "id": p.id, "displayName": p.display_name, "totalScore": p.total_score}
            for place, p in final_standings(list(players.values()))
        ]
    }


@app.post("/games/{gameId}/draw-from-deck", response_model=GetStateResp)
def draw_from_deck(gameId: str, req: ActorReq) -> GetStateResp:
    _call("draw-from-deck", lambda: actions.draw_from_deck(STORE, gameId, req.playerId))
    return GetStateResp(state=_view(gameId))


@app.post("/games/{gameId}/select-discard", response_model=GetStateResp)
def select_discard(gameId: str, req: ActorReq) -> GetStateResp:
    _call("select-discard", lambda: actions.select_discard(STORE, gameId, req.playerId))
    return GetStateResp(state=_view(gameId))


@app.post("/games/{gameId}/draw-from-discard", response_model=GetStateResp)
def draw_from_discard(gameId: str, req: TargetReq) -> GetStateResp:
    _call(
        "draw-from-discard",
        lambda: actions.draw_from_discard(STORE, gameId, req.playerId, req.targetIndex, rng=_rng),
    )
    return GetStateResp(state=_view(gameId))


@app.post("/games/{gameId}/keep-pending-draw", response_model=GetStateResp)
def keep_pending_draw(gameId: str, req: ActorReq) -> GetStateResp:
    _call("keep-pending-draw", lambda: actions.keep_pending_draw(STORE, gameId, req.playerId))
    return GetStateResp(state=_view(gameId))


@app.post("/games/{gameId}/swap-pending-draw", response_model=GetStateResp)
def swap_pending_draw(gameId: str, req: TargetReq) -> GetStateResp:
    _call(
        "swap-pending-draw",
        lambda: actions.swap_pending_draw(STORE, gameId, req.playerId, req.targetIndex, rng=_rng),
    )
    return GetStateResp(state=_view(gameId))


@app.post("/games/{gameId}/discard-pending-draw", response_model=GetStateResp)
def discard_pending_draw(gameId: str, req: ActorReq) -> GetStateResp:
    _call("discard-pending-draw", lambda: actions.discard_pending_draw(STORE, gameId, req.playerId))
    return GetStateResp(state=_view(gameId))


@app.post("/games/{gameId}/reveal-after-discard", response_model=GetStateResp)
def reveal_after_discard(gameId: str, req: TargetReq) -> GetStateResp:
    _call(
        "reveal-after-discard",
        lambda: actions.reveal_after_discard(STORE, gameId, req.playerId, req.targetIndex, rng=_rng),
    )
    return GetStateResp(state=_view(gameId))


@app.post("/games/{gameId}/discard-item-for-reveal", response_model=GetStateResp)
def discard_item_for_reveal(gameId: str, req: ActorReq) -> GetStateResp:
    _call("discard-item-for-reveal", lambda: actions.discard_item_for_reveal(STORE, gameId, req.playerId))
    return GetStateResp(state=_view(gameId))


@app.post("/games/{gameId}/use-item-card", response_model=GetStateResp)
def use_item_card(gameId: str, req: UseItemReq) -> GetStateResp:
    targets = [SlotRef(player_id=t.playerId, index=t.index) for t in req.targets]
    _call(
        "use-item-card",
        lambda: actions.use_item_card(STORE, gameId, req.playerId, req.code, targets, req.value, rng=_rng),
    )
    return GetStateResp(state=_view(gameId))


@app.post("/games/{gameId}/start-next-round", response_model=GetStateResp)
def start_next_round(gameId: str, req: ActorReq) -> GetStateResp:
    _call("start-next-round", lambda: actions.start_next_round(STORE, gameId, req.playerId, rng=_rng))
    return GetStateResp(state=_view(gameId))


@app.post("/games/{gameId}/ready-for-next-round", response_model=GetStateResp)
def ready_for_next_round(gameId: str, req: ActorReq) -> GetStateResp:
    _call("ready-for-next-round", lambda: actions.ready_for_next_round(STORE, gameId, req.playerId))
    return GetStateResp(state=_view(gameId))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("backend.app:app", host="0.0.0.0", port=8000, reload=True)
