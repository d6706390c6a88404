from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


ItemCodeIn = Literal["A", "B", "C", "D", "E"]


class PlayerSeat(BaseModel):
    id: str = Field(..., min_length=1)
    displayName: str = ""


class NewGameReq(BaseModel):
    gameId: Optional[str] = None
    hostId: str
    players: List[PlayerSeat] = Field(..., min_length=1)
    spikeMode: bool = False
    spikeItemCount: Literal["none", "low", "medium", "high"] = "low"
    spikeRowClear: bool = False
    scoreLimit: int = Field(100, gt=0)


class ActorReq(BaseModel):
    playerId: str


class TargetReq(ActorReq):
    targetIndex: int = Field(..., ge=0, le=11)


class SlotRefIn(BaseModel):
    playerId: str
    index: int = Field(..., ge=0, le=11)


class UseItemReq(ActorReq):
    code: ItemCodeIn
    targets: List[SlotRefIn] = Field(default_factory=list, max_length=2)
    value: Optional[int] = Field(None, ge=-2, le=12)


class GetStateResp(BaseModel):
    state: Dict[str, Any]


class StateEnvelope(BaseModel):
    gameId: str
    state: Dict[str, Any]
