from __future__ import annotations

from typing import Optional, Type

# Error codes
NOT_FOUND = "NOT_FOUND"
OUT_OF_TURN = "OUT_OF_TURN"
WRONG_PHASE = "WRONG_PHASE"
INVALID_TARGET = "INVALID_TARGET"
INVALID_PENDING_STATE = "INVALID_PENDING_STATE"
PERMISSION_DENIED = "PERMISSION_DENIED"
PRECONDITION_NOT_MET = "PRECONDITION_NOT_MET"
TRANSACTION_ABORTED = "TRANSACTION_ABORTED"


class GameError(Exception):
    """Base exception for rejected game actions."""

    code: str = "GAME_ERROR"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        if code is not None:
            self.code = code
        self.message = message
        super().__init__(f"[{self.code}] {message}")


class NotFound(GameError):
    code = NOT_FOUND


class OutOfTurn(GameError):
    code = OUT_OF_TURN


class WrongPhase(GameError):
    code = WRONG_PHASE


class InvalidTarget(GameError):
    code = INVALID_TARGET


class InvalidPendingState(GameError):
    code = INVALID_PENDING_STATE


class PermissionDenied(GameError):
    code = PERMISSION_DENIED


class PreconditionNotMet(GameError):
    code = PRECONDITION_NOT_MET


class TransactionAborted(GameError):
    """Raised by the store when optimistic retries are exhausted."""

    code = TRANSACTION_ABORTED


def ensure(condition: bool, error: Type[GameError], message: str) -> None:
    if not condition:
        raise error(message)
