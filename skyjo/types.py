from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal, Optional, Tuple, TypeAlias, Union

ROWS: int = 3
COLUMNS: int = 4
GRID_SIZE: int = ROWS * COLUMNS

MIN_VALUE: int = -2
MAX_VALUE: int = 12

ItemCode = Literal["A", "B", "C", "D", "E"]
ITEM_CODES: Tuple[ItemCode, ...] = ("A", "B", "C", "D", "E")

ITEM_DESCRIPTIONS: Dict[str, str] = {
    "A": "Pick any card on any board and randomize it.",
    "B": "Shuffle your own grid.",
    "C": "Wild card: set any card to any value.",
    "D": "Freeze a player so they skip their next turn.",
    "E": "Swap any two cards.",
}

TurnPhase: TypeAlias = Literal[
    "choose-draw",
    "resolve-draw",
    "choose-swap",
    "resolve",
    "resolve-item",
]
GameStatus: TypeAlias = Literal["playing", "round-complete", "game-complete"]
DrawSource: TypeAlias = Literal["deck", "discard"]
ItemDensity: TypeAlias = Literal["none", "low", "medium", "high"]


@dataclass(frozen=True)
class ItemCard:
    code: ItemCode

    def __str__(self) -> str:
        return f"item-{self.code}"


Card = Union[int, ItemCard]
Slot = Optional[Card]


def is_item(card: object) -> bool:
    return isinstance(card, ItemCard)


def is_number(card: object) -> bool:
    # bool is an int subclass; never a card
    return isinstance(card, int) and not isinstance(card, bool)


def card_label(card: Slot) -> str:
    if card is None:
        return "empty"
    return str(card)


# A (player, slot) coordinate referenced by item cards
@dataclass(frozen=True)
class SlotRef:
    player_id: str
    index: int
