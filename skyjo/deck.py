from __future__ import annotations

from collections import Counter
from typing import Callable, Dict, Iterable, List, Sequence, Tuple, TypeVar
import random

from .types import Card, ItemCard, ItemDensity, ITEM_CODES


T = TypeVar("T")
Rng = Callable[[], float]

# value -> copies
COMPOSITION: Dict[int, int] = {-2: 5, -1: 10, 0: 15, **{v: 10 for v in range(1, 13)}}

ITEM_DENSITY_COPIES: Dict[str, int] = {
    "none": 0,
    "low": 1,
    "medium": 2,
    "high": 3,
}


def create_deck() -> List[Card]:
    deck: List[Card] = []
    for value, copies in COMPOSITION.items():
        deck.extend([value] * copies)
    return deck


def create_item_cards(density: ItemDensity = "low") -> List[Card]:
    assert density in ITEM_DENSITY_COPIES, f"Unknown item density: {density}"
    copies = ITEM_DENSITY_COPIES[density]
    items: List[Card] = []
    for code in ITEM_CODES:
        items.extend(ItemCard(code) for _ in range(copies))
    return items


def shuffle(cards: Sequence[T], rng: Rng = random.random) -> List[T]:
    """Fisher-Yates over a copy of ``cards``.

    ``rng`` must return floats in [0, 1); pass ``random.Random(seed).random``
    for a reproducible order.
    """
    deck = list(cards)
    for i in range(len(deck) - 1, 0, -1):
        j = int(rng() * (i + 1))
        deck[i], deck[j] = deck[j], deck[i]
    return deck


def refill_from_discard(
    deck: List[Card],
    discard: List[Card],
    rng: Rng = random.random,
) -> Tuple[List[Card], List[Card]]:
    # Top of discard stays face up; the rest becomes the new draw pile
    if deck or len(discard) <= 1:
        return deck, discard
    top = discard[-1]
    return shuffle(discard[:-1], rng), [top]


def draw_random_number(deck: List[Card], rng: Rng = random.random) -> Tuple[int, List[Card]]:
    """Remove one random number card from ``deck``; item cards are never picked."""
    positions = [i for i, card in enumerate(deck) if not isinstance(card, ItemCard)]
    assert positions, "Deck has no number cards"
    pick = positions[int(rng() * len(positions))]
    rest = deck[:pick] + deck[pick + 1:]
    value = deck[pick]
    assert isinstance(value, int)
    return value, rest


def card_counts(cards: Iterable[object]) -> Counter:
    # Empty slots are skipped so grids can be passed as-is
    return Counter(card for card in cards if card is not None)


def full_composition(item_density: ItemDensity = "none") -> Counter:
    return card_counts(create_deck() + create_item_cards(item_density))
