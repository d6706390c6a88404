import random
from collections import Counter

from skyjo import ItemCard, create_deck, create_item_cards, refill_from_discard, shuffle
from skyjo.deck import draw_random_number


def test_number_deck_composition():
    deck = create_deck()
    counts = Counter(deck)
    assert len(deck) == 150
    assert counts[-2] == 5
    assert counts[-1] == 10
    assert counts[0] == 15
    for v in range(1, 13):
        assert counts[v] == 10
    assert set(counts) == set(range(-2, 13))


def test_item_cards_follow_density():
    assert create_item_cards("none") == []
    low = create_item_cards("low")
    assert sorted(c.code for c in low) == ["A", "B", "C", "D", "E"]
    high = Counter(create_item_cards("high"))
    assert len(high) == 5
    assert all(n == 3 for n in high.values())
    assert Counter(create_item_cards("medium"))[ItemCard("D")] == 2


def test_shuffle_is_reproducible_with_seeded_rng():
    deck = create_deck()
    a = shuffle(deck, random.Random(42).random)
    b = shuffle(deck, random.Random(42).random)
    c = shuffle(deck, random.Random(43).random)
    assert a == b
    assert a != c
    assert sorted(a) == sorted(deck)
    # Input is left untouched
    assert deck == create_deck()


def test_shuffle_is_fisher_yates():
    # rng() == 0 always swaps position i with position 0
    assert shuffle([1, 2, 3], lambda: 0.0) == [2, 3, 1]
    assert shuffle([], lambda: 0.5) == []
    assert shuffle([7], lambda: 0.5) == [7]


def test_refill_keeps_discard_top_face_up():
    deck, discard = refill_from_discard([], [1, 2, 3], random.Random(1).random)
    assert discard == [3]
    assert sorted(deck) == [1, 2]


def test_refill_is_noop_when_deck_has_cards_or_discard_too_small():
    assert refill_from_discard([5], [1, 2]) == ([5], [1, 2])
    assert refill_from_discard([], [9]) == ([], [9])


def test_draw_random_number_skips_items():
    deck = [ItemCard("A"), 6, ItemCard("B")]
    value, rest = draw_random_number(deck, lambda: 0.99)
    assert value == 6
    assert rest == [ItemCard("A"), ItemCard("B")]
