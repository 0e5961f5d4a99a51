"""Unit tests for /src/scrabble/bag.py"""

import random
from collections import Counter

import pytest

from src.scrabble.bag import (
    MIN_BAG_FOR_EXCHANGE,
    can_exchange,
    create_shuffled_bag,
    draw,
    exchange,
    full_bag,
    remaining_by_letter,
)
from src.scrabble.tiles import LETTER_DISTRIBUTION, RACK_SIZE, TOTAL_TILES, tiles_from_letters


def letter_counts(tiles: list) -> Counter:
    return Counter(tile.letter for tile in tiles)


def test_full_bag_matches_distribution() -> None:
    bag = full_bag()
    assert len(bag) == TOTAL_TILES
    assert letter_counts(bag) == Counter(LETTER_DISTRIBUTION)


def test_shuffled_bag_has_the_same_tiles(rng: random.Random) -> None:
    bag = create_shuffled_bag(rng)
    assert len(bag) == TOTAL_TILES
    assert letter_counts(bag) == Counter(LETTER_DISTRIBUTION)


def test_seeded_shuffles_are_reproducible() -> None:
    assert create_shuffled_bag(random.Random(7)) == create_shuffled_bag(random.Random(7))


def test_two_racks_from_a_new_bag(rng: random.Random) -> None:
    """Dealing both racks leaves 84 tiles in the bag, and no tile appears twice."""
    bag = create_shuffled_bag(rng)
    first, bag = draw(bag, RACK_SIZE)
    second, bag = draw(bag, RACK_SIZE)
    assert len(first) == len(second) == RACK_SIZE
    assert len(bag) == 84
    assert letter_counts(first + second + bag) == Counter(LETTER_DISTRIBUTION)


def test_draw_takes_from_the_front() -> None:
    bag = tiles_from_letters("ABCDE")
    drawn, remaining = draw(bag, 2)
    assert drawn == tiles_from_letters("AB")
    assert remaining == tiles_from_letters("CDE")


def test_draw_more_than_available() -> None:
    """Partial draw: you get what is left, no error."""
    bag = tiles_from_letters("XY")
    drawn, remaining = draw(bag, RACK_SIZE)
    assert drawn == tiles_from_letters("XY")
    assert remaining == []


@pytest.mark.parametrize("count", [0, -3])
def test_draw_nothing(count: int) -> None:
    bag = tiles_from_letters("XY")
    drawn, remaining = draw(bag, count)
    assert drawn == []
    assert remaining == bag


def test_shuffle_is_not_biased() -> None:
    """
    Every tile should be equally likely to end up first.
    E makes up 12 of the 98 tiles: expect it on top in roughly 12/98 of the shuffles.
    """
    rng = random.Random(42)
    runs = 4000
    top_letters = Counter(create_shuffled_bag(rng)[0].letter for _ in range(runs))

    expected_e = runs * LETTER_DISTRIBUTION["E"] / TOTAL_TILES  # ~490
    assert abs(top_letters["E"] - expected_e) < 0.25 * expected_e
    expected_a = runs * LETTER_DISTRIBUTION["A"] / TOTAL_TILES  # ~367
    assert abs(top_letters["A"] - expected_a) < 0.25 * expected_a


# --- EXCHANGE ---
def test_can_exchange() -> None:
    assert can_exchange(full_bag())
    assert can_exchange(full_bag()[:MIN_BAG_FOR_EXCHANGE])
    assert not can_exchange(full_bag()[: MIN_BAG_FOR_EXCHANGE - 1])


def test_exchange_keeps_all_tiles(rng: random.Random) -> None:
    bag = create_shuffled_bag(rng)
    returned = tiles_from_letters("QQ")  # pretend both are from a rack
    before = letter_counts(bag + returned)

    replacements, new_bag = exchange(bag, returned, rng)
    assert len(replacements) == 2
    assert len(new_bag) == len(bag)
    assert letter_counts(replacements + new_bag) == before


def test_exchange_draws_before_returning() -> None:
    """The tiles you give back cannot come straight back to you."""
    bag = tiles_from_letters("EEEEEEE")
    returned = tiles_from_letters("QZ")
    replacements, new_bag = exchange(bag, returned, random.Random(3))
    assert replacements == tiles_from_letters("EE")
    assert letter_counts(new_bag) == Counter({"E": 5, "Q": 1, "Z": 1})


def test_remaining_by_letter() -> None:
    assert remaining_by_letter(full_bag()) == LETTER_DISTRIBUTION

    counts = remaining_by_letter(tiles_from_letters("QAEA"))
    assert list(counts) == list(LETTER_DISTRIBUTION)
    assert counts["A"] == 2
    assert counts["Q"] == 1
    assert counts["Z"] == 0
    assert sum(counts.values()) == 4
