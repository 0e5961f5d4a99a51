"""The shared tile bag: building, shuffling, drawing, and exchanging tiles."""

import random
from typing import Optional

from src.scrabble.tiles import LETTER_DISTRIBUTION, Tile

MIN_BAG_FOR_EXCHANGE = 7


def full_bag() -> list[Tile]:
    """All tiles of a game, unshuffled (grouped per letter)."""
    bag: list[Tile] = []
    for letter, count in LETTER_DISTRIBUTION.items():
        bag.extend(Tile.from_letter(letter) for _ in range(count))
    return bag


def create_shuffled_bag(rng: Optional[random.Random] = None) -> list[Tile]:
    """Every permutation of the bag is equally likely (random.shuffle is a Fisher-Yates shuffle)."""
    bag = full_bag()
    (rng or random.Random()).shuffle(bag)
    return bag


def draw(bag: list[Tile], count: int) -> tuple[list[Tile], list[Tile]]:
    """
    Take tiles from the front of the bag.
    ---

    Returns (drawn, remaining). Asking for more tiles than available just draws all that are left.
    The bag is not re-shuffled: order was fixed when it was shuffled.
    """
    count = max(count, 0)
    return bag[:count], bag[count:]


def can_exchange(bag: list[Tile]) -> bool:
    return len(bag) >= MIN_BAG_FOR_EXCHANGE


def exchange(
    bag: list[Tile], returned: list[Tile], rng: Optional[random.Random] = None
) -> tuple[list[Tile], list[Tile]]:
    """
    Swap tiles from a rack for new ones.
    ---

    1. Draw as many replacement tiles as are returned
    2. Put the returned tiles in the bag and shuffle it

    Returns (replacements, new bag). The number of tiles in circulation stays the same.
    """
    replacements, remaining = draw(bag, len(returned))
    new_bag = remaining + list(returned)
    (rng or random.Random()).shuffle(new_bag)
    return replacements, new_bag


def remaining_by_letter(bag: list[Tile]) -> dict[str, int]:
    """How many of each letter are still in the bag, for every letter of the alphabet (0 when used up)."""
    counts = dict.fromkeys(LETTER_DISTRIBUTION, 0)
    for tile in bag:
        counts[tile.letter] += 1
    return counts
