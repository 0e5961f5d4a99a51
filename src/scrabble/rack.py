"""Helpers for a player's rack (up to seven tiles, order does not matter)."""

from collections import Counter

from src.scrabble.bag import draw
from src.scrabble.tiles import RACK_SIZE, Tile


def has_letters(rack: list[Tile], letters: list[str]) -> bool:
    """True if every letter can be taken from the rack (respecting multiplicity)."""
    available = Counter(tile.letter for tile in rack)
    needed = Counter(letters)
    return all(available[letter] >= count for letter, count in needed.items())


def remove_letters(rack: list[Tile], letters: list[str]) -> tuple[list[Tile], list[Tile]]:
    """Returns (removed tiles, rack without them). Caller checks has_letters first."""
    to_remove = Counter(letters)
    removed: list[Tile] = []
    kept: list[Tile] = []
    for tile in rack:
        if to_remove[tile.letter] > 0:
            to_remove[tile.letter] -= 1
            removed.append(tile)
        else:
            kept.append(tile)
    if sum(to_remove.values()) > 0:
        raise ValueError(f"Letters {letters} are not all on the rack.")
    return removed, kept


def refill(rack: list[Tile], bag: list[Tile]) -> tuple[list[Tile], list[Tile]]:
    """Top the rack up to seven tiles (or until the bag runs out). Returns (rack, bag)."""
    drawn, remaining = draw(bag, RACK_SIZE - len(rack))
    return rack + drawn, remaining
