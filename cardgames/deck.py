"""Tile deck creation for the matching game."""

from __future__ import annotations

from dataclasses import dataclass
from random import Random
from typing import List, Optional, Sequence, Tuple

from .cards import Card

TILE_SUFFIXES = ("a", "b")


@dataclass(frozen=True)
class Tile:
    """One face-down copy of a card on the matching board."""

    tile_id: str
    card: Card

    @property
    def card_id(self) -> str:
        return self.card.id


def tile_ids_for(card: Card) -> Tuple[str, str]:
    first, second = (f"{card.id}-{suffix}" for suffix in TILE_SUFFIXES)
    return first, second


def build_tile_deck(
    cards: Sequence[Card],
    *,
    rng: Optional[Random] = None,
    shuffle: bool = True,
) -> List[Tile]:
    """Return two tiles per card, shuffled unless ``shuffle`` is False."""
    tiles = [Tile(tile_id, card) for card in cards for tile_id in tile_ids_for(card)]
    if shuffle:
        if rng is None:
            rng = Random()
        rng.shuffle(tiles)
    return tiles
