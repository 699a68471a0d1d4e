"""Card catalog loading, sampling and value utilities."""

from __future__ import annotations

import json
import logging
from bisect import bisect_left
from dataclasses import dataclass, field
from pathlib import Path
from random import Random
from typing import Iterable, List, Optional, Sequence

from .cards import Card, deserialize_card, parse_value

logger = logging.getLogger(__name__)

DEFAULT_CARDS_PATH = Path(__file__).parent / "data" / "cards.json"

# Distinct-value neighbours considered on each side when building value options.
NEIGHBOR_WINDOW = 3


class LoadError(RuntimeError):
    """Raised when the card data source is unreachable or malformed."""


@dataclass
class CardCatalog:
    """Read-only list of card records shared by every engine."""

    source: Optional[Path] = DEFAULT_CARDS_PATH
    rng: Random = field(default_factory=Random)
    cards: List[Card] = field(init=False, default_factory=list)
    loaded: bool = field(init=False, default=False)

    @classmethod
    def from_cards(cls, cards: Iterable[Card], *, rng: Optional[Random] = None) -> "CardCatalog":
        catalog = cls(source=None, rng=rng or Random())
        catalog.cards = list(cards)
        catalog.loaded = True
        return catalog

    def __len__(self) -> int:
        return len(self.cards)

    def load(self) -> List[Card]:
        """Load the catalog once; later calls return the cached list."""
        if self.loaded:
            return self.cards
        if self.source is None:
            raise LoadError("Catalog has no data source.")

        try:
            payload = json.loads(Path(self.source).read_text(encoding="utf-8"))
            entries = payload["cards"]
            if not isinstance(entries, list):
                raise TypeError("'cards' must be a list")
            cards = [deserialize_card(entry) for entry in entries]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("Failed to load cards from %s: %s", self.source, exc)
            raise LoadError(f"Could not load cards from {self.source}") from exc

        ids = [card.id for card in cards]
        if len(set(ids)) != len(ids):
            logger.error("Duplicate card ids in %s", self.source)
            raise LoadError(f"Duplicate card ids in {self.source}")

        self.cards = cards
        self.loaded = True
        logger.debug("Loaded %d cards from %s", len(cards), self.source)
        return self.cards

    def select_random(self, count: int, *, rng: Optional[Random] = None) -> List[Card]:
        """Sample ``count`` cards without replacement from the whole catalog."""
        rng = rng or self.rng
        if count <= 0 or not self.cards:
            return []
        return rng.sample(self.cards, min(count, len(self.cards)))

    def get_by_id(self, card_id: str) -> Optional[Card]:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    @staticmethod
    def sort_by_value(cards: Sequence[Card], descending: bool = False) -> List[Card]:
        return sorted(cards, key=lambda card: parse_value(card.estimated_value), reverse=descending)

    def value_options_for(
        self,
        card: Card,
        pool_size: int = 3,
        *,
        rng: Optional[Random] = None,
    ) -> List[str]:
        """Return ``pool_size`` distinct display values, the card's own included.

        Decoys are drawn from the nearest distinct values on either side of
        the card in sorted value order. The result is sorted ascending.
        """
        rng = rng or self.rng
        own_value = card.numeric_value()

        displays: dict[int, str] = {}
        for entry in self.sort_by_value(self.cards):
            value = entry.numeric_value()
            if value != own_value:
                displays.setdefault(value, entry.estimated_value)

        values = sorted(displays)
        needed = min(max(pool_size - 1, 0), len(values))
        radius = max(NEIGHBOR_WINDOW, needed)
        position = bisect_left(values, own_value)
        window = values[max(0, position - radius) : position + radius]

        picks = rng.sample(window, needed)
        options = sorted(picks + [own_value])
        return [card.estimated_value if value == own_value else displays[value] for value in options]
