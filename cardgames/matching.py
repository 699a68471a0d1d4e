"""Memory-pair matching game state machine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from random import Random
from typing import List, Optional, Tuple

from .cards import Card
from .catalog import CardCatalog
from .deck import Tile, build_tile_deck

logger = logging.getLogger(__name__)


class MatchingPhase(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    LOCKED = "locked"
    WON = "won"


class FlipAction(Enum):
    IGNORED = "ignored"
    FLIPPED = "flipped"
    MATCH = "match"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class FlipResult:
    action: FlipAction
    tiles: Tuple[Tile, ...] = ()
    turns: int = 0
    is_victory: bool = False
    reason: Optional[str] = None


@dataclass
class MatchingEngine:
    """Run one matching board at a time.

    A mismatch leaves the board locked until the caller invokes ``unlock``
    after its own presentation delay.
    """

    catalog: CardCatalog
    rng: Random = field(default_factory=Random)

    phase: MatchingPhase = field(init=False, default=MatchingPhase.IDLE)
    tiles: List[Tile] = field(init=False, default_factory=list)
    flipped: List[Tile] = field(init=False, default_factory=list)
    matched_card_ids: List[str] = field(init=False, default_factory=list)
    turns: int = field(init=False, default=0)
    target_pair_count: int = field(init=False, default=0)

    def start_session(self, card_count: int) -> List[Tile]:
        if card_count < 1:
            raise ValueError("Card count must be positive.")
        self.reset()
        if not self.catalog.cards:
            logger.warning("Cannot start a matching session with an empty catalog.")
            return []
        if card_count > len(self.catalog):
            raise ValueError(f"Catalog holds only {len(self.catalog)} cards; {card_count} requested.")

        selected = self.catalog.select_random(card_count, rng=self.rng)
        self.tiles = build_tile_deck(selected, rng=self.rng)
        self.target_pair_count = card_count
        self.phase = MatchingPhase.PLAYING
        logger.debug("Matching session started with %d pairs", card_count)
        return list(self.tiles)

    def flip(self, tile_id: str) -> FlipResult:
        if self.phase == MatchingPhase.LOCKED:
            return self._ignored("board locked")
        if self.phase != MatchingPhase.PLAYING:
            return self._ignored(f"not playing ({self.phase.value})")

        tile = self.tile(tile_id)
        if tile is None:
            return self._ignored("unknown tile")
        if any(flipped.tile_id == tile_id for flipped in self.flipped):
            return self._ignored("tile already flipped")
        if tile.card_id in self.matched_card_ids:
            return self._ignored("card already matched")

        self.flipped.append(tile)
        if len(self.flipped) == 1:
            return FlipResult(FlipAction.FLIPPED, tiles=(tile,), turns=self.turns)

        self.turns += 1
        first, second = self.flipped
        if first.card_id == second.card_id:
            return self._handle_match(first, second)
        return self._handle_mismatch(first, second)

    def unlock(self) -> bool:
        """Flip mismatched tiles back down and resume play."""
        if self.phase != MatchingPhase.LOCKED:
            return False
        self.flipped = []
        self.phase = MatchingPhase.PLAYING
        return True

    def tile(self, tile_id: str) -> Optional[Tile]:
        for tile in self.tiles:
            if tile.tile_id == tile_id:
                return tile
        return None

    def matched_cards(self) -> List[Card]:
        cards = []
        for card_id in self.matched_card_ids:
            card = self.catalog.get_by_id(card_id)
            if card is not None:
                cards.append(card)
        return cards

    @property
    def is_locked(self) -> bool:
        return self.phase == MatchingPhase.LOCKED

    @property
    def is_playing(self) -> bool:
        return self.phase in (MatchingPhase.PLAYING, MatchingPhase.LOCKED)

    def is_victory(self) -> bool:
        return self.target_pair_count > 0 and len(self.matched_card_ids) == self.target_pair_count

    def reset(self) -> None:
        self.phase = MatchingPhase.IDLE
        self.tiles = []
        self.flipped = []
        self.matched_card_ids = []
        self.turns = 0
        self.target_pair_count = 0

    def _handle_match(self, first: Tile, second: Tile) -> FlipResult:
        self.matched_card_ids.append(first.card_id)
        self.flipped = []
        victory = self.is_victory()
        if victory:
            self.phase = MatchingPhase.WON
            logger.info("Matching board cleared in %d turns", self.turns)
        return FlipResult(FlipAction.MATCH, tiles=(first, second), turns=self.turns, is_victory=victory)

    def _handle_mismatch(self, first: Tile, second: Tile) -> FlipResult:
        self.phase = MatchingPhase.LOCKED
        return FlipResult(FlipAction.MISMATCH, tiles=(first, second), turns=self.turns)

    def _ignored(self, reason: str) -> FlipResult:
        return FlipResult(FlipAction.IGNORED, turns=self.turns, reason=reason)
