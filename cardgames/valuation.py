"""Card valuation quiz: rank three, pick the pricier of two, or name the value."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from random import Random
from typing import List, Optional, Sequence, Set, Tuple, Union

from .cards import Card
from .catalog import CardCatalog

logger = logging.getLogger(__name__)

ROUNDS_PER_SESSION = 5
SLOT_COUNT = 3


class ValuationMode(Enum):
    RANK3 = "rank3"
    PICK2 = "pick2"
    GUESS1 = "guess1"

    @property
    def cards_per_round(self) -> int:
        return _CARDS_PER_ROUND[self]

    @property
    def label(self) -> str:
        """Menu label, also used as the high-score key."""
        return f"{self.cards_per_round}-card"

    @classmethod
    def parse(cls, value: Union[str, "ValuationMode"]) -> "ValuationMode":
        if isinstance(value, ValuationMode):
            return value
        for mode in cls:
            if value in (mode.value, mode.label):
                return mode
        raise ValueError(f"Unknown valuation mode: {value!r}")


_CARDS_PER_ROUND = {
    ValuationMode.RANK3: 3,
    ValuationMode.PICK2: 2,
    ValuationMode.GUESS1: 1,
}


class ValuationPhase(Enum):
    IDLE = "idle"
    AWAITING_ANSWER = "awaiting_answer"
    AWAITING_NEXT = "awaiting_next"
    GAME_OVER = "game_over"


Answer = Union[str, Sequence[Optional[str]], None]


@dataclass(frozen=True)
class RoundSetup:
    mode: ValuationMode
    round: int
    cards: Tuple[Card, ...]


@dataclass(frozen=True)
class SelectionResult:
    action: str
    selected_card_id: Optional[str] = None


@dataclass(frozen=True)
class PlacementResult:
    action: str
    placements: Tuple[Optional[str], ...] = ()
    can_submit: bool = False


@dataclass(frozen=True)
class RoundOutcome:
    sub_mode: ValuationMode
    round: int
    cards: Tuple[Card, ...]
    user_answer: Union[str, Tuple[Optional[str], ...]]
    correct_answer: Union[str, Tuple[str, ...]]
    is_correct: bool


@dataclass(frozen=True)
class AnswerResult:
    action: str
    sub_mode: Optional[ValuationMode] = None
    outcome: Optional[RoundOutcome] = None
    score: int = 0
    round: int = 0
    is_game_over: bool = False

    @property
    def is_correct(self) -> bool:
        return self.outcome is not None and self.outcome.is_correct


@dataclass(frozen=True)
class ValuationResults:
    mode: Optional[ValuationMode]
    score: int
    total: int
    round_history: Tuple[RoundOutcome, ...]


IGNORED = "ignored"


@dataclass
class ValuationEngine:
    catalog: CardCatalog
    rng: Random = field(default_factory=Random)
    rounds: int = ROUNDS_PER_SESSION
    option_pool_size: int = 3

    mode: Optional[ValuationMode] = field(init=False, default=None)
    phase: ValuationPhase = field(init=False, default=ValuationPhase.IDLE)
    round: int = field(init=False, default=0)
    correct_count: int = field(init=False, default=0)
    used_card_ids: Set[str] = field(init=False, default_factory=set)
    round_cards: List[Card] = field(init=False, default_factory=list)
    selected_card_id: Optional[str] = field(init=False, default=None)
    placements: List[Optional[str]] = field(init=False, default_factory=lambda: [None] * SLOT_COUNT)
    round_history: List[RoundOutcome] = field(init=False, default_factory=list)

    def start_session(self, mode: Union[str, ValuationMode]) -> RoundSetup:
        parsed = ValuationMode.parse(mode)
        self.reset()
        self.mode = parsed
        setup = self._deal()
        logger.debug("Valuation session started in %s mode", parsed.value)
        return setup

    def setup_round(self) -> Optional[RoundSetup]:
        """Deal the next round; ``None`` when there is no session to continue."""
        if self.mode is None or self.phase == ValuationPhase.GAME_OVER:
            return None
        return self._deal()

    def select_card(self, card_id: str) -> SelectionResult:
        if self.mode is not ValuationMode.RANK3 or self.phase != ValuationPhase.AWAITING_ANSWER:
            return SelectionResult(IGNORED)
        if card_id not in self._round_card_ids():
            return SelectionResult(IGNORED)
        self.selected_card_id = card_id
        return SelectionResult("selected", selected_card_id=card_id)

    def place_card(self, position: int) -> PlacementResult:
        if self.phase != ValuationPhase.AWAITING_ANSWER or self.selected_card_id is None:
            return PlacementResult(IGNORED, placements=tuple(self.placements))
        if not 0 <= position < SLOT_COUNT:
            return PlacementResult(IGNORED, placements=tuple(self.placements))

        card_id = self.selected_card_id
        if card_id in self.placements:
            self.placements[self.placements.index(card_id)] = None
        self.placements[position] = card_id
        self.selected_card_id = None
        return PlacementResult(
            "placed",
            placements=tuple(self.placements),
            can_submit=all(slot is not None for slot in self.placements),
        )

    def submit_answer(self, answer: Answer = None) -> AnswerResult:
        if self.mode is None or self.phase != ValuationPhase.AWAITING_ANSWER:
            return self._ignored_answer()

        if self.mode is ValuationMode.RANK3:
            if isinstance(answer, str):
                return self._ignored_answer()
            user_answer = tuple(self.placements if answer is None else answer)
            if len(user_answer) != SLOT_COUNT or any(slot is None for slot in user_answer):
                return self._ignored_answer()
            correct_answer = tuple(card.id for card in self.catalog.sort_by_value(self.round_cards, descending=True))
        elif self.mode is ValuationMode.PICK2:
            if not isinstance(answer, str):
                return self._ignored_answer()
            user_answer = answer
            correct_answer = max(self.round_cards, key=lambda card: card.numeric_value()).id
        else:
            if not isinstance(answer, str):
                return self._ignored_answer()
            user_answer = answer
            correct_answer = self.round_cards[0].estimated_value

        is_correct = user_answer == correct_answer
        if is_correct:
            self.correct_count += 1

        outcome = RoundOutcome(
            sub_mode=self.mode,
            round=self.round + 1,
            cards=tuple(self.round_cards),
            user_answer=user_answer,
            correct_answer=correct_answer,
            is_correct=is_correct,
        )
        self.round_history.append(outcome)
        self.round += 1

        is_game_over = self.round >= self.rounds
        self.phase = ValuationPhase.GAME_OVER if is_game_over else ValuationPhase.AWAITING_NEXT
        return AnswerResult(
            "answered",
            sub_mode=self.mode,
            outcome=outcome,
            score=self.correct_count,
            round=self.round,
            is_game_over=is_game_over,
        )

    def value_options(self) -> List[str]:
        if self.mode is not ValuationMode.GUESS1 or not self.round_cards:
            return []
        return self.catalog.value_options_for(self.round_cards[0], self.option_pool_size, rng=self.rng)

    def results(self) -> ValuationResults:
        return ValuationResults(
            mode=self.mode,
            score=self.correct_count,
            total=self.rounds,
            round_history=tuple(self.round_history),
        )

    @property
    def is_game_over(self) -> bool:
        return self.phase == ValuationPhase.GAME_OVER

    @property
    def awaiting_next_round(self) -> bool:
        return self.phase == ValuationPhase.AWAITING_NEXT

    def reset(self) -> None:
        self.mode = None
        self.phase = ValuationPhase.IDLE
        self.round = 0
        self.correct_count = 0
        self.used_card_ids = set()
        self.round_cards = []
        self.selected_card_id = None
        self.placements = [None] * SLOT_COUNT
        self.round_history = []

    def _deal(self) -> RoundSetup:
        assert self.mode is not None
        self.round_cards = self._draw_unique_values(self.mode.cards_per_round)
        self.used_card_ids.update(card.id for card in self.round_cards)
        self.selected_card_id = None
        self.placements = [None] * SLOT_COUNT
        if self.round_cards:
            self.phase = ValuationPhase.AWAITING_ANSWER
        else:
            self.phase = ValuationPhase.IDLE
        return RoundSetup(mode=self.mode, round=self.round + 1, cards=tuple(self.round_cards))

    def _draw_unique_values(self, count: int) -> List[Card]:
        available = [card for card in self.catalog.cards if card.id not in self.used_card_ids]
        if _distinct_values(available) < count:
            self.used_card_ids = set()
            available = list(self.catalog.cards)
        if _distinct_values(available) < count:
            logger.warning("Catalog cannot supply %d cards with distinct values.", count)
            return []

        while True:
            drawn = self.rng.sample(available, count)
            if _distinct_values(drawn) == count:
                return drawn

    def _ignored_answer(self) -> AnswerResult:
        return AnswerResult(IGNORED, sub_mode=self.mode, score=self.correct_count, round=self.round)

    def _round_card_ids(self) -> List[str]:
        return [card.id for card in self.round_cards]


def _distinct_values(cards: Sequence[Card]) -> int:
    return len({card.numeric_value() for card in cards})
