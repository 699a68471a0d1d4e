"""Guess the Card: identify a blurred card by player name and year."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from random import Random
from typing import List, Optional, Set, Tuple, Union

from . import scoring
from .cards import Card
from .catalog import CardCatalog
from .scoring import MAX_ATTEMPTS, calculate_points

logger = logging.getLogger(__name__)

ROUNDS_PER_SESSION = 5
LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class GuessPhase(Enum):
    IDLE = "idle"
    AWAITING_GUESS = "awaiting_guess"
    ROUND_OVER = "round_over"
    GAME_OVER = "game_over"


def fuzzy_match(guess: str, card: Card) -> bool:
    """Return True if ``guess`` names the card's player closely enough.

    Accepts the full name, any multi-word guess ending in the player's
    surname ("ed plank" for Eddie Plank), or a single word equal to any part
    of the name ("wagner", "babe").
    """
    normalized = guess.strip().lower()
    if not normalized:
        return False
    name_parts = card.name_tokens()
    if normalized == " ".join(name_parts):
        return True

    guess_parts = normalized.split()
    if len(guess_parts) > 1:
        return guess_parts[-1] == name_parts[-1]
    return normalized in name_parts


def parse_year(value: Union[int, str, None]) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if value is None:
        return None
    match = LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


@dataclass(frozen=True)
class CorrectAnswer:
    player_name: str
    year: int


@dataclass(frozen=True)
class GuessRoundSetup:
    round: int
    total_rounds: int
    card: Card
    blur_amount: int
    attempts_remaining: int


@dataclass(frozen=True)
class GuessRoundRecord:
    round: int
    card: Card
    name_correct: bool
    year_correct: bool
    name_points: int
    year_points: int
    attempts_used: int

    @property
    def total_points(self) -> int:
        return self.name_points + self.year_points


@dataclass(frozen=True)
class GuessResult:
    action: str
    name_match: bool = False
    year_match: bool = False
    name_correct: bool = False
    year_correct: bool = False
    attempts_remaining: int = 0
    blur_amount: int = 0
    name_points_this_attempt: int = 0
    year_points_this_attempt: int = 0
    name_points_earned: int = 0
    year_points_earned: int = 0
    is_round_over: bool = False
    is_game_over: bool = False
    total_points: int = 0
    round: int = 0
    correct_answer: Optional[CorrectAnswer] = None

    @property
    def points_this_attempt(self) -> int:
        return self.name_points_this_attempt + self.year_points_this_attempt

    @property
    def round_points(self) -> int:
        return self.name_points_earned + self.year_points_earned


@dataclass(frozen=True)
class GuessResults:
    total_points: int
    max_points: int
    round_history: Tuple[GuessRoundRecord, ...]


@dataclass
class GuessEngine:
    catalog: CardCatalog
    rng: Random = field(default_factory=Random)
    rounds: int = ROUNDS_PER_SESSION

    phase: GuessPhase = field(init=False, default=GuessPhase.IDLE)
    round: int = field(init=False, default=0)
    total_points: int = field(init=False, default=0)
    used_card_ids: Set[str] = field(init=False, default_factory=set)
    current_card: Optional[Card] = field(init=False, default=None)
    attempts_remaining: int = field(init=False, default=MAX_ATTEMPTS)
    name_correct: bool = field(init=False, default=False)
    year_correct: bool = field(init=False, default=False)
    name_points_earned: int = field(init=False, default=0)
    year_points_earned: int = field(init=False, default=0)
    round_history: List[GuessRoundRecord] = field(init=False, default_factory=list)

    def start_session(self) -> Optional[GuessRoundSetup]:
        self.reset()
        return self._deal()

    def setup_round(self) -> Optional[GuessRoundSetup]:
        if self.phase == GuessPhase.GAME_OVER:
            return None
        return self._deal()

    @property
    def blur_amount(self) -> int:
        return scoring.blur_amount(self.attempts_remaining)

    @property
    def max_points(self) -> int:
        return self.rounds * 2 * calculate_points(1)

    def submit_guess(self, player_name: str, year: Union[int, str, None]) -> GuessResult:
        if self.phase != GuessPhase.AWAITING_GUESS or self.current_card is None:
            return GuessResult(
                "ignored",
                attempts_remaining=self.attempts_remaining,
                blur_amount=self.blur_amount,
                total_points=self.total_points,
                round=self.round,
            )

        card = self.current_card
        name_match = not self.name_correct and fuzzy_match(player_name or "", card)
        year_match = not self.year_correct and parse_year(year) == card.year

        attempts_used = MAX_ATTEMPTS + 1 - self.attempts_remaining
        name_points = 0
        year_points = 0
        if name_match:
            self.name_correct = True
            name_points = self.name_points_earned = calculate_points(attempts_used)
            self.total_points += name_points
        if year_match:
            self.year_correct = True
            year_points = self.year_points_earned = calculate_points(attempts_used)
            self.total_points += year_points

        self.attempts_remaining -= 1

        both_correct = self.name_correct and self.year_correct
        is_round_over = both_correct or self.attempts_remaining == 0
        correct_answer = None
        if is_round_over:
            self.round_history.append(
                GuessRoundRecord(
                    round=self.round + 1,
                    card=card,
                    name_correct=self.name_correct,
                    year_correct=self.year_correct,
                    name_points=self.name_points_earned,
                    year_points=self.year_points_earned,
                    attempts_used=attempts_used if both_correct else MAX_ATTEMPTS,
                )
            )
            self.round += 1
            correct_answer = CorrectAnswer(player_name=card.player_name, year=card.year)
            self.phase = GuessPhase.GAME_OVER if self.round >= self.rounds else GuessPhase.ROUND_OVER

        return GuessResult(
            "guessed",
            name_match=name_match,
            year_match=year_match,
            name_correct=self.name_correct,
            year_correct=self.year_correct,
            attempts_remaining=self.attempts_remaining,
            blur_amount=self.blur_amount,
            name_points_this_attempt=name_points,
            year_points_this_attempt=year_points,
            name_points_earned=self.name_points_earned,
            year_points_earned=self.year_points_earned,
            is_round_over=is_round_over,
            is_game_over=self.phase == GuessPhase.GAME_OVER,
            total_points=self.total_points,
            round=self.round,
            correct_answer=correct_answer,
        )

    def results(self) -> GuessResults:
        return GuessResults(
            total_points=self.total_points,
            max_points=self.max_points,
            round_history=tuple(self.round_history),
        )

    @property
    def is_game_over(self) -> bool:
        return self.phase == GuessPhase.GAME_OVER

    @property
    def awaiting_next_round(self) -> bool:
        return self.phase == GuessPhase.ROUND_OVER

    def reset(self) -> None:
        self.phase = GuessPhase.IDLE
        self.round = 0
        self.total_points = 0
        self.used_card_ids = set()
        self.current_card = None
        self.round_history = []
        self._clear_round()

    def _clear_round(self) -> None:
        self.attempts_remaining = MAX_ATTEMPTS
        self.name_correct = False
        self.year_correct = False
        self.name_points_earned = 0
        self.year_points_earned = 0

    def _deal(self) -> Optional[GuessRoundSetup]:
        available = [card for card in self.catalog.cards if card.id not in self.used_card_ids]
        if not available:
            self.used_card_ids = set()
            available = list(self.catalog.cards)
        if not available:
            logger.warning("Cannot deal a guess round from an empty catalog.")
            self.current_card = None
            self.phase = GuessPhase.IDLE
            return None

        self.current_card = self.rng.choice(available)
        self.used_card_ids.add(self.current_card.id)
        self._clear_round()
        self.phase = GuessPhase.AWAITING_GUESS
        return GuessRoundSetup(
            round=self.round + 1,
            total_rounds=self.rounds,
            card=self.current_card,
            blur_amount=self.blur_amount,
            attempts_remaining=self.attempts_remaining,
        )
