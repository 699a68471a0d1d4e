"""Convenience service layer for UI and API consumers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from random import Random
from typing import Any, Optional, Sequence, Union

from .cards import Card, card_label, serialize_card
from .catalog import CardCatalog, LoadError
from .guess import GuessEngine, GuessResult
from .ledger import ScoreLedger
from .matching import FlipAction, MatchingEngine
from .rules_schema import GameRules
from .scoring import GUESS, MATCHING, VALUATION
from .valuation import AnswerResult, RoundOutcome, ValuationEngine, ValuationMode

logger = logging.getLogger(__name__)

GUESS_LEDGER_KEY = "5-round"


class ServiceError(RuntimeError):
    """Raised when an action targets a game that has not been started."""


def card_payload(card: Card) -> dict[str, Any]:
    payload = serialize_card(card)
    payload["label"] = card_label(card)
    return payload


@dataclass
class TileView:
    tile_id: str
    card_id: str
    face_up: bool
    matched: bool
    card: Optional[dict[str, Any]]


@dataclass
class MatchingView:
    phase: str
    card_count: int
    turns: int
    tiles: list[TileView]
    flipped: list[str]
    matched_cards: list[dict[str, Any]]
    is_victory: bool
    best_score: Optional[int]


@dataclass
class FlipView:
    action: str
    tile_ids: list[str]
    turns: int
    is_victory: bool
    is_new_record: bool
    reason: Optional[str]
    board: MatchingView


@dataclass
class ValuationView:
    mode: Optional[str]
    mode_label: Optional[str]
    phase: str
    round: int
    total_rounds: int
    score: int
    cards: list[dict[str, Any]]
    selected_card_id: Optional[str]
    placements: list[Optional[str]]
    can_submit: bool
    value_options: list[str]
    last_outcome: Optional[dict[str, Any]]
    is_game_over: bool
    is_new_record: bool
    best_score: Optional[int]


@dataclass
class GuessView:
    phase: str
    round: int
    total_rounds: int
    total_points: int
    max_points: int
    attempts_remaining: int
    blur_amount: int
    image_file: Optional[str]
    name_correct: bool
    year_correct: bool
    revealed_card: Optional[dict[str, Any]]
    last_result: Optional[dict[str, Any]]
    round_history: list[dict[str, Any]]
    is_game_over: bool
    is_new_record: bool
    best_score: Optional[int]


@dataclass
class ArcadeService:
    """Facade that owns one engine per game mode and records best scores."""

    catalog: CardCatalog = field(default_factory=CardCatalog)
    ledger: ScoreLedger = field(default_factory=ScoreLedger)
    rules: GameRules = field(default_factory=GameRules)
    rng: Random = field(default_factory=Random)

    matching: Optional[MatchingEngine] = field(init=False, default=None)
    valuation: Optional[ValuationEngine] = field(init=False, default=None)
    guess: Optional[GuessEngine] = field(init=False, default=None)
    _value_options: list[str] = field(init=False, default_factory=list)
    _last_outcome: Optional[RoundOutcome] = field(init=False, default=None)
    _last_guess: Optional[GuessResult] = field(init=False, default=None)
    _new_records: dict[str, bool] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        try:
            self.catalog.load()
        except LoadError:
            logger.warning("Card catalog unavailable; games will start empty.")

    # Matching ----------------------------------------------------------

    def start_matching(self, card_count: Optional[int] = None) -> MatchingView:
        if card_count is None:
            card_count = self.rules.matching.default_difficulty
        count = self.rules.check_difficulty(card_count)
        self.matching = MatchingEngine(self.catalog, rng=self.rng)
        self.matching.start_session(count)
        self._new_records[MATCHING] = False
        return self.get_matching_view()

    def flip_tile(self, tile_id: str) -> FlipView:
        engine = self._require_matching()
        result = engine.flip(tile_id)
        is_new_record = False
        if result.action is FlipAction.MATCH and result.is_victory:
            is_new_record = self.ledger.save(MATCHING, engine.target_pair_count, result.turns)
            self._new_records[MATCHING] = is_new_record
        return FlipView(
            action=result.action.value,
            tile_ids=[tile.tile_id for tile in result.tiles],
            turns=result.turns,
            is_victory=result.is_victory,
            is_new_record=is_new_record,
            reason=result.reason,
            board=self.get_matching_view(),
        )

    def unlock_board(self) -> MatchingView:
        self._require_matching().unlock()
        return self.get_matching_view()

    def get_matching_view(self) -> MatchingView:
        engine = self._require_matching()
        flipped = [tile.tile_id for tile in engine.flipped]
        tiles = []
        for tile in engine.tiles:
            matched = tile.card_id in engine.matched_card_ids
            face_up = matched or tile.tile_id in flipped
            tiles.append(
                TileView(
                    tile_id=tile.tile_id,
                    card_id=tile.card_id,
                    face_up=face_up,
                    matched=matched,
                    card=card_payload(tile.card) if face_up else None,
                )
            )
        return MatchingView(
            phase=engine.phase.value,
            card_count=engine.target_pair_count,
            turns=engine.turns,
            tiles=tiles,
            flipped=flipped,
            matched_cards=[card_payload(card) for card in engine.matched_cards()],
            is_victory=engine.is_victory(),
            best_score=self.ledger.get(MATCHING, engine.target_pair_count) if engine.target_pair_count else None,
        )

    # Valuation ---------------------------------------------------------

    def start_valuation(self, mode: Union[str, ValuationMode]) -> ValuationView:
        self.valuation = ValuationEngine(
            self.catalog,
            rng=self.rng,
            rounds=self.rules.valuation.rounds,
            option_pool_size=self.rules.valuation.option_pool_size,
        )
        self.valuation.start_session(mode)
        self._last_outcome = None
        self._new_records[VALUATION] = False
        self._value_options = self.valuation.value_options()
        return self.get_valuation_view()

    def select_card(self, card_id: str) -> ValuationView:
        self._require_valuation().select_card(card_id)
        return self.get_valuation_view()

    def place_card(self, position: int) -> ValuationView:
        self._require_valuation().place_card(position)
        return self.get_valuation_view()

    def submit_valuation_answer(self, answer: Union[str, Sequence[Optional[str]], None] = None) -> ValuationView:
        engine = self._require_valuation()
        result: AnswerResult = engine.submit_answer(answer)
        if result.outcome is not None:
            self._last_outcome = result.outcome
        if result.is_game_over and engine.mode is not None:
            self._new_records[VALUATION] = self.ledger.save(VALUATION, engine.mode.label, result.score)
        return self.get_valuation_view()

    def next_valuation_round(self) -> ValuationView:
        engine = self._require_valuation()
        if engine.awaiting_next_round and engine.setup_round() is not None:
            self._last_outcome = None
            self._value_options = engine.value_options()
        return self.get_valuation_view()

    def get_valuation_view(self) -> ValuationView:
        engine = self._require_valuation()
        mode = engine.mode
        return ValuationView(
            mode=mode.value if mode else None,
            mode_label=mode.label if mode else None,
            phase=engine.phase.value,
            round=min(engine.round + 1, engine.rounds) if not engine.awaiting_next_round else engine.round,
            total_rounds=engine.rounds,
            score=engine.correct_count,
            cards=[card_payload(card) for card in engine.round_cards],
            selected_card_id=engine.selected_card_id,
            placements=list(engine.placements),
            can_submit=all(slot is not None for slot in engine.placements),
            value_options=list(self._value_options),
            last_outcome=outcome_payload(self._last_outcome) if self._last_outcome else None,
            is_game_over=engine.is_game_over,
            is_new_record=self._new_records.get(VALUATION, False),
            best_score=self.ledger.get(VALUATION, mode.label) if mode else None,
        )

    # Guess -------------------------------------------------------------

    def start_guess(self) -> GuessView:
        self.guess = GuessEngine(self.catalog, rng=self.rng, rounds=self.rules.guess.rounds)
        self.guess.start_session()
        self._last_guess = None
        self._new_records[GUESS] = False
        return self.get_guess_view()

    def submit_guess(self, player_name: str, year: Union[int, str, None]) -> GuessView:
        engine = self._require_guess()
        result = engine.submit_guess(player_name, year)
        if result.action != "ignored":
            self._last_guess = result
        if result.is_game_over and result.is_round_over:
            self._new_records[GUESS] = self.ledger.save(GUESS, GUESS_LEDGER_KEY, result.total_points)
        return self.get_guess_view()

    def next_guess_round(self) -> GuessView:
        engine = self._require_guess()
        if engine.awaiting_next_round and engine.setup_round() is not None:
            self._last_guess = None
        return self.get_guess_view()

    def get_guess_view(self) -> GuessView:
        engine = self._require_guess()
        card = engine.current_card
        round_over = engine.awaiting_next_round or engine.is_game_over
        return GuessView(
            phase=engine.phase.value,
            round=engine.round if round_over else min(engine.round + 1, engine.rounds),
            total_rounds=engine.rounds,
            total_points=engine.total_points,
            max_points=engine.max_points,
            attempts_remaining=engine.attempts_remaining,
            blur_amount=engine.blur_amount,
            image_file=card.image_file if card else None,
            name_correct=engine.name_correct,
            year_correct=engine.year_correct,
            revealed_card=card_payload(card) if card and round_over else None,
            last_result=guess_payload(self._last_guess) if self._last_guess else None,
            round_history=[
                {
                    "round": record.round,
                    "card": card_payload(record.card),
                    "nameCorrect": record.name_correct,
                    "yearCorrect": record.year_correct,
                    "namePoints": record.name_points,
                    "yearPoints": record.year_points,
                    "totalPoints": record.total_points,
                    "attemptsUsed": record.attempts_used,
                }
                for record in engine.round_history
            ],
            is_game_over=engine.is_game_over,
            is_new_record=self._new_records.get(GUESS, False),
            best_score=self.ledger.get(GUESS, GUESS_LEDGER_KEY),
        )

    # Scores ------------------------------------------------------------

    def high_scores(self) -> dict[str, dict[str, int]]:
        return self.ledger.get_all()

    # Helpers -----------------------------------------------------------

    def _require_matching(self) -> MatchingEngine:
        if self.matching is None:
            raise ServiceError("No matching game in progress.")
        return self.matching

    def _require_valuation(self) -> ValuationEngine:
        if self.valuation is None:
            raise ServiceError("No valuation game in progress.")
        return self.valuation

    def _require_guess(self) -> GuessEngine:
        if self.guess is None:
            raise ServiceError("No guess game in progress.")
        return self.guess


def outcome_payload(outcome: RoundOutcome) -> dict[str, Any]:
    return {
        "subMode": outcome.sub_mode.value,
        "round": outcome.round,
        "cards": [card_payload(card) for card in outcome.cards],
        "userAnswer": list(outcome.user_answer) if isinstance(outcome.user_answer, tuple) else outcome.user_answer,
        "correctAnswer": (
            list(outcome.correct_answer) if isinstance(outcome.correct_answer, tuple) else outcome.correct_answer
        ),
        "isCorrect": outcome.is_correct,
    }


def guess_payload(result: GuessResult) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "nameMatch": result.name_match,
        "yearMatch": result.year_match,
        "namePointsThisAttempt": result.name_points_this_attempt,
        "yearPointsThisAttempt": result.year_points_this_attempt,
        "roundPoints": result.round_points,
        "attemptsRemaining": result.attempts_remaining,
        "isRoundOver": result.is_round_over,
    }
    if result.correct_answer is not None:
        payload["correctAnswer"] = {
            "playerName": result.correct_answer.player_name,
            "year": result.correct_answer.year,
        }
    return payload
