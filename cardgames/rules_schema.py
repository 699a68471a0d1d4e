"""Validation schema for the card game rules configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator


class MatchingRules(BaseModel):
    difficulties: list[int] = Field(
        default_factory=lambda: [10, 20, 30],
        description="Selectable pair counts for the matching board.",
    )
    default_difficulty: int = Field(20, gt=0)
    mismatch_delay_ms: int = Field(1000, ge=0, description="Suggested pause before unlocking after a mismatch.")
    victory_delay_ms: int = Field(800, ge=0, description="Suggested pause before showing the victory screen.")

    @field_validator("difficulties")
    @classmethod
    def validate_difficulties(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("At least one matching difficulty is required.")
        for count in value:
            if count <= 0:
                raise ValueError(f"Difficulty {count} must be positive.")
        return sorted(set(value))


class ValuationRules(BaseModel):
    rounds: int = Field(5, gt=0)
    option_pool_size: int = Field(3, ge=2, description="Value choices offered in the 1-card mode.")
    reveal_delay_ms: int = Field(2500, ge=0)


class GuessRules(BaseModel):
    rounds: int = Field(5, gt=0)


class GameRules(BaseModel):
    matching: MatchingRules = Field(default_factory=MatchingRules)
    valuation: ValuationRules = Field(default_factory=ValuationRules)
    guess: GuessRules = Field(default_factory=GuessRules)

    def check_difficulty(self, card_count: int) -> int:
        if card_count not in self.matching.difficulties:
            raise ValueError(f"Unsupported matching difficulty {card_count}; choose from {self.matching.difficulties}.")
        return card_count


def load_rules(path: Optional[Union[str, Path]] = None) -> GameRules:
    """Return default rules, overridden by the JSON document at ``path`` if given."""
    if path is None:
        return GameRules()
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return GameRules.model_validate(payload)
