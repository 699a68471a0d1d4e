"""Card records and value helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

# "$8,000,000", "$13,000,000+"
VALUE_PATTERN = re.compile(r"^\$?(\d[\d,]*)\+?$")


def parse_value(display_value: str) -> int:
    """Return the integer magnitude of a display value like ``"$13,000,000+"``."""
    match = VALUE_PATTERN.match(display_value.strip())
    if match is None:
        raise ValueError(f"Unrecognised card value: {display_value!r}")
    return int(match.group(1).replace(",", ""))


@dataclass(frozen=True)
class Card:
    """Immutable trading card record."""

    id: str
    player_name: str
    year: int
    card_set: str
    grade: str
    estimated_value: str
    image_file: str
    description: str = ""
    team: str = ""
    position: str = ""

    def numeric_value(self) -> int:
        return parse_value(self.estimated_value)

    def name_tokens(self) -> list[str]:
        return self.player_name.lower().split()


def serialize_card(card: Card) -> dict[str, Any]:
    return {
        "id": card.id,
        "playerName": card.player_name,
        "year": card.year,
        "cardSet": card.card_set,
        "grade": card.grade,
        "estimatedValue": card.estimated_value,
        "imageFile": card.image_file,
        "description": card.description,
        "team": card.team,
        "position": card.position,
    }


def deserialize_card(payload: Mapping[str, Any]) -> Card:
    """Build a card from the data document's camelCase shape.

    Raises KeyError for missing required fields and ValueError for a year or
    value that cannot be parsed.
    """
    card = Card(
        id=str(payload["id"]),
        player_name=str(payload["playerName"]),
        year=int(payload["year"]),
        card_set=str(payload["cardSet"]),
        grade=str(payload.get("grade", "")),
        estimated_value=str(payload["estimatedValue"]),
        image_file=str(payload.get("imageFile", "")),
        description=str(payload.get("description", "")),
        team=str(payload.get("team", "")),
        position=str(payload.get("position", "")),
    )
    card.numeric_value()
    return card


def card_label(card: Card) -> str:
    return f"{card.player_name} ({card.year})"
