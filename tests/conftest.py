from random import Random

import pytest

from cardgames.cards import Card
from cardgames.catalog import CardCatalog


def make_card(card_id: str, player_name: str, year: int, value: str) -> Card:
    return Card(
        id=card_id,
        player_name=player_name,
        year=year,
        card_set="Test Set",
        grade="PSA 8",
        estimated_value=value,
        image_file=f"{card_id}.jpg",
    )


def sample_cards() -> list[Card]:
    return [
        make_card("wagner", "Honus Wagner", 1909, "$7,250,000"),
        make_card("mantle", "Mickey Mantle", 1952, "$13,000,000+"),
        make_card("ruth", "Babe Ruth", 1914, "$7,200,000"),
        make_card("plank", "Eddie Plank", 1909, "$1,000,000"),
        make_card("robinson", "Jackie Robinson", 1948, "$1,000,000"),
        make_card("aaron", "Hank Aaron", 1954, "$357,000"),
        make_card("mays", "Willie Mays", 1951, "$960,000"),
        make_card("griffey", "Ken Griffey Jr.", 1989, "$15,000"),
        make_card("jeter", "Derek Jeter", 1993, "$99,000"),
        make_card("koufax", "Sandy Koufax", 1955, "$300,000"),
        make_card("cobb", "Ty Cobb", 1909, "$650,000"),
        make_card("trout", "Mike Trout", 2009, "$3,936,000"),
    ]


@pytest.fixture
def rng() -> Random:
    return Random(1234)


@pytest.fixture
def catalog(rng: Random) -> CardCatalog:
    return CardCatalog.from_cards(sample_cards(), rng=rng)


@pytest.fixture
def empty_catalog() -> CardCatalog:
    return CardCatalog.from_cards([])
