import pytest

from cardgames.cards import Card, card_label, deserialize_card, parse_value, serialize_card


def test_parse_value_strips_currency_formatting():
    assert parse_value("$13,000,000+") == 13000000
    assert parse_value("$8,000,000") == 8000000
    assert parse_value("$357,000") == 357000
    assert parse_value(" $15,000 ") == 15000


def test_parse_value_rejects_non_values():
    with pytest.raises(ValueError):
        parse_value("priceless")
    with pytest.raises(ValueError):
        parse_value("$")


def test_deserialize_reads_document_shape():
    payload = {
        "id": "wagner-1909-t206",
        "playerName": "Honus Wagner",
        "year": 1909,
        "cardSet": "T206 White Border",
        "grade": "SGC 3",
        "estimatedValue": "$7,250,000",
        "imageFile": "wagner.jpg",
        "description": "The holy grail.",
        "team": "Pittsburgh Pirates",
        "position": "Shortstop",
    }

    card = deserialize_card(payload)

    assert card.player_name == "Honus Wagner"
    assert card.numeric_value() == 7250000
    assert serialize_card(card) == payload
    assert card_label(card) == "Honus Wagner (1909)"


def test_deserialize_rejects_missing_fields_and_bad_values():
    with pytest.raises(KeyError):
        deserialize_card({"id": "x", "year": 1909, "cardSet": "T206", "estimatedValue": "$1"})
    with pytest.raises(ValueError):
        deserialize_card(
            {"id": "x", "playerName": "X", "year": 1909, "cardSet": "T206", "estimatedValue": "lots"}
        )


def test_cards_are_immutable():
    card = Card("a", "Ty Cobb", 1909, "T206", "PSA 7", "$650,000", "cobb.jpg")
    with pytest.raises(AttributeError):
        card.year = 1910  # type: ignore[misc]
    assert card.name_tokens() == ["ty", "cobb"]
