import json
from random import Random

import pytest

from cardgames.catalog import DEFAULT_CARDS_PATH, CardCatalog, LoadError
from cardgames.cards import serialize_card
from conftest import make_card, sample_cards


def write_document(path, cards):
    path.write_text(json.dumps({"cards": [serialize_card(card) for card in cards]}), encoding="utf-8")
    return path


def test_packaged_catalog_has_thirty_unique_cards():
    catalog = CardCatalog()
    cards = catalog.load()

    assert len(cards) == 30
    assert len({card.id for card in cards}) == 30
    assert all(card.numeric_value() > 0 for card in cards)
    assert catalog.source == DEFAULT_CARDS_PATH


def test_load_is_idempotent(tmp_path):
    path = write_document(tmp_path / "cards.json", sample_cards())
    catalog = CardCatalog(source=path)

    first = catalog.load()
    path.write_text("not json", encoding="utf-8")
    second = catalog.load()

    assert first is second
    assert len(second) == len(sample_cards())


def test_load_failures_leave_catalog_empty(tmp_path):
    missing = CardCatalog(source=tmp_path / "missing.json")
    with pytest.raises(LoadError):
        missing.load()
    assert missing.cards == []
    assert missing.select_random(5) == []

    malformed = tmp_path / "bad.json"
    malformed.write_text(json.dumps({"cards": [{"id": "x"}]}), encoding="utf-8")
    with pytest.raises(LoadError):
        CardCatalog(source=malformed).load()

    wrong_shape = tmp_path / "shape.json"
    wrong_shape.write_text(json.dumps({"cards": {"id": "x"}}), encoding="utf-8")
    with pytest.raises(LoadError):
        CardCatalog(source=wrong_shape).load()


def test_load_rejects_duplicate_ids(tmp_path):
    card = make_card("dup", "Ty Cobb", 1909, "$650,000")
    path = write_document(tmp_path / "cards.json", [card, card])
    with pytest.raises(LoadError):
        CardCatalog(source=path).load()


def test_select_random_samples_without_replacement(catalog):
    picked = catalog.select_random(5)
    assert len(picked) == 5
    assert len({card.id for card in picked}) == 5

    assert len(catalog.select_random(100)) == len(catalog)
    assert catalog.select_random(0) == []


def test_get_by_id_never_raises(catalog):
    assert catalog.get_by_id("wagner").player_name == "Honus Wagner"
    assert catalog.get_by_id("nobody") is None


def test_sort_by_value_is_stable(catalog):
    ascending = catalog.sort_by_value(catalog.cards)
    values = [card.numeric_value() for card in ascending]
    assert values == sorted(values)

    # plank precedes robinson in the catalog and both are worth $1,000,000
    ids = [card.id for card in ascending]
    assert ids.index("plank") < ids.index("robinson")

    descending = catalog.sort_by_value(catalog.cards, descending=True)
    assert descending[0].id == "mantle"
    desc_ids = [card.id for card in descending]
    assert desc_ids.index("plank") < desc_ids.index("robinson")


def test_value_options_include_own_value_and_are_distinct(catalog):
    for card in catalog.cards:
        options = catalog.value_options_for(card)
        values = [int(option.strip("$+").replace(",", "")) for option in options]

        assert len(options) == 3
        assert card.estimated_value in options
        assert values == sorted(values)
        assert len(set(values)) == 3


def test_value_options_draw_from_nearby_values(catalog):
    griffey = catalog.get_by_id("griffey")
    ordered = sorted({card.numeric_value() for card in catalog.cards})
    nearby = set(ordered[1:4])

    for seed in range(20):
        options = catalog.value_options_for(griffey, rng=Random(seed))
        decoys = [int(option.strip("$+").replace(",", "")) for option in options if option != griffey.estimated_value]
        assert set(decoys) <= nearby


def test_value_options_widen_for_larger_pools(catalog):
    options = catalog.value_options_for(catalog.get_by_id("aaron"), pool_size=8)
    assert len(options) == 8
    assert len(set(options)) == 8


def test_value_options_on_empty_catalog(empty_catalog):
    card = make_card("solo", "Cy Young", 1911, "$186,000")
    assert empty_catalog.value_options_for(card) == ["$186,000"]
