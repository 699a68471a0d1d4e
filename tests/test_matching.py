from random import Random

import pytest

from cardgames.catalog import CardCatalog
from cardgames.deck import build_tile_deck, tile_ids_for
from cardgames.matching import FlipAction, MatchingEngine, MatchingPhase
from conftest import sample_cards


def pair_ids(engine: MatchingEngine) -> dict[str, list[str]]:
    pairs: dict[str, list[str]] = {}
    for tile in engine.tiles:
        pairs.setdefault(tile.card_id, []).append(tile.tile_id)
    return pairs


def mismatched_tiles(engine: MatchingEngine) -> tuple[str, str]:
    first, second = list(pair_ids(engine).values())[:2]
    return first[0], second[0]


def test_tile_deck_doubles_each_card():
    cards = sample_cards()[:3]
    tiles = build_tile_deck(cards, shuffle=False)

    assert [tile.tile_id for tile in tiles] == [
        "wagner-a", "wagner-b", "mantle-a", "mantle-b", "ruth-a", "ruth-b",
    ]
    assert tile_ids_for(cards[0]) == ("wagner-a", "wagner-b")

    shuffled = build_tile_deck(cards, rng=Random(3))
    assert sorted(tile.tile_id for tile in shuffled) == sorted(tile.tile_id for tile in tiles)


def test_start_session_builds_board(catalog):
    engine = MatchingEngine(catalog, rng=Random(7))
    tiles = engine.start_session(10)

    assert len(tiles) == 20
    assert engine.phase == MatchingPhase.PLAYING
    assert engine.turns == 0
    assert all(len(ids) == 2 for ids in pair_ids(engine).values())


def test_start_session_preconditions(catalog, empty_catalog):
    engine = MatchingEngine(catalog)
    with pytest.raises(ValueError):
        engine.start_session(0)
    with pytest.raises(ValueError):
        engine.start_session(len(catalog) + 1)

    empty = MatchingEngine(empty_catalog)
    assert empty.start_session(10) == []
    assert empty.phase == MatchingPhase.IDLE
    assert empty.flip("anything").action is FlipAction.IGNORED


def test_first_flip_does_not_count_a_turn(catalog):
    engine = MatchingEngine(catalog, rng=Random(1))
    engine.start_session(4)
    tile_id = engine.tiles[0].tile_id

    result = engine.flip(tile_id)
    assert result.action is FlipAction.FLIPPED
    assert engine.turns == 0

    again = engine.flip(tile_id)
    assert again.action is FlipAction.IGNORED
    assert again.reason == "tile already flipped"
    assert engine.turns == 0


def test_match_clears_buffer_and_counts_turn(catalog):
    engine = MatchingEngine(catalog, rng=Random(2))
    engine.start_session(4)
    first, second = next(iter(pair_ids(engine).values()))

    engine.flip(first)
    result = engine.flip(second)

    assert result.action is FlipAction.MATCH
    assert result.turns == 1
    assert not result.is_victory
    assert engine.flipped == []
    assert engine.flip(first).action is FlipAction.IGNORED


def test_mismatch_locks_until_unlock():
    catalog = CardCatalog.from_cards(sample_cards(), rng=Random(5))
    engine = MatchingEngine(catalog, rng=Random(5))
    engine.start_session(10)
    first, second = mismatched_tiles(engine)
    third = next(tile.tile_id for tile in engine.tiles if tile.tile_id not in (first, second))

    engine.flip(first)
    result = engine.flip(second)

    assert result.action is FlipAction.MISMATCH
    assert [tile.tile_id for tile in result.tiles] == [first, second]
    assert engine.is_locked

    blocked = engine.flip(third)
    assert blocked.action is FlipAction.IGNORED
    assert blocked.reason == "board locked"
    assert engine.turns == 1

    assert engine.unlock()
    assert not engine.unlock()
    assert engine.flipped == []
    assert engine.flip(third).action is FlipAction.FLIPPED


def test_full_game_reaches_victory(catalog):
    engine = MatchingEngine(catalog, rng=Random(11))
    engine.start_session(6)
    pairs = list(pair_ids(engine).values())

    # one deliberate miss first
    engine.flip(pairs[0][0])
    engine.flip(pairs[1][0])
    engine.unlock()

    results = []
    for first, second in pairs:
        engine.flip(first)
        results.append(engine.flip(second))

    assert [result.action for result in results] == [FlipAction.MATCH] * 6
    assert [result.is_victory for result in results] == [False] * 5 + [True]
    assert engine.turns == 7
    assert engine.phase == MatchingPhase.WON
    assert len(engine.matched_cards()) == 6
    assert engine.flip(pairs[0][0]).action is FlipAction.IGNORED


def test_turns_never_exceed_flip_pairs(catalog):
    rng = Random(99)
    engine = MatchingEngine(catalog, rng=rng)
    engine.start_session(5)
    flips = 0

    while not engine.is_victory():
        tile = rng.choice(engine.tiles)
        result = engine.flip(tile.tile_id)
        if result.action is not FlipAction.IGNORED:
            flips += 1
        if result.action is FlipAction.MISMATCH:
            engine.unlock()
        assert engine.turns <= flips // 2
        assert len(engine.flipped) <= 2

    assert len(engine.matched_card_ids) == 5


def test_reset_returns_to_idle(catalog):
    engine = MatchingEngine(catalog)
    engine.start_session(3)
    engine.flip(engine.tiles[0].tile_id)
    engine.reset()

    assert engine.phase == MatchingPhase.IDLE
    assert engine.tiles == []
    assert engine.turns == 0
    assert engine.flip("wagner-a").action is FlipAction.IGNORED
