from random import Random

import pytest

from cardgames.catalog import CardCatalog
from cardgames.ledger import ScoreLedger
from cardgames.rules_schema import GameRules, MatchingRules
from cardgames.service import ArcadeService, ServiceError


@pytest.fixture
def service(catalog):
    rules = GameRules(matching=MatchingRules(difficulties=[2, 10], default_difficulty=2))
    return ArcadeService(catalog=catalog, ledger=ScoreLedger(), rules=rules, rng=Random(11))


def clear_board(service):
    view = service.get_matching_view()
    pairs = {}
    for tile in view.tiles:
        pairs.setdefault(tile.card_id, []).append(tile.tile_id)
    flip = None
    for first, second in pairs.values():
        service.flip_tile(first)
        flip = service.flip_tile(second)
    return flip


def test_actions_require_a_started_game(service):
    with pytest.raises(ServiceError):
        service.flip_tile("wagner-a")
    with pytest.raises(ServiceError):
        service.get_valuation_view()
    with pytest.raises(ServiceError):
        service.submit_guess("wagner", 1909)


def test_start_matching_rejects_unknown_difficulty(service):
    with pytest.raises(ValueError):
        service.start_matching(7)


def test_start_matching_rejects_explicit_zero(service):
    with pytest.raises(ValueError):
        service.start_matching(0)
    assert service.matching is None


def test_matching_view_hides_face_down_cards(service):
    view = service.start_matching()

    assert view.card_count == 2
    assert view.phase == "playing"
    assert len(view.tiles) == 4
    assert all(tile.card is None for tile in view.tiles)
    assert view.best_score is None

    flip = service.flip_tile(view.tiles[0].tile_id)
    shown = [tile for tile in flip.board.tiles if tile.face_up]
    assert flip.action == "flipped"
    assert [tile.tile_id for tile in shown] == [view.tiles[0].tile_id]
    assert shown[0].card["label"]


def test_matching_victory_records_best_score(service):
    service.start_matching(2)
    flip = clear_board(service)

    assert flip.is_victory
    assert flip.is_new_record
    assert flip.board.phase == "won"
    assert len(flip.board.matched_cards) == 2
    assert service.high_scores() == {"matching": {"2": 2}}

    service.start_matching(2)
    again = clear_board(service)
    assert not again.is_new_record
    assert service.get_matching_view().best_score == 2


def test_mismatch_locks_until_unlocked(service):
    view = service.start_matching(2)
    pairs = {}
    for tile in view.tiles:
        pairs.setdefault(tile.card_id, []).append(tile.tile_id)
    first, second = [ids[0] for ids in pairs.values()]

    service.flip_tile(first)
    flip = service.flip_tile(second)
    assert flip.action == "mismatch"
    assert flip.board.phase == "locked"
    assert service.flip_tile(first).reason == "board locked"

    assert service.unlock_board().phase == "playing"


def test_valuation_game_records_score_under_mode_label(service):
    view = service.start_valuation("2-card")
    assert view.mode == "pick2"
    assert view.mode_label == "2-card"

    while not view.is_game_over:
        assert view.phase == "awaiting_answer"
        view = service.submit_valuation_answer(view.cards[0]["id"])
        assert view.last_outcome is not None
        if not view.is_game_over:
            view = service.next_valuation_round()
            assert view.last_outcome is None

    assert view.round == 5
    assert view.is_new_record
    assert service.high_scores()["valuation"] == {"2-card": view.score}


def test_rank3_through_the_service(service):
    view = service.start_valuation("rank3")
    for position, card in enumerate(view.cards):
        service.select_card(card["id"])
        view = service.place_card(position)

    assert view.can_submit
    view = service.submit_valuation_answer()
    assert view.phase == "awaiting_next"
    assert len(view.last_outcome["correctAnswer"]) == 3
    assert view.last_outcome["userAnswer"] == [card["id"] for card in view.last_outcome["cards"]]


def test_guess1_offers_value_options(service):
    view = service.start_valuation("guess1")

    assert len(view.value_options) == 3
    assert view.cards[0]["estimatedValue"] in view.value_options
    view = service.submit_valuation_answer(view.cards[0]["estimatedValue"])
    assert view.last_outcome["isCorrect"]
    assert view.score == 1


def test_guess_game_reveals_answer_only_after_round(service):
    view = service.start_guess()

    assert view.revealed_card is None
    assert view.blur_amount == 20
    assert view.image_file

    view = service.submit_guess("nobody", "1")
    assert view.revealed_card is None
    assert view.last_result["attemptsRemaining"] == 2
    assert "correctAnswer" not in view.last_result


def test_perfect_guess_game_records_thirty(service, catalog):
    view = service.start_guess()
    while not view.is_game_over:
        card = catalog.get_by_id(service.guess.current_card.id)
        view = service.submit_guess(card.player_name, str(card.year))
        assert view.revealed_card["id"] == card.id
        assert view.last_result["correctAnswer"]["playerName"] == card.player_name
        if not view.is_game_over:
            view = service.next_guess_round()

    assert view.total_points == 30
    assert view.is_new_record
    assert len(view.round_history) == 5
    assert service.high_scores()["guess"] == {"5-round": 30}


def test_service_degrades_with_unloadable_catalog(tmp_path):
    service = ArcadeService(catalog=CardCatalog(source=tmp_path / "missing.json"))

    view = service.start_guess()
    assert view.phase == "idle"
    assert view.image_file is None
