#!/usr/bin/env python3
"""Interactive CLI to play the baseball card games in a terminal."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from random import Random

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from cardgames.catalog import DEFAULT_CARDS_PATH, CardCatalog
from cardgames.ledger import JsonFileStore, ScoreLedger
from cardgames.rules_schema import GameRules
from cardgames.service import ArcadeService, MatchingView
from cardgames.valuation import ValuationMode


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play the baseball card games in a terminal.")
    parser.add_argument("mode", choices=["matching", "valuation", "guess"])
    parser.add_argument(
        "--pairs",
        type=int,
        default=10,
        choices=GameRules().matching.difficulties,
        help="Pair count for the matching board.",
    )
    parser.add_argument(
        "--valuation-mode",
        default="rank3",
        choices=[mode.value for mode in ValuationMode] + [mode.label for mode in ValuationMode],
    )
    parser.add_argument("--cards", type=Path, default=DEFAULT_CARDS_PATH, help="Card data document.")
    parser.add_argument("--scores", type=Path, default=Path("data/high_scores.json"))
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args()


def prompt(message: str) -> str:
    try:
        return input(message).strip()
    except EOFError:
        print()
        sys.exit(0)


def print_board(view: MatchingView) -> None:
    for index, tile in enumerate(view.tiles):
        label = tile.card["label"] if tile.face_up and tile.card else "??"
        marker = "*" if tile.matched else " "
        print(f"{index:>3}{marker} {label}")
    print(f"Turns: {view.turns}")


def play_matching(service: ArcadeService, pairs: int) -> None:
    view = service.start_matching(pairs)
    is_new_record = False
    while not view.is_victory:
        print_board(view)
        raw = prompt("Flip tile #: ")
        if not raw.isdigit() or int(raw) >= len(view.tiles):
            print("Pick a tile number from the board.")
            continue
        flip = service.flip_tile(view.tiles[int(raw)].tile_id)
        if flip.action == "ignored":
            print(f"Ignored: {flip.reason}")
        elif flip.action == "mismatch":
            names = [tile.card["label"] for tile in flip.board.tiles if tile.tile_id in flip.tile_ids and tile.card]
            print(f"No match: {' / '.join(names)}")
            prompt("Press Enter to flip them back...")
            service.unlock_board()
        elif flip.action == "match":
            print("Match!")
            is_new_record = flip.is_new_record
        view = service.get_matching_view()

    print(f"Board cleared in {view.turns} turns.")
    if is_new_record:
        print("New record!")
    for card in view.matched_cards:
        print(f"  {card['label']}: {card['estimatedValue']}")


def play_valuation(service: ArcadeService, mode: str) -> None:
    view = service.start_valuation(mode)
    while not view.is_game_over:
        print(f"\nRound {view.round}/{view.total_rounds}, score {view.score}")
        for index, card in enumerate(view.cards):
            print(f"  {index}: {card['label']} ({card['cardSet']})")

        if view.mode == ValuationMode.RANK3.value:
            raw = prompt("Order from most to least valuable (e.g. 2 0 1): ").split()
            if sorted(raw) != [str(i) for i in range(len(view.cards))]:
                print("Enter each card number once.")
                continue
            for position, index in enumerate(raw):
                service.select_card(view.cards[int(index)]["id"])
                service.place_card(position)
            view = service.submit_valuation_answer()
        elif view.mode == ValuationMode.PICK2.value:
            raw = prompt("Which card is worth more? ")
            if raw not in ("0", "1"):
                continue
            view = service.submit_valuation_answer(view.cards[int(raw)]["id"])
        else:
            for index, option in enumerate(view.value_options):
                print(f"  [{index}] {option}")
            raw = prompt("Estimated value? ")
            if not raw.isdigit() or int(raw) >= len(view.value_options):
                continue
            view = service.submit_valuation_answer(view.value_options[int(raw)])

        outcome = view.last_outcome
        if outcome:
            print("Correct!" if outcome["isCorrect"] else f"Wrong, answer was {outcome['correctAnswer']}")
            for card in outcome["cards"]:
                print(f"  {card['label']}: {card['estimatedValue']}")
        if not view.is_game_over:
            view = service.next_valuation_round()

    print(f"\nFinal score: {view.score}/{view.total_rounds}" + (" (new record!)" if view.is_new_record else ""))


def play_guess(service: ArcadeService) -> None:
    view = service.start_guess()
    while not view.is_game_over:
        print(f"\nRound {view.round}/{view.total_rounds}: image {view.image_file} at blur {view.blur_amount}")
        name = "" if view.name_correct else prompt("Player name: ")
        year = "" if view.year_correct else prompt("Year: ")
        view = service.submit_guess(name, year)
        result = view.last_result or {}
        earned = result.get("namePointsThisAttempt", 0) + result.get("yearPointsThisAttempt", 0)
        print(f"+{earned} points (total {view.total_points})")
        if "correctAnswer" in result:
            answer = result["correctAnswer"]
            print(f"It was {answer['playerName']} ({answer['year']}).")
            if not view.is_game_over:
                view = service.next_guess_round()

    print(f"\nFinal score: {view.total_points}/{view.max_points}" + (" (new record!)" if view.is_new_record else ""))


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    rng = Random(args.seed)
    service = ArcadeService(
        catalog=CardCatalog(source=args.cards, rng=rng),
        ledger=ScoreLedger(JsonFileStore(args.scores)),
        rng=rng,
    )
    if not service.catalog.cards:
        print(f"No cards could be loaded from {args.cards}.", file=sys.stderr)
        sys.exit(1)

    if args.mode == "matching":
        play_matching(service, args.pairs)
    elif args.mode == "valuation":
        play_valuation(service, args.valuation_mode)
    else:
        play_guess(service)


if __name__ == "__main__":
    main()
