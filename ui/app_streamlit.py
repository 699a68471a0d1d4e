"""Streamlit front-end for the baseball card games."""

from __future__ import annotations

import logging
from pathlib import Path

import streamlit as st

from cardgames.catalog import CardCatalog
from cardgames.ledger import JsonFileStore, ScoreLedger
from cardgames.rules_schema import load_rules
from cardgames.service import ArcadeService, GuessView, MatchingView, ValuationView
from cardgames.valuation import ValuationMode
from server.config import Settings

IMAGE_DIR = Path(__file__).parent / "web" / "images" / "cards"
BOARD_COLUMNS = 6


def get_service() -> ArcadeService:
    if "arcade_service" not in st.session_state:
        settings = Settings()
        logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        st.session_state["arcade_service"] = ArcadeService(
            catalog=CardCatalog(source=settings.cards_path),
            ledger=ScoreLedger(JsonFileStore(settings.scores_path)),
            rules=load_rules(settings.rules_path),
        )
    return st.session_state["arcade_service"]


def rerun() -> None:
    st.rerun()


def show_card_image(image_file: str | None, caption: str | None = None) -> None:
    if image_file and (IMAGE_DIR / image_file).exists():
        st.image(str(IMAGE_DIR / image_file), caption=caption)
    elif caption:
        st.write(caption)


# Matching ---------------------------------------------------------------


def render_matching(service: ArcadeService, view: MatchingView) -> None:
    st.subheader(f"Matching: {view.card_count} pairs")
    st.write(f"Turns: {view.turns}")
    if view.best_score is not None:
        st.caption(f"Best: {view.best_score} turns")

    if view.phase == "locked":
        st.warning("No match. Take a look, then continue.")
        if st.button("Continue"):
            service.unlock_board()
            rerun()

    cols = st.columns(BOARD_COLUMNS)
    for index, tile in enumerate(view.tiles):
        col = cols[index % BOARD_COLUMNS]
        if tile.face_up and tile.card:
            label = tile.card["label"]
            col.button(label, key=tile.tile_id, disabled=True)
        elif col.button("?", key=tile.tile_id, disabled=view.phase != "playing"):
            service.flip_tile(tile.tile_id)
            rerun()

    if view.is_victory:
        st.success(f"Board cleared in {view.turns} turns!")
        with st.expander("Matched cards"):
            for card in view.matched_cards:
                st.write(f"{card['label']}: {card['cardSet']}, est. {card['estimatedValue']}")


# Valuation --------------------------------------------------------------


def render_rank_controls(service: ArcadeService, view: ValuationView) -> None:
    cards_by_id = {card["id"]: card for card in view.cards}
    cols = st.columns(len(view.cards) or 1)
    for col, card in zip(cols, view.cards):
        marker = " (selected)" if card["id"] == view.selected_card_id else ""
        if col.button(f"{card['label']}{marker}", key=f"select-{card['id']}"):
            service.select_card(card["id"])
            rerun()

    st.write("Most valuable first:")
    slot_cols = st.columns(len(view.placements))
    for position, (col, slot) in enumerate(zip(slot_cols, view.placements)):
        label = cards_by_id[slot]["label"] if slot else "empty"
        if col.button(f"#{position + 1}: {label}", key=f"slot-{position}"):
            service.place_card(position)
            rerun()

    if st.button("Submit order", disabled=not view.can_submit):
        service.submit_valuation_answer()
        rerun()


def render_valuation(service: ArcadeService, view: ValuationView) -> None:
    st.subheader(f"Valuation ({view.mode_label})")
    st.write(f"Round {view.round} of {view.total_rounds} | Score: {view.score}")

    if view.last_outcome:
        outcome = view.last_outcome
        if outcome["isCorrect"]:
            st.success("Correct!")
        else:
            st.error(f"Not quite. Answer: {outcome['correctAnswer']}")
        for card in outcome["cards"]:
            st.write(f"{card['label']}: {card['estimatedValue']}")

    if view.is_game_over:
        st.success(f"Final score: {view.score}/{view.total_rounds}")
        if view.is_new_record:
            st.balloons()
        return

    if view.phase == "awaiting_next":
        if st.button("Next round"):
            service.next_valuation_round()
            rerun()
        return

    if view.mode == ValuationMode.RANK3.value:
        render_rank_controls(service, view)
    elif view.mode == ValuationMode.PICK2.value:
        st.write("Which card is worth more?")
        cols = st.columns(2)
        for col, card in zip(cols, view.cards):
            with col:
                show_card_image(card["imageFile"])
                if st.button(card["label"], key=f"pick-{card['id']}"):
                    service.submit_valuation_answer(card["id"])
                    rerun()
    else:
        card = view.cards[0]
        show_card_image(card["imageFile"], card["label"])
        choice = st.radio("Estimated value", view.value_options)
        if st.button("Submit value"):
            service.submit_valuation_answer(choice)
            rerun()


# Guess ------------------------------------------------------------------


def render_guess(service: ArcadeService, view: GuessView) -> None:
    st.subheader("Guess the Card")
    st.write(f"Round {view.round} of {view.total_rounds} | Points: {view.total_points}/{view.max_points}")
    st.caption(f"Attempts left: {view.attempts_remaining} | Blur: {view.blur_amount}px")

    if view.revealed_card:
        show_card_image(view.revealed_card["imageFile"], view.revealed_card["label"])
    else:
        show_card_image(view.image_file)

    result = view.last_result
    if result:
        earned = result["namePointsThisAttempt"] + result["yearPointsThisAttempt"]
        if earned:
            st.success(f"+{earned} points")
        elif not result["isRoundOver"]:
            st.info("Not yet. The picture gets clearer.")
        if "correctAnswer" in result:
            answer = result["correctAnswer"]
            st.write(f"It was {answer['playerName']} ({answer['year']}).")

    if view.is_game_over:
        st.success(f"Final score: {view.total_points}/{view.max_points}")
        return
    if view.phase == "round_over":
        if st.button("Next card"):
            service.next_guess_round()
            rerun()
        return

    with st.form("guess-form", clear_on_submit=True):
        name = st.text_input("Player name", disabled=view.name_correct)
        year = st.text_input("Year", disabled=view.year_correct)
        if st.form_submit_button("Guess"):
            service.submit_guess(name, year)
            rerun()


def render_high_scores(service: ArcadeService) -> None:
    scores = service.high_scores()
    with st.sidebar.expander("High scores"):
        if not scores:
            st.write("No records yet.")
        for mode, entries in scores.items():
            for key, score in sorted(entries.items()):
                st.write(f"{mode} / {key}: {score}")


def main() -> None:
    st.set_page_config(page_title="Baseball Card Games", layout="wide")
    st.title("Baseball Card Games")

    service = get_service()
    game = st.sidebar.radio("Game", ["Matching", "Valuation", "Guess the Card"])

    if game == "Matching":
        difficulty = st.sidebar.selectbox("Pairs", service.rules.matching.difficulties)
        if st.sidebar.button("New board"):
            service.start_matching(difficulty)
            rerun()
        if service.matching is None:
            st.info("Start a new board to begin.")
        else:
            render_matching(service, service.get_matching_view())
    elif game == "Valuation":
        mode = st.sidebar.selectbox("Mode", [mode.label for mode in ValuationMode])
        if st.sidebar.button("New quiz"):
            service.start_valuation(mode)
            rerun()
        if service.valuation is None:
            st.info("Start a new quiz to begin.")
        else:
            render_valuation(service, service.get_valuation_view())
    else:
        if st.sidebar.button("New game"):
            service.start_guess()
            rerun()
        if service.guess is None:
            st.info("Start a new game to begin.")
        else:
            render_guess(service, service.get_guess_view())

    render_high_scores(service)


if __name__ == "__main__":
    main()
