"""REST service to play the baseball card games from a browser."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from cardgames.cards import serialize_card
from cardgames.catalog import CardCatalog, LoadError
from cardgames.ledger import JsonFileStore, ScoreLedger
from cardgames.rules_schema import load_rules
from cardgames.service import ArcadeService, ServiceError
from server.config import Settings

logger = logging.getLogger(__name__)

GameMode = Literal["matching", "valuation", "guess"]


class StartRequest(BaseModel):
    mode: GameMode
    card_count: Optional[int] = None
    sub_mode: Optional[str] = None


class FlipRequest(BaseModel):
    tile_id: str


class SelectRequest(BaseModel):
    card_id: str


class PlaceRequest(BaseModel):
    position: int


class AnswerRequest(BaseModel):
    answer: Union[str, List[Optional[str]], None] = None


class GuessRequest(BaseModel):
    player_name: str = ""
    year: Union[int, str, None] = None


class SessionState:
    """One play session; every action on it runs under ``lock``."""

    def __init__(self, service: ArcadeService, mode: str) -> None:
        self.service = service
        self.mode = mode
        self.lock = threading.Lock()


def describe_state(session: SessionState) -> Dict[str, Any]:
    service = session.service
    if session.mode == "matching":
        return asdict(service.get_matching_view())
    if session.mode == "valuation":
        return asdict(service.get_valuation_view())
    return asdict(service.get_guess_view())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    catalog = CardCatalog(source=settings.cards_path)
    try:
        catalog.load()
    except LoadError:
        logger.error("Serving with an empty card catalog.")
    ledger = ScoreLedger(JsonFileStore(settings.scores_path))
    rules = load_rules(settings.rules_path)

    sessions: Dict[str, SessionState] = {}
    sessions_lock = threading.Lock()

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.sessions = sessions
    app.state.catalog = catalog
    app.state.ledger = ledger

    def ensure_session(session_id: str) -> SessionState:
        with sessions_lock:
            session = sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    def run_action(
        session_id: str,
        mode: str,
        action: Callable[[ArcadeService], Any],
    ) -> Dict[str, Any]:
        session = ensure_session(session_id)
        if session.mode != mode:
            raise HTTPException(status_code=400, detail=f"Session is playing {session.mode}, not {mode}")
        with session.lock:
            try:
                result = action(session.service)
            except (ServiceError, ValueError) as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
            return {"session_id": session_id, "mode": session.mode, "state": asdict(result)}

    @app.get("/cards")
    def list_cards() -> Dict[str, object]:
        return {"cards": [serialize_card(card) for card in catalog.cards]}

    @app.get("/high-scores")
    def high_scores() -> Dict[str, object]:
        return {"scores": ledger.get_all()}

    @app.post("/session/start")
    def start_session(request: StartRequest) -> Dict[str, object]:
        service = ArcadeService(catalog=catalog, ledger=ledger, rules=rules)
        try:
            if request.mode == "matching":
                view = service.start_matching(request.card_count)
            elif request.mode == "valuation":
                view = service.start_valuation(request.sub_mode or "rank3")
            else:
                view = service.start_guess()
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        session_id = uuid.uuid4().hex
        with sessions_lock:
            sessions[session_id] = SessionState(service, request.mode)
        logger.info("Started %s session %s", request.mode, session_id)
        return {"session_id": session_id, "mode": request.mode, "state": asdict(view)}

    @app.get("/session/{session_id}")
    def get_session(session_id: str) -> Dict[str, object]:
        session = ensure_session(session_id)
        with session.lock:
            return {"session_id": session_id, "mode": session.mode, "state": describe_state(session)}

    @app.delete("/session/{session_id}")
    def end_session(session_id: str) -> Dict[str, object]:
        with sessions_lock:
            removed = sessions.pop(session_id, None)
        if removed is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return {"session_id": session_id, "ended": True}

    @app.post("/session/{session_id}/flip")
    def flip(session_id: str, request: FlipRequest) -> Dict[str, object]:
        response = run_action(session_id, "matching", lambda service: service.flip_tile(request.tile_id))
        flip_state = response.pop("state")
        response["state"] = flip_state.pop("board")
        response["result"] = flip_state
        return response

    @app.post("/session/{session_id}/unlock")
    def unlock(session_id: str) -> Dict[str, object]:
        return run_action(session_id, "matching", lambda service: service.unlock_board())

    @app.post("/session/{session_id}/select")
    def select(session_id: str, request: SelectRequest) -> Dict[str, object]:
        return run_action(session_id, "valuation", lambda service: service.select_card(request.card_id))

    @app.post("/session/{session_id}/place")
    def place(session_id: str, request: PlaceRequest) -> Dict[str, object]:
        return run_action(session_id, "valuation", lambda service: service.place_card(request.position))

    @app.post("/session/{session_id}/answer")
    def answer(session_id: str, request: AnswerRequest) -> Dict[str, object]:
        return run_action(session_id, "valuation", lambda service: service.submit_valuation_answer(request.answer))

    @app.post("/session/{session_id}/guess")
    def guess(session_id: str, request: GuessRequest) -> Dict[str, object]:
        return run_action(
            session_id,
            "guess",
            lambda service: service.submit_guess(request.player_name, request.year),
        )

    @app.post("/session/{session_id}/next")
    def next_round(session_id: str) -> Dict[str, object]:
        session = ensure_session(session_id)
        if session.mode == "valuation":
            return run_action(session_id, "valuation", lambda service: service.next_valuation_round())
        if session.mode == "guess":
            return run_action(session_id, "guess", lambda service: service.next_guess_round())
        raise HTTPException(status_code=400, detail="Matching sessions have no rounds")

    # Mount static files and serve index.html for a bundled front-end
    if settings.static_dir.exists():
        assets_dir = settings.static_dir / "assets"
        if assets_dir.exists():
            app.mount("/assets", StaticFiles(directory=assets_dir), name="assets")

        @app.get("/")
        def serve_index():
            return FileResponse(settings.static_dir / "index.html")

    return app


app = create_app()
