from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
    rules_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from ...config import EngineConfig
from ...engine.board import BoardState, Color
from ...engine.errors import IllegalMoveRequested, InvalidIndex
from ...engine.game import Game
from ...engine.move import parse_move, position_to_str
from ...engine.variants import Variant
from ...search.worker import SearchJob, analyse_job
from .session import InMemorySessionStore


logger = logging.getLogger(__name__)

MAX_DEPTH = 12


class CreateGameRequest(BaseModel):
    variant: Optional[Variant] = Field(default=None, description="standard or turkish")


class CreateGameResponse(BaseModel):
    game_id: str
    variant: str
    board: str
    player: str


class SetPositionRequest(BaseModel):
    board: str = Field(..., description="8 lines of b/B/r/R/. , row 0 first")
    player: Color = Field(default=Color.RED, description="side to move")


class MoveRequest(BaseModel):
    move: str = Field(..., description="Step in square notation, e.g. c3-d4")


class SuggestRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=1, le=MAX_DEPTH)
    quiescence_depth: Optional[int] = Field(default=None, ge=0, le=MAX_DEPTH)
    seed: Optional[int] = Field(default=None, description="fixes random tie-breaking")


class GameState(BaseModel):
    game_id: str
    variant: str
    board: str
    player: str
    legal_moves: List[str]
    status: Dict[str, Optional[str]]
    pending_jump: Optional[str]
    pieces: Dict[str, int]
    last_move: Optional[str]
    move_history: List[str]


def _state(game_id: str, game: Game) -> GameState:
    history = game.move_history()
    return GameState(
        game_id=game_id,
        variant=game.variant,
        board=game.board.to_diagram(),
        player=game.current_player.value,
        legal_moves=[m.to_notation() for m in game.legal_move_list()],
        status=game.status().to_payload(),
        pending_jump=position_to_str(game.pending_jump) if game.pending_jump is not None else None,
        pieces={c.value: game.board.count(c) for c in Color},
        last_move=history[-1] if history else None,
        move_history=history,
    )


def create_app(config: Optional[EngineConfig] = None) -> FastAPI:
    config = config or EngineConfig.from_env()
    store = InMemorySessionStore(default_variant=config.variant)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Abandon searches still running for live sessions
        store.close()

    app = FastAPI(title="Checkers Engine API", version="0.1.0", lifespan=lifespan)

    # Basic logging setup
    logging.basicConfig(level=config.log_level)

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(IllegalMoveRequested, rules_exception_handler)
    app.add_exception_handler(InvalidIndex, rules_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    app.state.config = config
    app.state.store = store

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        variant = req.variant if req is not None and req.variant is not None else config.variant
        game = Game.new(variant)
        game_id = store.create(game)
        logger.info("game created", extra={"game_id": game_id, "variant": game.variant})
        return CreateGameResponse(
            game_id=game_id,
            variant=game.variant,
            board=game.board.to_diagram(),
            player=game.current_player.value,
        )

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        with store.lock_for(game_id):
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    async def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        current = _require_game(store, game_id)
        try:
            board = BoardState.from_diagram(req.board)
            game = Game.from_position(current.variant, board, req.player)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid board: {e}")
        with store.lock_for(game_id):
            store.set(game_id, game)
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    async def make_move(game_id: str, req: MoveRequest) -> GameState:
        game = _require_game(store, game_id)
        try:
            move = parse_move(req.move)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        with store.lock_for(game_id):
            game.apply_move(move)
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    async def undo(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        with store.lock_for(game_id):
            try:
                game.undo_move()
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/suggest")
    async def suggest(game_id: str, req: Optional[SuggestRequest] = None) -> Dict[str, Any]:
        game = _require_game(store, game_id)
        req = req or SuggestRequest()
        depth = req.depth if req.depth is not None else config.search_depth
        qdepth = req.quiescence_depth if req.quiescence_depth is not None else config.quiescence_depth

        # Snapshot under the lock; the search itself only sees primitives
        with store.lock_for(game_id):
            if game.status().is_over:
                return _no_suggestion(depth)
            job = SearchJob.from_board(
                game.variant,
                game.board,
                game.current_player,
                depth,
                quiescence_depth=qdepth,
                seed=req.seed,
                origin=game.pending_jump,
            )

        try:
            future = store.worker_for(game_id).submit(job, analyse_job)
        except RuntimeError:
            raise HTTPException(status_code=409, detail="a search is already running for this game")
        try:
            return await asyncio.wait_for(asyncio.wrap_future(future), timeout=config.search_timeout_s)
        except asyncio.TimeoutError:
            # The worker stays busy until the abandoned search returns
            logger.warning("search timed out", extra={"game_id": game_id, "depth": depth})
            raise HTTPException(status_code=504, detail="search timed out")

    @app.delete("/api/games/{game_id}")
    async def delete_game(game_id: str) -> Dict[str, str]:
        _require_game(store, game_id)
        store.delete(game_id)
        return {"status": "deleted"}

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> Game:
    game = store.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


def _no_suggestion(depth: int) -> Dict[str, Any]:
    return {
        "best_move": None,
        "score": None,
        "sequence": [],
        "candidates": {},
        "nodes": 0,
        "qnodes": 0,
        "depth": depth,
        "time_ms": 0,
    }


# Default app for non-factory servers
app = create_app()
