from __future__ import annotations

import logging
import threading
import uuid
from typing import Dict, Optional, Union

from ...engine.game import Game
from ...engine.variants import Variant
from ...search.worker import SearchWorker


logger = logging.getLogger(__name__)


class InMemorySessionStore:
    """Thread-safe in-memory store of checkers games.

    Games are never persisted; a restart forgets every session. Each game
    carries its own lock so a move and a search on the same game do not
    interleave while other games proceed, and its own :class:`SearchWorker`
    so at most one search per game runs at a time.
    """

    def __init__(self, default_variant: Union[Variant, str] = Variant.STANDARD) -> None:
        self._lock = threading.RLock()
        self._games: Dict[str, Game] = {}
        self._game_locks: Dict[str, threading.RLock] = {}
        self._workers: Dict[str, SearchWorker] = {}
        self._default_variant = default_variant

    def create(self, game: Optional[Game] = None) -> str:
        """Store ``game`` (a fresh default-variant game if omitted) and return its id."""
        gid = str(uuid.uuid4())
        if game is None:
            game = Game.new(self._default_variant)
        with self._lock:
            self._games[gid] = game
            self._game_locks[gid] = threading.RLock()
            self._workers[gid] = SearchWorker()
        return gid

    def get(self, game_id: str) -> Optional[Game]:
        with self._lock:
            return self._games.get(game_id)

    def lock_for(self, game_id: str) -> threading.RLock:
        with self._lock:
            if game_id not in self._game_locks:
                raise KeyError(game_id)
            return self._game_locks[game_id]

    def worker_for(self, game_id: str) -> SearchWorker:
        with self._lock:
            if game_id not in self._workers:
                raise KeyError(game_id)
            return self._workers[game_id]

    def set(self, game_id: str, game: Game) -> None:
        with self._lock:
            if game_id not in self._games:
                raise KeyError(game_id)
            self._games[game_id] = game

    def delete(self, game_id: str) -> None:
        with self._lock:
            self._games.pop(game_id, None)
            self._game_locks.pop(game_id, None)
            worker = self._workers.pop(game_id, None)
        if worker is not None:
            # A running search finishes in the background; its result is dropped
            worker.shutdown(wait=False)
            logger.debug("search worker released", extra={"game_id": game_id})

    def close(self) -> None:
        """Release every search worker; games stay readable."""
        with self._lock:
            workers = list(self._workers.values())
            self._workers.clear()
        for worker in workers:
            worker.shutdown(wait=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)
