"""Run searches across a thread or process boundary.

Only primitives cross the boundary: a :class:`SearchJob` goes in and a pair of
``(row, col)`` tuples (or None) or a plain analysis dict comes out, so the job
can be pickled for a process pool and never shares a live board with the
caller.
"""

from __future__ import annotations

import logging
import random
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from src.engine.board import BoardState, Color, Position
from src.engine.variants import make_rules
from src.search.service import DEFAULT_QUIESCENCE_DEPTH, SearchResult, SearchService


logger = logging.getLogger(__name__)

Coord = Tuple[int, int]
MovePayload = Optional[Tuple[Coord, Coord]]


@dataclass(frozen=True)
class SearchJob:
    variant: str
    black_men: int
    black_kings: int
    red_men: int
    red_kings: int
    player: str
    depth: int
    quiescence_depth: int = DEFAULT_QUIESCENCE_DEPTH
    seed: Optional[int] = None
    # Square of a piece in the middle of a multi-jump
    origin: Optional[Coord] = None

    @classmethod
    def from_board(
        cls,
        variant: str,
        board: BoardState,
        player: Color,
        depth: int,
        quiescence_depth: int = DEFAULT_QUIESCENCE_DEPTH,
        seed: Optional[int] = None,
        origin: Optional[Position] = None,
    ) -> "SearchJob":
        return cls(
            variant=variant,
            black_men=board.black_men,
            black_kings=board.black_kings,
            red_men=board.red_men,
            red_kings=board.red_kings,
            player=player.value,
            depth=depth,
            quiescence_depth=quiescence_depth,
            seed=seed,
            origin=(origin.row, origin.col) if origin is not None else None,
        )

    def board(self) -> BoardState:
        return BoardState(self.black_men, self.black_kings, self.red_men, self.red_kings)


def _search(job: SearchJob) -> SearchResult:
    rules = make_rules(job.variant)
    rng = random.Random(job.seed) if job.seed is not None else None
    service = SearchService(rules, rng=rng)
    origin = Position(*job.origin) if job.origin is not None else None
    return service.search(
        job.board(), Color(job.player), job.depth, job.quiescence_depth, origin=origin
    )


def run_search_job(job: SearchJob) -> MovePayload:
    """Rebuild rules and board from ``job`` and return the chosen step."""
    move = _search(job).best_move
    return move.as_tuple() if move is not None else None


def analyse_job(job: SearchJob) -> Dict[str, Any]:
    """Like :func:`run_search_job` but report the whole search as plain values.

    Returns:
        Dict[str, Any]: ``best_move`` and ``sequence`` in square notation,
        root ``candidates`` by notation, the score and the node counters.
    """
    res = _search(job)
    return {
        "best_move": res.best_move.to_notation() if res.best_move else None,
        "score": res.score,
        "sequence": [m.to_notation() for m in res.sequence],
        "candidates": dict(res.candidates),
        "nodes": res.nodes,
        "qnodes": res.qnodes,
        "depth": res.depth,
        "time_ms": res.time_ms,
    }


class SearchWorker:
    """One executor serving at most one search request at a time.

    Args:
        executor (Optional[Executor]): Pool to run jobs on. A private
            single-thread pool is created (and owned) when omitted.
        timeout_s (Optional[float]): Default wait for :meth:`request`.
    """

    def __init__(self, executor: Optional[Executor] = None, timeout_s: Optional[float] = None) -> None:
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="search")
        self._timeout_s = timeout_s
        self._lock = threading.Lock()
        self._inflight: Optional[Future] = None

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._inflight is not None and not self._inflight.done()

    def submit(self, job: SearchJob, fn: Optional[Callable[[SearchJob], Any]] = None) -> Future:
        """Start ``job``.

        Args:
            job (SearchJob): Position and limits to search.
            fn (Optional[Callable]): Job runner; :func:`run_search_job` when
                omitted. Must be picklable for a process pool.

        Raises:
            RuntimeError: If a previous request is still running.
        """
        with self._lock:
            if self._inflight is not None and not self._inflight.done():
                raise RuntimeError("a search is already in progress")
            future = self._executor.submit(fn or run_search_job, job)
            self._inflight = future
        logger.debug("search job submitted", extra={"variant": job.variant, "depth": job.depth})
        return future

    def request(self, job: SearchJob, timeout_s: Optional[float] = None) -> MovePayload:
        """Run ``job`` and wait for its result.

        Raises:
            concurrent.futures.TimeoutError: If the search outlives the timeout.
                The job keeps running and the worker stays busy until it ends.
        """
        future = self.submit(job)
        return future.result(timeout=timeout_s if timeout_s is not None else self._timeout_s)

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "SearchWorker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
