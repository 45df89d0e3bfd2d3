from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import dataclass, field
from typing import Dict, Final, List, Optional, Tuple

from src.engine.bits import iter_bits
from src.engine.board import BoardState, Color, Position
from src.engine.move import Move
from src.engine.rules import GameRules, move_piece


logger = logging.getLogger(__name__)


WIN_SCORE: Final = 100_000.0
INF: Final = math.inf
DEFAULT_QUIESCENCE_DEPTH: Final = 4
TIE_EPSILON: Final = 1e-9


@dataclass(frozen=True)
class Successor:
    """One whole turn: the chosen first step plus its resolved continuation.

    Attributes:
        from_sq (int): Origin square of the moving piece.
        to_sq (int): First landing (or slide) square.
        path (Tuple[int, ...]): Every square the piece visits, origin first.
        captures (int): Pieces removed during the turn.
        promoted (bool): Whether the turn crowned a man.
        board (BoardState): Position once the turn is over.
    """

    from_sq: int
    to_sq: int
    path: Tuple[int, ...]
    captures: int
    promoted: bool
    board: BoardState

    @property
    def move(self) -> Move:
        return Move(Position.from_index(self.from_sq), Position.from_index(self.to_sq))

    def steps(self) -> List[Move]:
        return [
            Move(Position.from_index(a), Position.from_index(b))
            for a, b in zip(self.path, self.path[1:])
        ]


def _order_key(s: Successor) -> Tuple[int, bool, int, int]:
    return (-s.captures, not s.promoted, s.from_sq, s.to_sq)


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score: Optional[float]
    sequence: List[Move]
    candidates: Dict[str, float] = field(default_factory=dict)
    nodes: int = 0
    qnodes: int = 0
    depth: int = 0
    time_ms: int = 0


class SearchService:
    """Minimax search with alpha-beta pruning and a capture-only quiescence tail.

    The service holds no position state: every call walks a fresh tree from
    the board it is given. Node counters are reset by :meth:`search`.
    """

    def __init__(self, rules: GameRules, rng: Optional[random.Random] = None) -> None:
        self.rules = rules
        self._rng = rng if rng is not None else random.Random()
        self.nodes = 0
        self.qnodes = 0

    # --- Successor generation ---
    def successor_states(
        self,
        board: BoardState,
        player: Color,
        captures_only: bool = False,
        origin: Optional[Position] = None,
    ) -> List[Successor]:
        """Whole-turn successors of ``board`` with ``player`` to move.

        One successor is produced per legal first step. A capture is followed
        through to the end of the turn along the continuation with the most
        captures (the first one found on ties), since the opponent only ever
        sees the completed turn.

        Args:
            board (BoardState): Position to expand.
            player (Color): Side to move.
            captures_only (bool): Skip quiet moves (quiescence).
            origin (Optional[Position]): Restrict to a piece already in the
                middle of a multi-jump.

        Returns:
            List[Successor]: Ordered captures first (most captures first), then
            promotions, then by origin and destination square.
        """
        rules = self.rules
        if origin is None:
            pieces = rules.pieces(board, player)
        else:
            piece = board.piece_at(origin)
            if piece is None or piece.color != player:
                return []
            pieces = [(origin.index, piece.is_king)]
            captures_only = True

        captures: List[Successor] = []
        for sq, is_king in pieces:
            if not rules.jump_steps(sq, player, is_king, board):
                continue
            best: Dict[int, Tuple[Tuple[int, ...], int, BoardState]] = {}
            for path, captured, after in rules.capture_lines(board, sq, player, is_king):
                current = best.get(path[1])
                if current is None or len(captured) > current[1]:
                    best[path[1]] = (path, len(captured), after)
            for land, (path, n, after) in best.items():
                promoted = not is_king and (path[-1] >> 3) == player.promotion_row
                captures.append(Successor(sq, land, path, n, promoted, after))

        if captures:
            if rules.is_maximal_capture_mandatory():
                top = max(s.captures for s in captures)
                captures = [s for s in captures if s.captures == top]
            captures.sort(key=_order_key)
            return captures
        if captures_only:
            return []

        quiet: List[Successor] = []
        for sq, is_king in pieces:
            for to_sq in iter_bits(rules.regular_targets(sq, player, is_king, board)):
                after, kinged = move_piece(board, sq, to_sq)
                quiet.append(Successor(sq, to_sq, (sq, to_sq), 0, kinged, after))
        quiet.sort(key=_order_key)
        return quiet

    # --- Tree search ---
    def minimax(
        self,
        board: BoardState,
        depth: int,
        alpha: float,
        beta: float,
        maximizing: bool,
        ai_color: Color,
        quiescence_depth: int = DEFAULT_QUIESCENCE_DEPTH,
    ) -> float:
        """Alpha-beta value of ``board`` from ``ai_color``'s perspective.

        ``maximizing`` is True when ``ai_color`` is to move. At ``depth <= 0``
        the value comes from :meth:`quiescence_search`. A side with no move
        loses; the remaining depth is added so sooner wins and later losses
        are preferred.
        """
        self.nodes += 1
        if depth <= 0:
            return self.quiescence_search(board, quiescence_depth, alpha, beta, maximizing, ai_color)
        player = ai_color if maximizing else ai_color.opponent
        successors = self.successor_states(board, player)
        if not successors:
            return -(WIN_SCORE + depth) if maximizing else WIN_SCORE + depth

        if maximizing:
            best = -INF
            for s in successors:
                value = self.minimax(s.board, depth - 1, alpha, beta, False, ai_color, quiescence_depth)
                if value > best:
                    best = value
                if best > alpha:
                    alpha = best
                if beta <= alpha:
                    break
            return best

        best = INF
        for s in successors:
            value = self.minimax(s.board, depth - 1, alpha, beta, True, ai_color, quiescence_depth)
            if value < best:
                best = value
            if best < beta:
                beta = best
            if beta <= alpha:
                break
        return best

    def quiescence_search(
        self,
        board: BoardState,
        depth: int,
        alpha: float,
        beta: float,
        maximizing: bool,
        ai_color: Color,
    ) -> float:
        """Extend the search over capture-only successors.

        The static evaluation ("stand pat") bounds the result: a side is never
        forced to score below not capturing at all.
        """
        self.qnodes += 1
        stand_pat = self.rules.evaluate(board, ai_color)
        if maximizing:
            if stand_pat >= beta:
                return stand_pat
            alpha = max(alpha, stand_pat)
        else:
            if stand_pat <= alpha:
                return stand_pat
            beta = min(beta, stand_pat)
        if depth <= 0:
            return stand_pat

        player = ai_color if maximizing else ai_color.opponent
        captures = self.successor_states(board, player, captures_only=True)
        if not captures:
            return stand_pat

        best = stand_pat
        for s in captures:
            value = self.quiescence_search(s.board, depth - 1, alpha, beta, not maximizing, ai_color)
            if maximizing:
                best = max(best, value)
                alpha = max(alpha, best)
            else:
                best = min(best, value)
                beta = min(beta, best)
            if beta <= alpha:
                break
        return best

    # --- Root ---
    def search(
        self,
        board: BoardState,
        ai_color: Color,
        depth: int,
        quiescence_depth: int = DEFAULT_QUIESCENCE_DEPTH,
        origin: Optional[Position] = None,
    ) -> SearchResult:
        """Pick the best whole turn for ``ai_color``.

        Each root move is scored with a full window so that equal scores are
        exact and ties can be broken at random among them.

        Args:
            board (BoardState): Position to search; never modified.
            ai_color (Color): Side to move and scoring perspective.
            depth (int): Plies including the root move.
            quiescence_depth (int): Capture plies searched past ``depth``.
            origin (Optional[Position]): Piece in the middle of a multi-jump,
                if any.

        Returns:
            SearchResult: ``best_move`` is None when ``ai_color`` has no move.
        """
        start = time.perf_counter()
        self.nodes = 0
        self.qnodes = 0

        root = self.successor_states(board, ai_color, origin=origin)
        scored: List[Tuple[Successor, float]] = []
        for s in root:
            value = self.minimax(s.board, depth - 1, -INF, INF, False, ai_color, quiescence_depth)
            scored.append((s, value))
            logger.debug(
                "root move scored",
                extra={"move": s.move.to_notation(), "score": value, "depth": depth},
            )

        time_ms = int((time.perf_counter() - start) * 1000)
        if not scored:
            logger.info("no legal move", extra={"player": ai_color.value, "depth": depth})
            return SearchResult(
                best_move=None,
                score=None,
                sequence=[],
                nodes=self.nodes,
                qnodes=self.qnodes,
                depth=depth,
                time_ms=time_ms,
            )

        best_score = max(value for _, value in scored)
        tied = [s for s, value in scored if abs(value - best_score) <= TIE_EPSILON]
        chosen = tied[0] if len(tied) == 1 else self._rng.choice(tied)
        result = SearchResult(
            best_move=chosen.move,
            score=best_score,
            sequence=chosen.steps(),
            candidates={s.move.to_notation(): value for s, value in scored},
            nodes=self.nodes,
            qnodes=self.qnodes,
            depth=depth,
            time_ms=time_ms,
        )
        logger.info(
            "search done",
            extra={
                "player": ai_color.value,
                "move": chosen.move.to_notation(),
                "score": best_score,
                "tied": len(tied),
                "nodes": self.nodes,
                "qnodes": self.qnodes,
                "time_ms": time_ms,
            },
        )
        return result

    def find_best_move(
        self,
        board: BoardState,
        ai_color: Color,
        search_depth: int,
        quiescence_depth: int = DEFAULT_QUIESCENCE_DEPTH,
    ) -> Optional[Move]:
        return self.search(board, ai_color, search_depth, quiescence_depth).best_move
