from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from .board import BoardState, Color, Position
from .errors import IllegalMoveRequested
from .move import Move
from .rules import GameRules, MoveMap, MoveResult
from .status import GameStatus
from .variants import Variant, make_rules
from src.search.service import SearchResult, SearchService


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Step:
    move: Move
    board_before: BoardState
    player_before: Color
    pending_before: Optional[Position]
    # Repetition key added when this step ended the turn
    turn_key: Optional[str]


@dataclass
class Game:
    """Game wrapper around a board with helper operations.

    Responsibility: track board, side to move and an in-progress multi-jump,
    expose legal steps, apply and undo steps, count repetitions.
    """

    rules: GameRules
    board: BoardState
    current_player: Color
    history: Dict[str, int] = field(default_factory=dict)
    pending_jump: Optional[Position] = None
    move_stack: List[_Step] = field(default_factory=list)
    _status: Optional[GameStatus] = field(default=None, init=False, repr=False)

    @classmethod
    def new(cls, variant: Union[Variant, str] = Variant.STANDARD) -> "Game":
        rules = make_rules(variant)
        return cls(rules=rules, board=rules.initial_setup(), current_player=rules.starting_player)

    @classmethod
    def from_position(
        cls, variant: Union[Variant, str], board: BoardState, player: Color
    ) -> "Game":
        rules = make_rules(variant)
        return cls(rules=rules, board=rules.validate(board), current_player=player)

    @classmethod
    def from_diagram(cls, variant: Union[Variant, str], diagram: str, player: Color) -> "Game":
        return cls.from_position(variant, BoardState.from_diagram(diagram), player)

    def __post_init__(self) -> None:
        # Seed repetition with current position
        key = self.rules.generate_board_state_hash(self.board, self.current_player)
        self.history[key] = self.history.get(key, 0) + 1

    @property
    def variant(self) -> str:
        return self.rules.name

    def legal_moves(self) -> MoveMap:
        """Steps the side to move may play now; empty once the game is over."""
        if self.pending_jump is not None:
            piece = self.board.piece_at(self.pending_jump)
            if piece is None:
                raise IllegalMoveRequested(f"no piece on pending jump square {self.pending_jump}")
            targets = self.rules.continuation_moves(self.pending_jump, piece, self.board)
            return {self.pending_jump: targets} if targets else {}
        if self.status().is_over:
            return {}
        return self.rules.all_moves_for_player(self.board, self.current_player)

    def legal_move_list(self) -> List[Move]:
        legal = self.legal_moves()
        return [
            Move(origin, dest)
            for origin in sorted(legal, key=lambda p: p.index)
            for dest in sorted(legal[origin], key=lambda p: p.index)
        ]

    def apply_move(self, move: Move) -> MoveResult:
        """Play one step for the side to move.

        Raises:
            IllegalMoveRequested: If the step is not currently offered. The
                game is left untouched.
        """
        legal = self.legal_moves()
        if move.to_pos not in legal.get(move.from_pos, set()):
            raise IllegalMoveRequested(f"illegal move: {move.to_notation()}")
        result = self.rules.apply_move(self.board, move.from_pos, move.to_pos, self.current_player)

        turn_key: Optional[str] = None
        player_before = self.current_player
        pending_before = self.pending_jump
        board_before = self.board
        self.board = result.board
        if result.turn_changed:
            self.pending_jump = None
            self.current_player = self.current_player.opponent
            turn_key = self.rules.generate_board_state_hash(self.board, self.current_player)
            self.history[turn_key] = self.history.get(turn_key, 0) + 1
        else:
            self.pending_jump = move.to_pos
        self.move_stack.append(_Step(move, board_before, player_before, pending_before, turn_key))
        self._status = None
        return result

    def undo_move(self) -> Move:
        if not self.move_stack:
            raise ValueError("no moves to undo")
        step = self.move_stack.pop()
        if step.turn_key is not None:
            self.history[step.turn_key] -= 1
            if self.history[step.turn_key] <= 0:
                del self.history[step.turn_key]
        self.board = step.board_before
        self.current_player = step.player_before
        self.pending_jump = step.pending_before
        self._status = None
        return step.move

    def status(self) -> GameStatus:
        if self.pending_jump is not None:
            return GameStatus.ongoing()
        if self._status is None:
            jumps = self.rules.all_moves_for_player(self.board, self.current_player, jumps_only=True)
            regular = {} if jumps else self.rules.all_moves_for_player(self.board, self.current_player)
            self._status = self.rules.check_win_condition(
                self.board, self.current_player, jumps, regular, self.history
            )
            if self._status.is_over:
                logger.info("game over", extra={"status": self._status.to_payload()})
        return self._status

    def analyse(
        self, depth: int, quiescence_depth: int, rng: Optional[random.Random] = None
    ) -> SearchResult:
        """Search the current position for the side to move, mid-jump included."""
        service = SearchService(self.rules, rng=rng)
        return service.search(
            self.board, self.current_player, depth, quiescence_depth, origin=self.pending_jump
        )

    def suggest_move(
        self, depth: int, quiescence_depth: int, rng: Optional[random.Random] = None
    ) -> Optional[Move]:
        if self.status().is_over:
            return None
        return self.analyse(depth, quiescence_depth, rng).best_move

    def move_history(self) -> List[str]:
        return [step.move.to_notation() for step in self.move_stack]
