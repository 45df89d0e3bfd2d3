"""Variant-independent rules contract.

Concrete variants only describe piece geometry (``regular_targets`` and
``jump_steps``); everything built on top of that (move application,
multi-jump sequences, mandatory and maximal capture, terminal detection,
repetition hashing) lives here so both variants share one implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Final, List, Mapping, Optional, Set, Tuple

from .bits import iter_bits
from .board import BoardState, Color, Piece, Position
from .errors import IllegalMoveRequested, InvalidIndex
from .move import CaptureSequence
from .status import GameEndReason, GameStatus

if TYPE_CHECKING:
    from src.eval import Evaluator


MoveMap = Dict[Position, Set[Position]]

# origin square -> [(landing, captured), ...]
StepMap = Dict[int, List[Tuple[int, int]]]

# (landing squares incl. origin, captured squares, board after the whole line)
CaptureLine = Tuple[Tuple[int, ...], Tuple[int, ...], BoardState]

# Squares with row + col even
LIGHT_SQUARES: Final = 0xAA55AA55AA55AA55


def landing_count(steps: StepMap) -> int:
    return sum(len(found) for found in steps.values())


def captured_mask(steps: StepMap) -> int:
    """Bitmask of every square some step in ``steps`` captures."""
    mask = 0
    for found in steps.values():
        for _, cap in found:
            mask |= 1 << cap
    return mask


@dataclass(frozen=True)
class MoveResult:
    """Result of :meth:`GameRules.apply_move`.

    Attributes:
        board (BoardState): Position after the step.
        turn_changed (bool): False while the moved piece must keep jumping.
        piece_kinged (bool): True if the step crowned a man.
        captured (Optional[Position]): Square of the removed piece, if any.
    """

    board: BoardState
    turn_changed: bool
    piece_kinged: bool
    captured: Optional[Position] = None


def move_piece(
    board: BoardState, from_sq: int, to_sq: int, captured_sq: Optional[int] = None
) -> Tuple[BoardState, bool]:
    """Move the piece on ``from_sq`` to ``to_sq`` at bit level.

    Removes ``captured_sq`` when given and crowns a man that lands on its
    promotion row. Returns the new board and whether a crowning happened.
    """
    src = 1 << from_sq
    dst = 1 << to_sq
    keep = ~(1 << captured_sq) if captured_sq is not None else -1
    bm, bk, rm, rk = board.black_men, board.black_kings, board.red_men, board.red_kings
    kinged = False
    if bm & src:
        bm ^= src
        if to_sq >> 3 == 7:
            bk |= dst
            kinged = True
        else:
            bm |= dst
        rm &= keep
        rk &= keep
    elif bk & src:
        bk = (bk ^ src) | dst
        rm &= keep
        rk &= keep
    elif rm & src:
        rm ^= src
        if to_sq >> 3 == 0:
            rk |= dst
            kinged = True
        else:
            rm |= dst
        bm &= keep
        bk &= keep
    elif rk & src:
        rk = (rk ^ src) | dst
        bm &= keep
        bk &= keep
    else:
        raise IllegalMoveRequested(f"no piece on square {from_sq}")
    return BoardState(bm, bk, rm, rk), kinged


class GameRules(ABC):
    """Rules of one checkers variant.

    Instances are stateless and safe to share between threads; every query
    takes the board explicitly and every update returns a new board.
    """

    name: str = ""
    starting_player: Color = Color.RED
    pieces_on_dark_squares_only: bool = False

    # --- Variant geometry ---
    @abstractmethod
    def initial_setup(self) -> BoardState:
        ...

    @abstractmethod
    def regular_targets(self, sq: int, color: Color, is_king: bool, board: BoardState) -> int:
        """Bitmask of empty squares the piece on ``sq`` can slide to."""

    @abstractmethod
    def jump_steps(
        self, sq: int, color: Color, is_king: bool, board: BoardState
    ) -> List[Tuple[int, int]]:
        """``(landing, captured)`` square pairs for one capture step from ``sq``."""

    @abstractmethod
    def is_maximal_capture_mandatory(self) -> bool:
        ...

    @property
    @abstractmethod
    def evaluator(self) -> "Evaluator":
        ...

    def evaluate(self, board: BoardState, ai_color: Color) -> float:
        return self.evaluator.evaluate(board, ai_color, self)

    def validate(self, board: BoardState) -> BoardState:
        """Check that ``board`` only uses squares this variant plays on.

        Raises:
            InvalidIndex: If a piece stands on a light square in a dark-square
                variant.
        """
        if self.pieces_on_dark_squares_only and board.occupied & LIGHT_SQUARES:
            raise InvalidIndex("pieces must stand on dark squares in this variant")
        return board

    # --- Per-piece queries ---
    def regular_moves(self, pos: Position, piece: Piece, board: BoardState) -> Set[Position]:
        targets = self.regular_targets(pos.index, piece.color, piece.is_king, board)
        return {Position.from_index(sq) for sq in iter_bits(targets)}

    def jump_moves(self, pos: Position, piece: Piece, board: BoardState) -> Set[Position]:
        steps = self.jump_steps(pos.index, piece.color, piece.is_king, board)
        return {Position.from_index(land) for land, _ in steps}

    def further_jumps(self, pos: Position, piece: Piece, board: BoardState) -> Set[Position]:
        return self.jump_moves(pos, piece, board)

    def continuation_moves(
        self, pos: Position, piece: Piece, board: BoardState
    ) -> Set[Position]:
        """Landing squares offered while a multi-jump is in progress.

        Under maximal capture only steps that continue one of the longest
        sequences from ``pos`` are offered.
        """
        if not self.is_maximal_capture_mandatory():
            return self.further_jumps(pos, piece, board)
        lines = self.capture_lines(board, pos.index, piece.color, piece.is_king)
        if not lines:
            return set()
        best = max(len(captured) for _, captured, _ in lines)
        return {Position.from_index(path[1]) for path, captured, _ in lines if len(captured) == best}

    # --- Capture sequences ---
    def capture_lines(
        self, board: BoardState, sq: int, color: Color, is_king: bool
    ) -> List[CaptureLine]:
        """Enumerate every complete capture sequence of the piece on ``sq``.

        Depth-first: each jump is applied (captured piece removed at once),
        then the search continues from the landing square. A man that is
        crowned by a jump stops there. Lines are returned in discovery order.
        """
        out: List[CaptureLine] = []
        self._walk_captures(board, sq, color, is_king, [sq], [], out)
        return out

    def _walk_captures(
        self,
        board: BoardState,
        sq: int,
        color: Color,
        is_king: bool,
        path: List[int],
        captured: List[int],
        out: List[CaptureLine],
    ) -> None:
        steps = self.jump_steps(sq, color, is_king, board)
        if not steps:
            if captured:
                out.append((tuple(path), tuple(captured), board))
            return
        for land, cap in steps:
            nb, kinged = move_piece(board, sq, land, cap)
            path.append(land)
            captured.append(cap)
            if kinged:
                out.append((tuple(path), tuple(captured), nb))
            else:
                self._walk_captures(nb, land, color, is_king, path, captured, out)
            path.pop()
            captured.pop()

    def capture_sequences(
        self, pos: Position, piece: Piece, board: BoardState
    ) -> List[CaptureSequence]:
        lines = self.capture_lines(board, pos.index, piece.color, piece.is_king)
        return [
            CaptureSequence(
                path=tuple(Position.from_index(sq) for sq in path),
                captured=tuple(Position.from_index(sq) for sq in captured),
            )
            for path, captured, _ in lines
        ]

    # --- Player-level queries ---
    def all_moves_for_player(
        self, board: BoardState, player: Color, jumps_only: bool = False
    ) -> MoveMap:
        """First-step options for every piece of ``player``.

        Args:
            board (BoardState): Current position.
            player (Color): Side to move.
            jumps_only (bool): Only report captures; empty if none exist.

        Returns:
            MoveMap: ``{origin: {destinations}}``. If any capture exists only
            captures are reported (mandatory jump), and under maximal capture
            only first steps of the globally longest sequences are kept.
        """
        jumps = self._jump_map(board, player)
        if jumps or jumps_only:
            return jumps
        moves: MoveMap = {}
        for sq, is_king in self.pieces(board, player):
            targets = self.regular_targets(sq, player, is_king, board)
            if targets:
                moves[Position.from_index(sq)] = {Position.from_index(t) for t in iter_bits(targets)}
        return moves

    def _jump_map(self, board: BoardState, player: Color) -> MoveMap:
        jumps: MoveMap = {}
        if not self.is_maximal_capture_mandatory():
            for sq, is_king in self.pieces(board, player):
                steps = self.jump_steps(sq, player, is_king, board)
                if steps:
                    jumps[Position.from_index(sq)] = {Position.from_index(land) for land, _ in steps}
            return jumps
        best = 0
        for sq, is_king in self.pieces(board, player):
            if not self.jump_steps(sq, player, is_king, board):
                continue
            for path, captured, _ in self.capture_lines(board, sq, player, is_king):
                n = len(captured)
                if n > best:
                    best = n
                    jumps = {}
                if n == best:
                    jumps.setdefault(Position.from_index(sq), set()).add(Position.from_index(path[1]))
        return jumps

    def capture_steps(self, board: BoardState, player: Color) -> StepMap:
        """One-jump ``(landing, captured)`` steps of every ``player`` piece that has any.

        This is the single jump scan the evaluators derive threats, exposure
        and mobility from.
        """
        steps: StepMap = {}
        for sq, is_king in self.pieces(board, player):
            found = self.jump_steps(sq, player, is_king, board)
            if found:
                steps[sq] = found
        return steps

    def quiet_mobility(self, board: BoardState, player: Color) -> int:
        """Slide destinations of every ``player`` piece, ignoring captures."""
        return sum(
            self.regular_targets(sq, player, is_king, board).bit_count()
            for sq, is_king in self.pieces(board, player)
        )

    def mobility(self, board: BoardState, player: Color) -> int:
        """Raw destination count (slides plus jump landings), ignoring mandatory capture."""
        return self.quiet_mobility(board, player) + landing_count(self.capture_steps(board, player))

    def capturable(self, board: BoardState, attacker: Color) -> int:
        """Bitmask of the defender's pieces ``attacker`` can take with one jump."""
        return captured_mask(self.capture_steps(board, attacker))

    @staticmethod
    def pieces(board: BoardState, player: Color) -> List[Tuple[int, bool]]:
        men = board.men_of(player)
        kings = board.kings_of(player)
        out = [(sq, False) for sq in iter_bits(men)]
        out.extend((sq, True) for sq in iter_bits(kings))
        out.sort()
        return out

    # --- Move application ---
    def apply_move(
        self, board: BoardState, from_pos: Position, to_pos: Position, player: Color
    ) -> MoveResult:
        """Apply one step of ``player``'s turn.

        The step must be a geometric slide or jump for the piece on
        ``from_pos``; mandatory-capture filtering is the caller's concern.

        Raises:
            IllegalMoveRequested: If ``from_pos`` holds no piece of ``player``,
                ``to_pos`` is occupied or the piece cannot reach it.
        """
        piece = board.piece_at(from_pos)
        if piece is None or piece.color != player:
            raise IllegalMoveRequested(f"no {player.value} piece on {from_pos}")
        if board.is_occupied(to_pos):
            raise IllegalMoveRequested(f"destination {to_pos} is occupied")
        src, dst = from_pos.index, to_pos.index
        captured_sq: Optional[int] = None
        for land, cap in self.jump_steps(src, player, piece.is_king, board):
            if land == dst:
                captured_sq = cap
                break
        if captured_sq is None:
            if not (self.regular_targets(src, player, piece.is_king, board) >> dst) & 1:
                raise IllegalMoveRequested(
                    f"{piece.color.value} piece on {from_pos} cannot move to {to_pos}"
                )
        new_board, kinged = move_piece(board, src, dst, captured_sq)
        if captured_sq is None or kinged:
            turn_changed = True
        else:
            turn_changed = not self.jump_steps(dst, player, piece.is_king, new_board)
        return MoveResult(
            board=new_board,
            turn_changed=turn_changed,
            piece_kinged=kinged,
            captured=Position.from_index(captured_sq) if captured_sq is not None else None,
        )

    # --- Terminal detection ---
    def check_win_condition(
        self,
        board: BoardState,
        player: Color,
        legal_jumps: Mapping[Position, Set[Position]],
        legal_regular: Mapping[Position, Set[Position]],
        history_counts: Mapping[str, int],
    ) -> GameStatus:
        """Status of the position with ``player`` to move.

        Checked in order: threefold repetition, no pieces left, no moves left.
        """
        key = self.generate_board_state_hash(board, player)
        if history_counts.get(key, 0) >= 3:
            return GameStatus.draw(GameEndReason.THREEFOLD_REPETITION)
        if board.count(player) == 0:
            return GameStatus.win(player.opponent, GameEndReason.NO_PIECES_LEFT)
        if not any(legal_jumps.values()) and not any(legal_regular.values()):
            return GameStatus.win(player.opponent, GameEndReason.NO_MOVES_LEFT)
        return GameStatus.ongoing()

    @staticmethod
    def generate_board_state_hash(board: BoardState, player_to_move: Color) -> str:
        return (
            f"{player_to_move.value}:{board.black_men}:{board.black_kings}"
            f":{board.red_men}:{board.red_kings}"
        )
