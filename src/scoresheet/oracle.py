"""Rules oracle - chess legality as a capability.

The reconciliation engine never looks inside a position. It only asks the
oracle three things: the starting position, the legal moves in a position
(in a stable order), and the position after applying a move written in
some notation. Failed applications return None and leave the input
position untouched.

`ChessRulesOracle` backs the protocol with python-chess, which owns check
detection, castling rights, en passant and promotion.
"""

from typing import Iterable, Optional, Protocol, TypeVar

import chess

from scoresheet.config import settings

PositionT = TypeVar("PositionT")


class OracleContractError(RuntimeError):
    """The oracle broke its contract (threw instead of answering).

    This is a programming error, not a data-quality problem, and aborts
    the whole reconciliation run.
    """


class RulesOracle(Protocol[PositionT]):
    """Capability the reconciliation engine consumes."""

    def initial_position(self) -> PositionT:
        """Starting position for a new game."""
        ...

    def legal_moves(self, position: PositionT) -> Iterable[str]:
        """Legal moves in `position`, in a stable order."""
        ...

    def apply_move(self, position: PositionT, notation: str) -> Optional[PositionT]:
        """Position after `notation`, or None if it is not a legal move."""
        ...


class ChessRulesOracle:
    """Rules oracle on top of python-chess boards.

    Positions are `chess.Board` objects. `apply_move` works on a copy, so
    the board passed in is never mutated.
    """

    def __init__(self, starting_fen: Optional[str] = None):
        """Initialize oracle.

        Args:
            starting_fen: FEN of the initial position (default from settings).
        """
        self.starting_fen = starting_fen or settings.starting_fen
        # Fail fast on a bad FEN rather than on the first document.
        chess.Board(self.starting_fen)

    def initial_position(self) -> chess.Board:
        """Fresh board at the configured starting position."""
        return chess.Board(self.starting_fen)

    def legal_moves(self, position: chess.Board) -> list[str]:
        """SAN of every legal move, in python-chess generation order."""
        return [position.san(move) for move in position.legal_moves]

    def apply_move(self, position: chess.Board, notation: str) -> Optional[chess.Board]:
        """Parse `notation` as SAN (long algebraic and 0-0 accepted) and play it.

        Returns:
            New board with the move pushed, or None if the move is invalid,
            illegal, ambiguous or a null move.
        """
        try:
            move = position.parse_san(notation)
        except ValueError:
            return None
        if not move:
            # parse_san maps "--", "Z0" and "0000" to the null move
            return None

        trial = position.copy()
        trial.push(move)
        return trial

