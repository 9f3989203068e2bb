"""Reconciliation Stage - Replay move tokens against a chess position.

Each token is resolved in one of four ways, in order:

1. exact - legal as written
2. pattern - legal after one OCR-confusion substitution or a castling rewrite
3. levenshtein - nearest legal move within the edit-distance threshold
4. none - left as written and flagged for review

The position only advances on resolved tokens, so one unreadable move does
not turn the rest of the game into false corrections.
"""

import logging
import re
from typing import Any, Iterator, Optional

from rapidfuzz.distance import Levenshtein

from scoresheet.config import settings
from scoresheet.models import (
    CorrectionError,
    CorrectionMethod,
    CorrectionRecord,
    MoveToken,
    ReconciliationResult,
)
from scoresheet.oracle import OracleContractError, RulesOracle

logger = logging.getLogger(__name__)


# Characters OCR commonly reads in place of the intended one
OCR_SUBSTITUTIONS = {
    "H": "4",  # eH -> e4
    "h": "4",
    "b": "6",  # eb -> e6
    "l": "1",  # cl -> c1
    "o": "0",
    "O": "0",
    "I": "1",
    "S": "5",
    "Z": "2",
    "G": "6",
}

# Whole-token castling rewrites, check/mate suffix kept
CASTLING_REWRITES = [
    (re.compile(r"^o-o([+#]?)$", re.IGNORECASE), r"0-0\1"),
    (re.compile(r"^o-o-o([+#]?)$", re.IGNORECASE), r"0-0-0\1"),
    (re.compile(r"^00([+#]?)$"), r"0-0\1"),
    (re.compile(r"^000([+#]?)$"), r"0-0-0\1"),
]

MOVE_NUMBER_PREFIX = re.compile(r"^\d+\.+\s*")


def normalize_token(raw: str) -> str:
    """Strip a `12.` move-number prefix and keep only the first word.

    >>> normalize_token("12. Nf3 Nc6")
    'Nf3'
    """
    text = MOVE_NUMBER_PREFIX.sub("", raw.strip()).strip()
    parts = text.split()
    return parts[0] if parts else ""


def generate_candidates(move: str) -> list[str]:
    """OCR-repair candidates for a move, original first, no duplicates.

    Single-character substitutions by ascending index, one at a time,
    followed by castling rewrites.
    """
    candidates = [move]
    for i, char in enumerate(move):
        replacement = OCR_SUBSTITUTIONS.get(char)
        if replacement is not None:
            candidates.append(move[:i] + replacement + move[i + 1 :])

    for pattern, replacement in CASTLING_REWRITES:
        if pattern.match(move):
            candidates.append(pattern.sub(replacement, move))

    return list(dict.fromkeys(candidates))


class Reconciler:
    """Replays tokens against positions from a rules oracle.

    Holds no per-game state: every call to `reconcile` owns the position it
    is given, so independent documents can be reconciled in parallel.
    """

    def __init__(
        self,
        oracle: RulesOracle,
        max_distance: Optional[int] = None,
    ):
        """Initialize reconciler.

        Args:
            oracle: Rules oracle for legality checks.
            max_distance: Largest edit distance accepted (default from settings).
        """
        self.oracle = oracle
        self.max_distance = (
            max_distance if max_distance is not None else settings.max_edit_distance
        )

    def reconcile(
        self,
        tokens: list[MoveToken],
        initial_position: Any = None,
    ) -> ReconciliationResult:
        """Resolve every token, left to right.

        Args:
            tokens: Move tokens in read order.
            initial_position: Position before the first token, owned by this
                call (default: the oracle's initial position).

        Returns:
            ReconciliationResult with one record per token.

        Raises:
            OracleContractError: If the oracle throws.
        """
        if initial_position is None:
            initial_position = self._call(self.oracle.initial_position)
        position = initial_position

        records: list[CorrectionRecord] = []
        for token in tokens:
            record, position = self.resolve(token, position)
            records.append(record)

        return ReconciliationResult.from_records(records)

    def resolve(self, token: MoveToken, position: Any) -> tuple[CorrectionRecord, Any]:
        """Resolve one token.

        Returns:
            The record, and the position after the token (unchanged when the
            token could not be resolved).
        """
        normalized = normalize_token(token.raw)
        base = {"index": token.index, "original": token.raw, "normalized": normalized}

        # Nothing to compare; a search would accept any two-character move
        if not normalized:
            logger.info("Token %d is empty after normalization", token.index)
            return CorrectionRecord(
                **base, method=CorrectionMethod.NONE, error=CorrectionError.NO_MATCH
            ), position

        # Exact
        applied = self._apply(position, normalized)
        if applied is not None:
            return CorrectionRecord(
                **base, corrected=normalized, method=CorrectionMethod.EXACT
            ), applied

        # Pattern
        for candidate in generate_candidates(normalized)[1:]:
            trial = self._apply(position, candidate)
            if trial is not None:
                logger.debug("Pattern repair %s -> %s", normalized, candidate)
                return CorrectionRecord(
                    **base, corrected=candidate, method=CorrectionMethod.PATTERN
                ), trial

        # Levenshtein
        match, distance, scanned = self._nearest_legal_move(normalized, position)
        if scanned == 0:
            logger.info("No legal moves for token %d (%s)", token.index, token.raw)
            return CorrectionRecord(
                **base, method=CorrectionMethod.NONE, error=CorrectionError.NO_LEGAL_MOVES
            ), position

        if distance <= self.max_distance:
            applied = self._apply(position, match)
            if applied is not None:
                logger.debug(
                    "Levenshtein repair %s -> %s (distance %d)",
                    normalized,
                    match,
                    distance,
                )
                return CorrectionRecord(
                    **base,
                    corrected=match,
                    method=CorrectionMethod.LEVENSHTEIN,
                    distance=distance,
                ), applied
            logger.warning(
                "Oracle rejected its own legal move %r for token %d", match, token.index
            )
        else:
            logger.info(
                "No legal move within distance %d of %r (nearest %r at %d)",
                self.max_distance,
                normalized,
                match,
                distance,
            )

        return CorrectionRecord(
            **base,
            method=CorrectionMethod.NONE,
            distance=distance,
            error=CorrectionError.NO_MATCH,
        ), position

    def _nearest_legal_move(
        self, move: str, position: Any
    ) -> tuple[Optional[str], Optional[int], int]:
        """Closest legal move by edit distance.

        Stops at the first move at distance 1. Ties go to the earliest move
        in the oracle's enumeration order.

        Returns:
            (move, distance, number of legal moves scanned)
        """
        best_move: Optional[str] = None
        best_distance: Optional[int] = None
        scanned = 0

        for legal_move in self._legal_moves(position):
            scanned += 1
            distance = Levenshtein.distance(move, legal_move)
            if distance == 1:
                return legal_move, distance, scanned
            if best_distance is None or distance < best_distance:
                best_move, best_distance = legal_move, distance

        return best_move, best_distance, scanned

    def _legal_moves(self, position: Any) -> Iterator[str]:
        """Enumerate legal moves lazily, wrapping oracle failures."""
        try:
            for move in self.oracle.legal_moves(position):
                yield move
        except Exception as e:
            raise OracleContractError(f"legal_moves failed: {e}") from e

    def _apply(self, position: Any, notation: str) -> Any:
        """Trial-apply a move; None when the oracle rejects it."""
        return self._call(self.oracle.apply_move, position, notation)

    @staticmethod
    def _call(method, *args) -> Any:
        try:
            return method(*args)
        except Exception as e:
            name = getattr(method, "__name__", "oracle call")
            raise OracleContractError(f"{name} failed: {e}") from e
