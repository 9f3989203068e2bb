"""Token Extraction Stage - Turn OCR block hierarchies into move tokens.

Score sheets come back from document analysis in very different shapes:
cells with text, cells that only point at their words, tables whose cells
carry nothing usable, or loose words with nothing but coordinates. Each
shape has its own stage; stages are tried in order and the first one that
yields anything wins.

Flow:
1. Cell text - cells with row/column indices and direct text
2. Cell words - cell text rebuilt from child word blocks
3. Table words - table -> cell -> word (or table -> word) walk
4. Geometric - loose words bucketed into rows by vertical position
5. Permissive scan - any short cell text with notation characters

Every stage returns an empty list rather than raising.
"""

import logging
import re
from typing import Callable, Optional

from scoresheet.config import settings
from scoresheet.models import (
    Block,
    BlockType,
    ExtractionStage,
    MoveToken,
    index_blocks,
)

logger = logging.getLogger(__name__)


# Characters that can appear in algebraic notation
NOTATION_CHAR = re.compile(r"[a-h1-8NBRQKx=+#O-]")

# "12. e4 e5", "12.e4", "12... Nf6"
NUMBERED_MOVE_PATTERN = re.compile(
    r"(?<![\w.])\d+\.+\s*[a-h1-8NBRQKx=+#O-]+"
    r"(?:\s+(?!\d+\.)[a-h1-8NBRQKx=+#O-]+)?",
    re.IGNORECASE,
)
MOVE_NUMBER_PREFIX = re.compile(r"^\d+\.+\s*")

# e4, exd5, e8=Q+, Nf3, Nbd7, R1e2, Qxh7#, O-O, 0-0-0
STANDALONE_MOVE_PATTERN = re.compile(
    r"(?<![\w-])(?:"
    r"(?:O-O(?:-O)?|0-0(?:-0)?)[+#]?"
    r"|[NBRQK][a-h]?[1-8]?x?[a-h][1-8][+#]?"
    r"|[a-h](?:x[a-h])?[1-8](?:=?[NBRQ])?[+#]?"
    r")(?![\w-])",
    re.IGNORECASE,
)

# Column headers and form labels printed on score sheets
HEADER_WORD_PATTERN = re.compile(
    r"^(?:white|black|move|round|result|date|event|tournament|site|player)",
    re.IGNORECASE,
)
HEADER_LINE_PATTERN = re.compile(
    r"^(?:move|round|white|black|result|date|event)",
    re.IGNORECASE,
)
BARE_INTEGER = re.compile(r"^\d+$")
GAME_RESULT = re.compile(r"^(?:1-0|0-1|1/2-1/2|\*)$")


def is_header_text(text: str) -> bool:
    """Check if text is a score-sheet label rather than a move."""
    return HEADER_WORD_PATTERN.match(text) is not None


def match_numbered_moves(text: str) -> list[str]:
    """Moves from `<number>. <move> <move>?` groups, numbers stripped."""
    moves: list[str] = []
    for match in NUMBERED_MOVE_PATTERN.finditer(text):
        moves.extend(MOVE_NUMBER_PREFIX.sub("", match.group(0)).split())
    return moves


def match_standalone_moves(text: str) -> list[str]:
    """Algebraic-notation moves anywhere in text."""
    return [match.group(0) for match in STANDALONE_MOVE_PATTERN.finditer(text)]


class TokenExtractor:
    """Extracts ordered move tokens from document-analysis blocks.

    Stateless between calls, so one extractor can serve many documents
    concurrently.
    """

    def __init__(
        self,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
        row_bucket_precision: Optional[int] = None,
    ):
        """Initialize extractor.

        Args:
            min_length: Shortest text the permissive heuristic accepts.
            max_length: Longest text the permissive heuristic accepts.
            row_bucket_precision: Quantization factor for geometric rows.
        """
        self.min_length = min_length or settings.token_min_length
        self.max_length = max_length or settings.token_max_length
        self.row_bucket_precision = (
            row_bucket_precision or settings.row_bucket_precision
        )

    def stages(self) -> list[tuple[ExtractionStage, Callable]]:
        """Fallback chain, in the order it is tried."""
        return [
            (ExtractionStage.CELL_TEXT, self.from_cell_text),
            (ExtractionStage.CELL_WORDS, self.from_cell_words),
            (ExtractionStage.TABLE_WORDS, self.from_table_words),
            (ExtractionStage.GEOMETRIC, self.from_geometry),
            (ExtractionStage.PERMISSIVE, self.from_permissive_scan),
        ]

    def extract(self, blocks: list[Block]) -> list[MoveToken]:
        """Run the fallback chain over one document's blocks.

        Args:
            blocks: All blocks of the document.

        Returns:
            Tokens in read order, empty if no stage found any moves.
        """
        index = index_blocks(blocks)

        for stage, extract_stage in self.stages():
            moves = extract_stage(blocks, index)
            if moves:
                logger.info(
                    "Extracted %d moves from %d blocks (%s)",
                    len(moves),
                    len(blocks),
                    stage.value,
                )
                return [
                    MoveToken(raw=move, index=i, source=stage)
                    for i, move in enumerate(moves)
                ]
            logger.debug("No moves from %s stage", stage.value)

        logger.info("No moves found in %d blocks", len(blocks))
        return []

    # Stage 1

    def from_cell_text(self, blocks: list[Block], index: dict[str, Block]) -> list[str]:
        """Moves from cells that carry row/column indices and direct text."""
        cells = [
            (cell, cell.text)
            for cell in blocks
            if cell.block_type == BlockType.CELL
            and cell.has_grid_position
            and cell.has_text
        ]
        return self._moves_from_cells(cells)

    # Stage 2

    def from_cell_words(self, blocks: list[Block], index: dict[str, Block]) -> list[str]:
        """Moves from cells whose text is rebuilt from child word blocks."""
        cells = []
        rebuilt = 0
        for cell in blocks:
            if cell.block_type != BlockType.CELL or not cell.has_grid_position:
                continue
            text = cell.resolve_text(index)
            if text is None:
                continue
            if not cell.has_text:
                rebuilt += 1
            cells.append((cell, text))

        if rebuilt == 0:
            return []
        return self._moves_from_cells(cells)

    # Stage 3

    def from_table_words(self, blocks: list[Block], index: dict[str, Block]) -> list[str]:
        """Moves from words reached through table relationships."""
        rows: dict[Optional[int], list[tuple[int, str]]] = {}

        for table in blocks:
            if table.block_type != BlockType.TABLE:
                continue
            for child_id in table.child_ids:
                child = index.get(child_id)
                if child is None:
                    continue
                if child.block_type == BlockType.CELL:
                    for word in self._child_words(child, index):
                        rows.setdefault(child.row, []).append(
                            (child.column or 0, word)
                        )
                elif child.block_type == BlockType.WORD and child.text:
                    rows.setdefault(None, []).append((0, child.text))

        # Indexed rows in order, words without a row last
        ordered = sorted(rows, key=lambda row: (row is None, row or 0))
        moves: list[str] = []
        for row in ordered:
            words = [text for _, text in sorted(rows[row], key=lambda w: w[0])]
            moves.extend(self._moves_from_row(words))
        return moves

    # Stage 4

    def from_geometry(self, blocks: list[Block], index: dict[str, Block]) -> list[str]:
        """Moves from loose words grouped into rows by vertical position."""
        buckets: dict[int, list[Block]] = {}
        for word in blocks:
            if word.block_type != BlockType.WORD or not word.has_text:
                continue
            if word.bbox is None:
                continue
            key = round(word.bbox.top * self.row_bucket_precision)
            buckets.setdefault(key, []).append(word)

        moves: list[str] = []
        for key in sorted(buckets):
            words = sorted(buckets[key], key=lambda w: w.bbox.left)
            texts = [w.text for w in words]
            if HEADER_LINE_PATTERN.match(" ".join(texts)):
                continue
            moves.extend(self._moves_from_row(texts))
        return moves

    # Stage 5

    def from_permissive_scan(
        self, blocks: list[Block], index: dict[str, Block]
    ) -> list[str]:
        """Every short cell text that could plausibly be a move."""
        return [
            cell.text
            for cell in blocks
            if cell.block_type == BlockType.CELL
            and cell.has_text
            and cell.row != 0
            and self.looks_like_move(cell.text)
        ]

    # Matching helpers

    def looks_like_move(self, text: str) -> bool:
        """Permissive heuristic: short, non-numeric, not a label, has notation."""
        return (
            self.min_length <= len(text) <= self.max_length
            and not BARE_INTEGER.match(text)
            and not GAME_RESULT.match(text)
            and not is_header_text(text)
            and NOTATION_CHAR.search(text) is not None
        )

    def _moves_from_cells(self, cells: list[tuple[Block, str]]) -> list[str]:
        """Filter, order and group cells by row, then match each row."""
        usable = [
            (cell.row, cell.column, text)
            for cell, text in cells
            if cell.row != 0 and not self._is_noise(text)
        ]
        usable.sort(key=lambda c: (c[0], c[1]))

        rows: dict[int, list[str]] = {}
        for row, _, text in usable:
            rows.setdefault(row, []).append(text)

        moves: list[str] = []
        for texts in rows.values():
            moves.extend(self._moves_from_row(texts))
        return moves

    def _moves_from_row(self, parts: list[str]) -> list[str]:
        """Row-level patterns first, then each part on its own.

        Standalone matches only stand for the row when there is at least one
        per usable part; otherwise a misread cell next to a clean one
        (`1 | eH | e5`) would be lost.
        """
        row_text = " ".join(parts).strip()

        moves = match_numbered_moves(row_text)
        if moves:
            return moves
        moves = match_standalone_moves(row_text)
        usable = [part for part in parts if not self._is_noise(part.strip())]
        if moves and len(moves) >= len(usable):
            return moves

        moves = []
        for part in usable:
            moves.extend(self._moves_from_part(part))
        return moves

    def _moves_from_part(self, text: str) -> list[str]:
        """Match a single cell or word."""
        text = text.strip()
        if self._is_noise(text):
            return []
        moves = match_numbered_moves(text) or match_standalone_moves(text)
        if moves:
            return moves
        return [text] if self.looks_like_move(text) else []

    def _is_noise(self, text: str) -> bool:
        """Labels, bare move numbers, game results and single characters."""
        return (
            len(text) < 2
            or BARE_INTEGER.match(text) is not None
            or GAME_RESULT.match(text) is not None
            or is_header_text(text)
        )

    @staticmethod
    def _child_words(cell: Block, index: dict[str, Block]) -> list[str]:
        """Text of a cell's word children, in order."""
        words = []
        for word_id in cell.child_ids:
            word = index.get(word_id)
            if word is not None and word.block_type == BlockType.WORD and word.text:
                words.append(word.text)
        return words
