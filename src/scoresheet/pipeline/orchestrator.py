"""Pipeline orchestration - blocks to tokens to reconciled moves.

One document is strictly sequential (each move depends on the position the
previous one produced). Independent documents share nothing and run in
parallel worker processes.
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from scoresheet.config import settings
from scoresheet.models import Block, ReconciliationResult
from scoresheet.oracle import ChessRulesOracle, RulesOracle
from scoresheet.pipeline.stage_extract import TokenExtractor
from scoresheet.pipeline.stage_ingest import load_textract_blocks
from scoresheet.pipeline.stage_reconcile import Reconciler

logger = logging.getLogger(__name__)

# Corrections listed in the summary log line
LOGGED_CORRECTIONS = 10


class ScoresheetPipeline:
    """Runs extraction and reconciliation for score-sheet documents."""

    def __init__(
        self,
        oracle: Optional[RulesOracle] = None,
        extractor: Optional[TokenExtractor] = None,
        reconciler: Optional[Reconciler] = None,
    ):
        """Initialize pipeline.

        Args:
            oracle: Rules oracle (default: python-chess from the standard start).
            extractor: Token extractor (default settings).
            reconciler: Reconciler (default: built on `oracle`).
        """
        self.oracle = oracle or ChessRulesOracle()
        self.extractor = extractor or TokenExtractor()
        self.reconciler = reconciler or Reconciler(self.oracle)

    def process_blocks(self, blocks: list[Block]) -> ReconciliationResult:
        """Extract and reconcile one document.

        Args:
            blocks: All blocks of the document.

        Returns:
            ReconciliationResult, empty when no moves were found.
        """
        tokens = self.extractor.extract(blocks)
        if not tokens:
            logger.info("No moves found, skipping reconciliation")
            return ReconciliationResult.empty()

        # Fresh position per document
        result = self.reconciler.reconcile(tokens, self.oracle.initial_position())
        log_summary(result)
        return result

    def process_file(self, path: Path) -> ReconciliationResult:
        """Extract and reconcile a Textract response file."""
        logger.info("Processing %s", path)
        return self.process_blocks(load_textract_blocks(path))

    def process_many(
        self,
        paths: list[Path],
        max_workers: Optional[int] = None,
    ) -> dict[Path, ReconciliationResult]:
        """Process independent documents in parallel.

        Args:
            paths: Textract response files.
            max_workers: Worker processes (default from settings).

        Returns:
            Result per path, in input order.
        """
        paths = [Path(p) for p in paths]
        max_workers = max_workers or settings.max_workers

        if max_workers <= 1 or len(paths) <= 1:
            return {path: self.process_file(path) for path in paths}

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(self.process_file, path) for path in paths]
            return {path: future.result() for path, future in zip(paths, futures)}


def log_summary(result: ReconciliationResult) -> None:
    """Log counts and the first few corrections of a run."""
    stats = result.stats
    logger.info(
        "Validated %d moves: %d valid, %d corrected, %d invalid (%.1f%% corrected)",
        stats.total,
        stats.valid,
        stats.corrected,
        stats.invalid,
        stats.correction_rate * 100,
    )
    corrections = result.corrections
    if corrections:
        logger.info(
            "Corrections: %s",
            ", ".join(r.describe() for r in corrections[:LOGGED_CORRECTIONS]),
        )


def build_report(result: ReconciliationResult, source: Optional[str] = None) -> dict[str, Any]:
    """JSON-ready report for downstream formatters and review tools.

    Args:
        result: Reconciliation result.
        source: Name of the processed document.

    Returns:
        Dict with a `chessValidation` section.
    """
    return {
        "source": source,
        "chessValidation": {
            "originalMoves": list(result.original_moves),
            "correctedMoves": list(result.corrected_moves),
            "corrections": [
                record.model_dump(mode="json", exclude_none=True)
                for record in result.corrections
            ],
            "stats": result.stats.model_dump(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }
