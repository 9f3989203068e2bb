"""Pipeline stages for score-sheet reconciliation.

Deterministic Stages:
1. stage_ingest - Textract response to Block models
2. stage_extract - Blocks to ordered move tokens (fallback chain)
3. stage_reconcile - Tokens replayed and repaired against a chess position

Each stage is independent and can be run separately or
orchestrated through ScoresheetPipeline.
"""

from .orchestrator import ScoresheetPipeline, build_report
from .stage_extract import TokenExtractor
from .stage_ingest import load_textract_blocks, parse_textract_blocks
from .stage_reconcile import Reconciler, generate_candidates, normalize_token

__all__ = [
    # Ingest
    "load_textract_blocks",
    "parse_textract_blocks",
    # Extract
    "TokenExtractor",
    # Reconcile
    "Reconciler",
    "generate_candidates",
    "normalize_token",
    # Orchestration
    "ScoresheetPipeline",
    "build_report",
]
