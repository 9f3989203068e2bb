"""IR (Intermediate Representation) models for the scoresheet pipeline.

This module defines the Pydantic models that represent data flowing through
the pipeline stages:

- Block: regions from the document-analysis service (tables, cells, words)
- MoveToken: ordered candidate move strings produced by extraction
- CorrectionRecord / ReconciliationResult: the reconciliation audit trail

Blocks are read-only input. Tokens and records are created fresh per
document and never mutated.
"""

from .base import (
    BaseIRModel,
    BlockType,
    BoundingBox,
    CorrectionError,
    CorrectionMethod,
    ExtractionStage,
    FrozenIRModel,
)
from .block import (
    Block,
    Relationship,
    index_blocks,
)
from .move import (
    CorrectionRecord,
    MoveToken,
    ReconciliationResult,
    ReconciliationStats,
)

__all__ = [
    # Base types
    "BaseIRModel",
    "FrozenIRModel",
    "BlockType",
    "BoundingBox",
    "CorrectionError",
    "CorrectionMethod",
    "ExtractionStage",
    # Block
    "Block",
    "Relationship",
    "index_blocks",
    # Move
    "MoveToken",
    "CorrectionRecord",
    "ReconciliationStats",
    "ReconciliationResult",
]
