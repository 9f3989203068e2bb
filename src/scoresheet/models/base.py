"""Base models and common types for the scoresheet reconciliation pipeline."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class BlockType(str, Enum):
    """Types of blocks emitted by the document-analysis service."""

    PAGE = "page"
    LINE = "line"
    WORD = "word"
    TABLE = "table"
    CELL = "cell"
    MERGED_CELL = "merged_cell"


class ExtractionStage(str, Enum):
    """Fallback stage of the token extractor that produced a token."""

    CELL_TEXT = "cell_text"
    CELL_WORDS = "cell_words"
    TABLE_WORDS = "table_words"
    GEOMETRIC = "geometric"
    PERMISSIVE = "permissive"


class CorrectionMethod(str, Enum):
    """How a token was resolved against the position."""

    EXACT = "exact"
    PATTERN = "pattern"
    LEVENSHTEIN = "levenshtein"
    NONE = "none"


class CorrectionError(str, Enum):
    """Reason a token was left unresolved."""

    NO_LEGAL_MOVES = "no-legal-moves"  # terminal position
    NO_MATCH = "no-match"  # over threshold, or rejected on commit


class BoundingBox(BaseModel):
    """Bounding box in normalized page coordinates (0-1)."""

    left: float = Field(0.0, description="Left edge X coordinate")
    top: float = Field(0.0, description="Top edge Y coordinate")
    width: float = Field(0.0, ge=0.0)
    height: float = Field(0.0, ge=0.0)

    @property
    def right(self) -> float:
        """Right edge X coordinate."""
        return self.left + self.width

    @property
    def bottom(self) -> float:
        """Bottom edge Y coordinate."""
        return self.top + self.height


class BaseIRModel(BaseModel):
    """Base class for all IR models."""

    class Config:
        from_attributes = True


class FrozenIRModel(BaseIRModel):
    """IR model that cannot be changed once built."""

    class Config:
        from_attributes = True
        frozen = True


def optional_text(value: Optional[str]) -> Optional[str]:
    """Strip text, mapping blank strings to None."""
    if value is None:
        return None
    value = value.strip()
    return value or None
