"""Block-level IR models for regions detected by the document-analysis service."""

from typing import Optional

from pydantic import Field, field_validator

from .base import BaseIRModel, BlockType, BoundingBox, optional_text


class Relationship(BaseIRModel):
    """Typed reference from one block to others (CHILD, VALUE, ...)."""

    type: str = Field(default="CHILD")
    ids: list[str] = Field(default_factory=list)


class Block(BaseIRModel):
    """
    One OCR-detected region.

    Tables reference their cells and cells reference their words through
    CHILD relationships. Row and column indices are only set on cells.
    """

    id: str
    block_type: BlockType
    text: Optional[str] = Field(None, description="Direct OCR text, if any")
    row: Optional[int] = Field(None, ge=0, description="Row index (cells only)")
    column: Optional[int] = Field(None, ge=0, description="Column index (cells only)")
    bbox: Optional[BoundingBox] = None
    confidence: Optional[float] = Field(None, ge=0.0, le=100.0)
    relationships: list[Relationship] = Field(default_factory=list)

    @field_validator("text")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        return optional_text(value)

    @property
    def has_text(self) -> bool:
        """Check if block carries direct text."""
        return self.text is not None

    @property
    def has_grid_position(self) -> bool:
        """Check if block carries both row and column indices."""
        return self.row is not None and self.column is not None

    @property
    def child_ids(self) -> list[str]:
        """Ids of CHILD relationships, in order."""
        ids: list[str] = []
        for relationship in self.relationships:
            if relationship.type == "CHILD":
                ids.extend(relationship.ids)
        return ids

    def resolve_text(self, index: dict[str, "Block"]) -> Optional[str]:
        """Get direct text, else the ordered text of child word blocks.

        Args:
            index: Block id to block lookup for the document.

        Returns:
            Cell text, or None when neither source yields any.
        """
        if self.text is not None:
            return self.text
        words = []
        for child_id in self.child_ids:
            child = index.get(child_id)
            if child is not None and child.block_type == BlockType.WORD and child.text:
                words.append(child.text)
        return " ".join(words) if words else None


def index_blocks(blocks: list[Block]) -> dict[str, Block]:
    """Build an id lookup, first occurrence wins."""
    index: dict[str, Block] = {}
    for block in blocks:
        index.setdefault(block.id, block)
    return index
