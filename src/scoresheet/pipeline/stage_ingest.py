"""Ingestion Stage - Read document-analysis output into Block models.

Accepts AWS Textract `AnalyzeDocument` responses (TABLES feature), either
the full response object or its bare `Blocks` list.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError

from scoresheet.models import Block, BlockType, BoundingBox, Relationship

logger = logging.getLogger(__name__)


TEXTRACT_BLOCK_TYPES = {
    "PAGE": BlockType.PAGE,
    "LINE": BlockType.LINE,
    "WORD": BlockType.WORD,
    "TABLE": BlockType.TABLE,
    "CELL": BlockType.CELL,
    "MERGED_CELL": BlockType.MERGED_CELL,
}


def parse_textract_block(raw: dict[str, Any]) -> Optional[Block]:
    """Convert one Textract block dict.

    Returns:
        Block, or None for unsupported types or malformed entries.
    """
    block_type = TEXTRACT_BLOCK_TYPES.get(raw.get("BlockType", ""))
    if block_type is None or not raw.get("Id"):
        return None

    bbox = None
    box = (raw.get("Geometry") or {}).get("BoundingBox")
    if box:
        bbox = BoundingBox(
            left=box.get("Left", 0.0),
            top=box.get("Top", 0.0),
            width=box.get("Width", 0.0),
            height=box.get("Height", 0.0),
        )

    relationships = [
        Relationship(type=rel.get("Type", "CHILD"), ids=list(rel.get("Ids") or []))
        for rel in raw.get("Relationships") or []
    ]

    try:
        return Block(
            id=raw["Id"],
            block_type=block_type,
            text=raw.get("Text"),
            row=raw.get("RowIndex"),
            column=raw.get("ColumnIndex"),
            bbox=bbox,
            confidence=raw.get("Confidence"),
            relationships=relationships,
        )
    except ValidationError as e:
        logger.debug("Skipping malformed block %s: %s", raw.get("Id"), e)
        return None


def parse_textract_blocks(
    payload: Union[dict[str, Any], list[dict[str, Any]]],
    keep_types: Optional[Iterable[BlockType]] = None,
) -> list[Block]:
    """Convert a Textract response into Blocks, preserving order.

    Args:
        payload: Response dict with a `Blocks` key, or the block list itself.
        keep_types: Only keep these block types (default: all supported).

    Returns:
        List of Block objects.
    """
    if isinstance(payload, dict):
        raw_blocks = payload.get("Blocks") or []
    elif isinstance(payload, list):
        raw_blocks = payload
    else:
        raise ValueError(f"Unsupported Textract payload: {type(payload).__name__}")

    wanted = set(keep_types) if keep_types is not None else None
    blocks = []
    skipped = 0
    for raw in raw_blocks:
        block = parse_textract_block(raw) if isinstance(raw, dict) else None
        if block is None:
            skipped += 1
            continue
        if wanted is None or block.block_type in wanted:
            blocks.append(block)

    if skipped:
        logger.debug("Skipped %d unsupported blocks", skipped)
    return blocks


def load_textract_blocks(
    path: Path,
    keep_types: Optional[Iterable[BlockType]] = None,
) -> list[Block]:
    """Read a Textract response JSON file.

    Args:
        path: Path to JSON file.
        keep_types: Only keep these block types.

    Returns:
        List of Block objects.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Textract response not found: {path}")

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    return parse_textract_blocks(payload, keep_types=keep_types)
