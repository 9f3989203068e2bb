"""Pytest configuration and fixtures."""

import json

import pytest

from scoresheet.oracle import ChessRulesOracle
from scoresheet.pipeline import Reconciler, TokenExtractor


@pytest.fixture
def oracle():
    """python-chess oracle from the standard starting position."""
    return ChessRulesOracle()


@pytest.fixture
def reconciler(oracle):
    """Reconciler with the default distance threshold."""
    return Reconciler(oracle, max_distance=2)


@pytest.fixture
def extractor():
    """Extractor with default length limits."""
    return TokenExtractor(min_length=2, max_length=10, row_bucket_precision=1000)


@pytest.fixture
def textract_payload():
    """Textract response for a two-move score sheet.

    Cells carry no text of their own, as Textract emits them; the text
    lives in child WORD blocks. Row 1 is the printed header.
    """

    def word(block_id, text, top, left):
        return {
            "BlockType": "WORD",
            "Id": block_id,
            "Text": text,
            "Confidence": 97.5,
            "Geometry": {
                "BoundingBox": {"Left": left, "Top": top, "Width": 0.05, "Height": 0.02}
            },
        }

    def cell(block_id, row, column, word_ids):
        return {
            "BlockType": "CELL",
            "Id": block_id,
            "RowIndex": row,
            "ColumnIndex": column,
            "Relationships": [{"Type": "CHILD", "Ids": word_ids}],
        }

    return {
        "DocumentMetadata": {"Pages": 1},
        "Blocks": [
            {"BlockType": "PAGE", "Id": "page-1", "Relationships": [
                {"Type": "CHILD", "Ids": ["table-1"]}
            ]},
            {"BlockType": "TABLE", "Id": "table-1", "Relationships": [
                {"Type": "CHILD", "Ids": ["cell-1-1", "cell-1-2", "cell-1-3",
                                          "cell-2-1", "cell-2-2", "cell-2-3",
                                          "cell-3-1", "cell-3-2", "cell-3-3"]}
            ]},
            cell("cell-1-1", 1, 1, ["w-hash"]),
            cell("cell-1-2", 1, 2, ["w-white"]),
            cell("cell-1-3", 1, 3, ["w-black"]),
            cell("cell-2-1", 2, 1, ["w-1"]),
            cell("cell-2-2", 2, 2, ["w-e4"]),
            cell("cell-2-3", 2, 3, ["w-e5"]),
            cell("cell-3-1", 3, 1, ["w-2"]),
            cell("cell-3-2", 3, 2, ["w-nf3"]),
            cell("cell-3-3", 3, 3, ["w-nc6"]),
            word("w-hash", "#", 0.10, 0.10),
            word("w-white", "White", 0.10, 0.30),
            word("w-black", "Black", 0.10, 0.60),
            word("w-1", "1", 0.20, 0.10),
            word("w-e4", "e4", 0.20, 0.30),
            word("w-e5", "e5", 0.20, 0.60),
            word("w-2", "2", 0.30, 0.10),
            word("w-nf3", "Nf3", 0.30, 0.30),
            word("w-nc6", "Nc6", 0.30, 0.60),
            {"BlockType": "KEY_VALUE_SET", "Id": "kv-1"},
        ],
    }


@pytest.fixture
def textract_file(tmp_path, textract_payload):
    """Textract response written to disk."""
    path = tmp_path / "sheet.json"
    path.write_text(json.dumps(textract_payload))
    return path
