"""Tests for Textract ingestion."""

import pytest

from scoresheet.models import BlockType
from scoresheet.pipeline.stage_ingest import (
    load_textract_blocks,
    parse_textract_block,
    parse_textract_blocks,
)


class TestParseTextractBlock:
    """Tests for single-block conversion."""

    def test_cell(self):
        block = parse_textract_block({
            "BlockType": "CELL",
            "Id": "c1",
            "RowIndex": 2,
            "ColumnIndex": 3,
            "Confidence": 88.1,
            "Relationships": [{"Type": "CHILD", "Ids": ["w1", "w2"]}],
        })

        assert block.block_type == BlockType.CELL
        assert (block.row, block.column) == (2, 3)
        assert block.child_ids == ["w1", "w2"]
        assert block.text is None

    def test_word_geometry(self):
        block = parse_textract_block({
            "BlockType": "WORD",
            "Id": "w1",
            "Text": " Nf3 ",
            "Geometry": {"BoundingBox": {"Left": 0.25, "Top": 0.5, "Width": 0.1, "Height": 0.02}},
        })

        assert block.text == "Nf3"
        assert block.bbox.left == 0.25
        assert block.bbox.top == 0.5

    @pytest.mark.parametrize(
        "raw",
        [
            {"BlockType": "KEY_VALUE_SET", "Id": "kv1"},
            {"BlockType": "WORD", "Text": "e4"},
            {"Id": "x1"},
            {"BlockType": "CELL", "Id": "c1", "RowIndex": -1},
            {"BlockType": "WORD", "Id": "w1", "Confidence": 250},
        ],
    )
    def test_unsupported_or_malformed(self, raw):
        assert parse_textract_block(raw) is None


class TestParseTextractBlocks:
    """Tests for whole-response conversion."""

    def test_response_object(self, textract_payload):
        blocks = parse_textract_blocks(textract_payload)

        # Everything except the KEY_VALUE_SET block
        assert len(blocks) == len(textract_payload["Blocks"]) - 1
        assert blocks[0].block_type == BlockType.PAGE
        assert blocks[1].block_type == BlockType.TABLE

    def test_bare_block_list(self, textract_payload):
        blocks = parse_textract_blocks(textract_payload["Blocks"])

        assert [b.id for b in blocks] == [
            raw["Id"] for raw in textract_payload["Blocks"] if raw["BlockType"] != "KEY_VALUE_SET"
        ]

    def test_keep_types(self, textract_payload):
        blocks = parse_textract_blocks(textract_payload, keep_types=[BlockType.WORD])

        assert len(blocks) == 9
        assert {b.block_type for b in blocks} == {BlockType.WORD}

    def test_non_dict_entries_skipped(self):
        blocks = parse_textract_blocks([None, "WORD", {"BlockType": "WORD", "Id": "w1", "Text": "e4"}])

        assert [b.id for b in blocks] == ["w1"]

    def test_missing_blocks_key(self):
        assert parse_textract_blocks({"DocumentMetadata": {"Pages": 1}}) == []

    def test_unsupported_payload(self):
        with pytest.raises(ValueError):
            parse_textract_blocks("Blocks")


class TestLoadTextractBlocks:
    """Tests for reading responses from disk."""

    def test_load(self, textract_file):
        blocks = load_textract_blocks(textract_file)

        assert any(b.block_type == BlockType.CELL for b in blocks)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_textract_blocks(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ValueError, match="Invalid JSON"):
            load_textract_blocks(path)
