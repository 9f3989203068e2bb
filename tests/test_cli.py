"""Tests for the command-line interface and logging setup."""

import io
import json
import logging

import pytest
from rich.console import Console
from typer.testing import CliRunner

from scoresheet.cli import app
from scoresheet.log import configure_logging

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to the runner's streams after each test."""
    yield
    logger = logging.getLogger("scoresheet")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


class TestCheckCommand:
    """Tests for `scoresheet check`."""

    def test_repairs_moves(self):
        result = runner.invoke(app, ["check", "eH", "e5"])

        assert result.exit_code == 0
        assert "e4 e5" in result.output
        assert "1 corrected" in result.output
        assert "pattern" in result.output

    def test_clean_game(self):
        result = runner.invoke(app, ["check", "e4", "e5", "Nf3"])

        assert result.exit_code == 0
        assert "3 valid" in result.output
        assert "Corrections" not in result.output

    def test_custom_fen(self):
        fen = "r3k2r/pppppppp/8/8/8/8/PPPPPPPP/R3K2R w KQkq - 0 1"

        result = runner.invoke(app, ["check", "o-o", "--fen", fen])

        assert result.exit_code == 0
        assert "0-0" in result.output

    def test_invalid_fen(self):
        result = runner.invoke(app, ["check", "e4", "--fen", "bad"])

        assert result.exit_code == 1
        assert "Invalid FEN" in result.output

    def test_log_level_option(self):
        result = runner.invoke(app, ["--log-level", "debug", "check", "e4"])

        assert result.exit_code == 0
        assert logging.getLogger("scoresheet").level == logging.DEBUG


class TestDocumentCommands:
    """Tests for commands that read Textract responses."""

    def test_extract(self, textract_file):
        result = runner.invoke(app, ["extract", str(textract_file)])

        assert result.exit_code == 0
        assert "4 tokens" in result.output
        assert "Nc6" in result.output
        assert "cell_words" in result.output

    def test_reconcile(self, textract_file):
        result = runner.invoke(app, ["reconcile", str(textract_file)])

        assert result.exit_code == 0
        assert "e4 e5 Nf3 Nc6" in result.output
        assert "4 valid" in result.output

    def test_reconcile_writes_report(self, textract_file, tmp_path):
        output_dir = tmp_path / "reports"

        result = runner.invoke(
            app, ["reconcile", str(textract_file), "--output-dir", str(output_dir)]
        )

        assert result.exit_code == 0
        report = json.loads((output_dir / "sheet.json").read_text())
        assert report["source"] == "sheet.json"
        assert report["chessValidation"]["correctedMoves"] == ["e4", "e5", "Nf3", "Nc6"]

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["reconcile", str(tmp_path / "missing.json")])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_no_moves(self, tmp_path):
        path = tmp_path / "blank.json"
        path.write_text(json.dumps({"Blocks": []}))

        result = runner.invoke(app, ["extract", str(path)])

        assert result.exit_code == 0
        assert "No moves found" in result.output

    def test_batch(self, tmp_path, textract_payload):
        source = tmp_path / "in"
        source.mkdir()
        for name in ("one.json", "two.json"):
            (source / name).write_text(json.dumps(textract_payload))
        output_dir = tmp_path / "out"

        result = runner.invoke(
            app, ["batch", str(source), "--output-dir", str(output_dir), "--workers", "1"]
        )

        assert result.exit_code == 0
        assert sorted(p.name for p in output_dir.iterdir()) == ["one.json", "two.json"]

    def test_batch_empty_directory(self, tmp_path):
        result = runner.invoke(app, ["batch", str(tmp_path)])

        assert result.exit_code == 0
        assert "Nothing to process" in result.output


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_routes_package_logs_to_console(self):
        buffer = io.StringIO()
        configure_logging("INFO", console=Console(file=buffer, width=120))

        logging.getLogger("scoresheet.pipeline.stage_reconcile").info("Validated 2 moves")
        logging.getLogger("scoresheet.pipeline.stage_reconcile").debug("hidden detail")

        output = buffer.getvalue()
        assert "Validated 2 moves" in output
        assert "hidden detail" not in output

    def test_reconfigure_replaces_handler(self):
        configure_logging("INFO", console=Console(file=io.StringIO()))
        configure_logging("WARNING", console=Console(file=io.StringIO()))

        logger = logging.getLogger("scoresheet")
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
