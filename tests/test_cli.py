"""Tests for the command-line entry point."""

import json
import logging
import textwrap
from logging.handlers import RotatingFileHandler

import pytest

from scenario_qa.__main__ import main


SOURCE_TEXT = textwrap.dedent("""\
    Scenario: Add item to cart
    Scenario: User logs out
    Scenario: Export quarterly invoice as PDF
""")

QA_TEXT = textwrap.dedent("""\
    Scenario: Add item to cart
    Scenario: Add item to cart
    Scenario: User logs out
""")


@pytest.fixture(autouse=True)
def _workdir(tmp_path, monkeypatch):
    """Run each command in a scratch directory and drop the log files main() opens."""
    monkeypatch.chdir(tmp_path)
    yield
    for handler in logging.root.handlers[:]:
        if isinstance(handler, RotatingFileHandler):
            logging.root.removeHandler(handler)
            handler.close()


@pytest.fixture
def files(tmp_path):
    source = tmp_path / "source.feature"
    qa = tmp_path / "qa.feature"
    source.write_text(SOURCE_TEXT, encoding="utf-8")
    qa.write_text(QA_TEXT, encoding="utf-8")
    return source, qa


class TestCli:
    def test_parse(self, files, capsys):
        source, _ = files
        main(["parse", str(source)])
        out = capsys.readouterr().out
        assert "[1] Add item to cart" in out
        assert "3 scenarios." in out

    def test_duplicates(self, files, capsys):
        _, qa = files
        main(["duplicates", str(qa)])
        out = capsys.readouterr().out
        assert "[exact] 100.0%" in out
        assert "* Add item to cart" in out

    def test_analyze_json(self, files, capsys):
        source, qa = files
        main(["analyze", str(source), str(qa), "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data["summary"]["coverage_percent"] == 67
        assert data["gaps"][0]["title"] == "Export quarterly invoice as PDF"

    def test_analyze_text_with_policy(self, files, capsys):
        source, qa = files
        main(["analyze", str(source), str(qa), "--policy", "one_to_one"])
        out = capsys.readouterr().out
        assert "Coverage: 67% (2/3 scenarios)" in out
        assert "GAP-001" in out

    def test_missing_file_exits(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["parse", str(tmp_path / "absent.feature")])
        assert exc.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_init_config(self, tmp_path, capsys):
        main(["init-config"])
        assert (tmp_path / "config.yaml").exists()
        with pytest.raises(SystemExit):
            main(["init-config"])
        main(["init-config", "--force"])

    def test_log_file_created(self, files, tmp_path):
        source, _ = files
        main(["parse", str(source)])
        assert (tmp_path / "logs").is_dir()
