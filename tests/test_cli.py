"""Tests for the jjval command line."""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from jjval import get_version, run

SCHEMA = {"type": "object", "required": ["id"]}


@pytest.fixture
def files(tmp_path):
    schema = tmp_path / "schema.json"
    schema.write_text(json.dumps(SCHEMA), encoding="utf-8")
    good = tmp_path / "good.json"
    good.write_text('{"id": 1}', encoding="utf-8")
    bad = tmp_path / "bad.json"
    bad.write_text("{}", encoding="utf-8")
    return str(schema), str(good), str(bad)


class TestCli:
    """End-to-end runs through click."""

    def test_schema_validation(self, files, capsys):
        schema, good, bad = files
        assert run(["-vj", "-s", schema, good, bad]) == 2
        captured = capsys.readouterr()
        assert len(captured.out.strip().splitlines()) == 1
        assert "jjval (version:" in captured.err

    def test_flags_are_order_independent(self, files):
        schema, good, _ = files
        assert run([good, "-s", schema, "-ve", "-vj"]) == 0

    def test_no_version_banner(self, files, capsys):
        schema, good, _ = files
        assert run(["-nv", "-vj", "-s", schema, good]) == 0
        assert "jjval (version:" not in capsys.readouterr().err

    def test_quiet_hides_banner_and_problems(self, files, capsys):
        schema, _, bad = files
        assert run(["-q", "-vj", "-s", schema, bad]) == 2
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "jjval (version:" not in captured.err
        assert "At least one validation issue encountered." in captured.err

    def test_no_arguments(self, capsys):
        assert run([]) == 5
        captured = capsys.readouterr()
        assert "At least one of -vj, -ve, -vx, -pj, -pe must be specified" in captured.err
        assert "usage: jjval" in captured.err

    def test_missing_files(self, files, capsys):
        schema, _, _ = files
        assert run(["-vj", "-s", schema]) == 5
        assert "At least one file" in capsys.readouterr().err

    def test_unknown_option(self, files):
        _, good, _ = files
        assert run(["-zz", good]) == 5

    def test_schema_flag_without_value(self, files):
        _, good, _ = files
        assert run(["-vj", good, "-s"]) == 5

    def test_malformed_passthrough(self, tmp_path):
        doc = tmp_path / "malformed.json"
        doc.write_text("[1, 2", encoding="utf-8")
        assert run(["-pj", "-pe", str(doc)]) == 1

    def test_help(self, capsys):
        assert run(["--help"]) == 0
        out = capsys.readouterr().out
        assert "-vj" in out
        assert "-nv" in out

    def test_version_string(self):
        assert get_version()
