"""Tests for the run orchestrator and exit-code mapping."""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from config import Config
from engines.base import DtdMatch, EngineKind, Outcome, OutcomeKind
from engines.engine_jsonschema import JsonSchemaEngine
from report.console_reporter import ConsoleReporter
from runner import ExitCode, Orchestrator, RunState, UsageError, exit_code_for

SCHEMA = {
    "type": "object",
    "required": ["id"],
    "properties": {"id": {"type": "integer"}},
}

NOTE_DTD = "<!ELEMENT note (to)>\n<!ELEMENT to (#PCDATA)>\n"


def write(path: Path, text: str) -> str:
    path.write_text(text, encoding="utf-8")
    return str(path)


@pytest.fixture
def schema(tmp_path):
    return write(tmp_path / "schema.json", json.dumps(SCHEMA))


@pytest.fixture
def good(tmp_path):
    return write(tmp_path / "good.json", '{"id": 1}')


@pytest.fixture
def bad(tmp_path):
    return write(tmp_path / "bad.json", '{"name": "no id"}')


def run_batch(files, **options):
    config = Config(**options)
    orchestrator = Orchestrator(config, ConsoleReporter(quiet=config.quiet))
    return orchestrator.validate(files)


class TestPreconditions:
    """Usage errors happen before any file is touched."""

    def test_no_engine_selected(self, tmp_path, capsys):
        missing = str(tmp_path / "never-opened.json")
        assert run_batch([missing]) == ExitCode.USAGE
        captured = capsys.readouterr()
        assert "At least one of -vj" in captured.err
        assert "never-opened.json" not in captured.out

    def test_no_engine_raises_from_run(self, good):
        with pytest.raises(UsageError):
            Orchestrator(Config()).run([good])

    def test_missing_schema(self, tmp_path, capsys):
        any_file = write(tmp_path / "any.json", "{}")
        code = run_batch(
            [any_file],
            validate_fastjsonschema=True,
            schema_path=str(tmp_path / "missingschema.json"),
        )
        assert code == ExitCode.USAGE
        assert "readable schema file" in capsys.readouterr().err

    def test_schema_required_for_schema_engines(self, good):
        assert run_batch([good], validate_jsonschema=True) == ExitCode.USAGE

    def test_passthrough_needs_no_schema(self, good):
        assert run_batch([good], passthrough_json=True) == ExitCode.SUCCESS

    def test_empty_file_list(self, schema, capsys):
        assert run_batch([], validate_jsonschema=True, schema_path=schema) == ExitCode.USAGE
        assert "At least one file" in capsys.readouterr().err


class TestOrchestrator:
    """Batch behavior."""

    def test_all_valid(self, schema, good, capsys):
        code = run_batch([good], validate_jsonschema=True, validate_fastjsonschema=True, schema_path=schema)
        assert code == ExitCode.SUCCESS
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "No validation issues encountered." in captured.err

    def test_one_bad_file(self, schema, good, bad, capsys):
        code = run_batch([good, bad], validate_jsonschema=True, schema_path=schema)
        assert code == ExitCode.VALIDATION
        captured = capsys.readouterr()
        problem_lines = [line for line in captured.out.splitlines() if line.strip()]
        assert len(problem_lines) == 1
        assert "'id' is a required property" in problem_lines[0]
        assert f"Validating '{good}' with jsonschema..." in captured.err
        assert f"Validating '{bad}' with jsonschema..." in captured.err
        assert "At least one validation issue encountered." in captured.err

    def test_quiet_mode_keeps_summary(self, schema, bad, capsys):
        code = run_batch([bad], validate_jsonschema=True, schema_path=schema, quiet=True)
        assert code == ExitCode.VALIDATION
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Validating" not in captured.err
        assert "At least one validation issue encountered." in captured.err

    def test_malformed_passthrough(self, tmp_path, capsys):
        doc = write(tmp_path / "malformed.json", '{"a": [1, 2}')
        assert run_batch([doc], passthrough_json=True) == ExitCode.SYNTAX
        captured = capsys.readouterr()
        assert "malformed.json" in captured.out
        assert "validation issue" not in captured.err

    def test_unreadable_file_does_not_stop_batch(self, tmp_path, good, capsys):
        missing = str(tmp_path / "missing.json")
        state = Orchestrator(Config(passthrough_json=True, quiet=True)).run([missing, good])
        assert [outcome.kind for _, _, outcome in state.outcomes] == [
            OutcomeKind.IO_ERROR,
            OutcomeKind.VALID,
        ]
        assert exit_code_for(state) == ExitCode.FILE_IO
        assert "missing.json" in capsys.readouterr().out

    def test_engine_priority_order(self, schema, good):
        config = Config(
            passthrough_tokens=True,
            passthrough_json=True,
            validate_fastjsonschema=True,
            validate_jsonschema=True,
            schema_path=schema,
            quiet=True,
        )
        state = Orchestrator(config).run([good])
        assert [kind for _, kind, _ in state.outcomes] == [
            EngineKind.JSONSCHEMA,
            EngineKind.FASTJSONSCHEMA,
            EngineKind.PASSTHROUGH_JSON,
            EngineKind.PASSTHROUGH_TOKENS,
        ]

    def test_files_run_in_order(self, good, bad):
        state = Orchestrator(Config(passthrough_json=True, quiet=True)).run([bad, good, bad])
        assert [path for path, _, _ in state.outcomes] == [bad, good, bad]

    def test_schema_loaded_once_per_run(self, schema, good, bad, monkeypatch):
        calls = []
        original = JsonSchemaEngine._load_validator

        def counting(schema_path):
            calls.append(schema_path)
            return original(schema_path)

        monkeypatch.setattr(JsonSchemaEngine, "_load_validator", staticmethod(counting))
        config = Config(validate_jsonschema=True, schema_path=schema, quiet=True)
        Orchestrator(config).run([good, bad, good])
        assert calls == [schema]

    def test_unusable_schema_is_io_error(self, tmp_path, good, capsys):
        broken = write(tmp_path / "broken.json", "{ nope")
        code = run_batch([good], validate_jsonschema=True, schema_path=broken)
        assert code == ExitCode.FILE_IO
        assert "broken.json" in capsys.readouterr().out

    def test_same_state_twice(self, schema, good, bad):
        config = Config(validate_jsonschema=True, schema_path=schema, quiet=True)
        first = Orchestrator(config).run([good, bad])
        second = Orchestrator(config).run([good, bad])
        assert first.outcomes == second.outcomes

    def test_unresolvable_reference_reported_not_raised(self, tmp_path, good, capsys):
        schema = write(tmp_path / "ref.json", '{"$ref": "other.json"}')
        code = run_batch([good], validate_jsonschema=True, schema_path=schema)
        assert code == ExitCode.VALIDATION
        assert "other.json" in capsys.readouterr().out

    def test_scalar_schema_disables_engine(self, tmp_path, good):
        schema = write(tmp_path / "scalar.json", "5")
        code = run_batch([good], validate_jsonschema=True, schema_path=schema, quiet=True)
        assert code == ExitCode.FILE_IO

    def test_deeply_nested_passthrough(self, tmp_path):
        doc = write(tmp_path / "deep.json", "[" * 100000 + "]" * 100000)
        code = run_batch([doc], passthrough_json=True, passthrough_tokens=True, quiet=True)
        assert code == ExitCode.SYNTAX


class TestXmlBatches:
    """DTD matching is decided per document."""

    @pytest.fixture
    def xml_dir(self, tmp_path):
        doc_dir = tmp_path / "xml"
        doc_dir.mkdir()
        write(doc_dir / "x.dtd", NOTE_DTD)
        write(doc_dir / "y.dtd", "<!ELEMENT note ANY>\n")
        return doc_dir

    def test_mixed_batch(self, xml_dir, capsys):
        a = write(xml_dir / "a.xml", '<!DOCTYPE note SYSTEM "x.dtd"><note><to>A</to></note>')
        b = write(xml_dir / "b.xml", '<!DOCTYPE note SYSTEM "y.dtd"><note><cc/></note>')
        config = Config(validate_xml=True, dtd_path=str(xml_dir / "x.dtd"))
        state = Orchestrator(config).run([a, b])

        matches = [outcome.dtd_match for _, _, outcome in state.outcomes]
        assert matches == [DtdMatch.APPLIED, DtdMatch.MISMATCHED]
        assert state.dtd_matched
        assert exit_code_for(state) == ExitCode.SUCCESS
        captured = capsys.readouterr()
        assert f"Validating '{a}' with dtd" in captured.err
        assert f"NOT Validating (passthrough) '{b}'" in captured.err
        assert "No validation issues encountered." in captured.err

    def test_matched_document_failing_dtd(self, xml_dir, capsys):
        a = write(xml_dir / "a.xml", '<!DOCTYPE note SYSTEM "x.dtd"><note><cc/></note>')
        config = Config(validate_xml=True, dtd_path=str(xml_dir / "x.dtd"))
        assert Orchestrator(config).validate([a]) == ExitCode.VALIDATION
        captured = capsys.readouterr()
        assert "Error: " in captured.out
        assert "At least one validation issue encountered." in captured.err

    def test_no_match_means_no_summary(self, xml_dir, capsys):
        b = write(xml_dir / "b.xml", '<!DOCTYPE note SYSTEM "y.dtd"><note/>')
        config = Config(validate_xml=True, dtd_path=str(xml_dir / "x.dtd"))
        assert Orchestrator(config).validate([b]) == ExitCode.SUCCESS
        assert "validation issue" not in capsys.readouterr().err


class TestRunState:
    """Folding outcomes."""

    def test_starts_correct(self):
        state = RunState()
        assert state.all_correct
        assert exit_code_for(state) == ExitCode.SUCCESS

    def test_invalid_flips_flag(self):
        state = RunState()
        state.record("a.json", EngineKind.JSONSCHEMA, Outcome.invalid(["p"]))
        assert not state.all_correct
        assert exit_code_for(state) == ExitCode.VALIDATION

    def test_syntax_error_flips_flag(self):
        state = RunState()
        state.record("a.json", EngineKind.PASSTHROUGH_JSON, Outcome.syntax_error("bad"))
        assert not state.all_correct
        assert state.syntax_error

    def test_io_error_keeps_flag(self):
        state = RunState()
        state.record("a.json", EngineKind.PASSTHROUGH_JSON, Outcome.io_error("gone"))
        assert state.all_correct
        assert state.io_error

    def test_applied_dtd_is_remembered(self):
        state = RunState()
        state.record("a.xml", EngineKind.XML_DTD, Outcome.valid(dtd_match=DtdMatch.APPLIED))
        state.record("b.xml", EngineKind.XML_DTD, Outcome.valid(dtd_match=DtdMatch.MISMATCHED))
        assert state.dtd_matched


class TestExitCodePrecedence:
    """Total order of exit codes."""

    @pytest.mark.parametrize(
        "flags, expected",
        [
            ({"setup_failure": True, "syntax_error": True, "all_correct": False}, ExitCode.FILE_IO),
            ({"syntax_error": True, "io_error": True, "all_correct": False}, ExitCode.SYNTAX),
            ({"io_error": True, "null_state": True, "all_correct": False}, ExitCode.FILE_IO),
            ({"null_state": True, "all_correct": False}, ExitCode.NULL_STATE),
            ({"all_correct": False}, ExitCode.VALIDATION),
            ({}, ExitCode.SUCCESS),
        ],
    )
    def test_precedence(self, flags, expected):
        assert exit_code_for(RunState(**flags)) == expected
