"""Run orchestration and exit-code mapping for jjval."""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

from config import Config
from engines import EngineSetupError, ValidationEngine, build_engine
from engines.base import DtdMatch, EngineKind, Outcome, OutcomeKind
from report.console_reporter import ConsoleReporter

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    SYNTAX = 1
    VALIDATION = 2
    NULL_STATE = 3
    FILE_IO = 4
    USAGE = 5


class UsageError(Exception):
    """Bad or missing arguments, detected before any file is touched."""


@dataclass
class RunState:
    """Accumulated result of one invocation."""

    all_correct: bool = True
    syntax_error: bool = False
    io_error: bool = False
    null_state: bool = False
    setup_failure: bool = False
    dtd_matched: bool = False
    outcomes: List[Tuple[str, EngineKind, Outcome]] = field(default_factory=list)

    def record(self, file_path: str, kind: EngineKind, outcome: Outcome) -> None:
        """Fold one outcome into the state."""
        self.outcomes.append((file_path, kind, outcome))

        if outcome.kind == OutcomeKind.INVALID:
            self.all_correct = False
        elif outcome.kind == OutcomeKind.SYNTAX_ERROR:
            self.all_correct = False
            self.syntax_error = True
        elif outcome.kind == OutcomeKind.IO_ERROR:
            self.io_error = True
        elif outcome.kind == OutcomeKind.NULL_STATE:
            self.null_state = True

        if outcome.dtd_match == DtdMatch.APPLIED:
            self.dtd_matched = True


def exit_code_for(state: RunState) -> ExitCode:
    """Map the final run state to an exit code.

    Setup, syntax and I/O failures win over plain validation failures:
    they mean validation did not run to completion.
    """
    if state.setup_failure:
        return ExitCode.FILE_IO
    if state.syntax_error:
        return ExitCode.SYNTAX
    if state.io_error:
        return ExitCode.FILE_IO
    if state.null_state:
        return ExitCode.NULL_STATE
    if not state.all_correct:
        return ExitCode.VALIDATION
    return ExitCode.SUCCESS


class Orchestrator:
    """
    Runs every enabled engine against every file, in order.

    Engines are built once per run, so schemas and DTDs are parsed once
    and reused for all files. Per-file failures never stop the batch.
    """

    def __init__(self, config: Config, reporter: Optional[ConsoleReporter] = None):
        self.config = config
        self.reporter = reporter or ConsoleReporter(quiet=config.quiet)

    def check_preconditions(self, files: Sequence[str]) -> None:
        if not self.config.selected_engines():
            raise UsageError("At least one of -vj, -ve, -vx, -pj, -pe must be specified")
        if self.config.requires_schema and not self.config.schema_readable:
            raise UsageError("with -vj, -ve, a readable schema file must be specified with -s")
        if not files:
            raise UsageError("At least one file to validate must be specified")

    def build_engines(self, state: RunState) -> List[ValidationEngine]:
        engines = []
        for kind in self.config.selected_engines():
            try:
                engines.append(build_engine(kind, self.config))
            except EngineSetupError as e:
                logger.warning(f"Engine {kind.value} disabled: {e}")
                state.setup_failure = True
                self.reporter.diagnostic(str(e))
        return engines

    def run(self, files: Sequence[str]) -> RunState:
        """Validate all files; raises UsageError before doing any work."""
        self.check_preconditions(files)

        state = RunState()
        engines = self.build_engines(state)

        for file_path in files:
            for engine in engines:
                outcome = engine.validate(file_path)
                self.reporter.progress(engine.progress_message(file_path, outcome))
                self._report_outcome(outcome)
                state.record(file_path, engine.engine_type, outcome)

        if any(engine.takes_part_in_summary(state.dtd_matched) for engine in engines):
            self.reporter.summary(state.all_correct)

        return state

    def validate(self, files: Sequence[str]) -> ExitCode:
        """Run the batch and return the exit code."""
        try:
            state = self.run(files)
        except UsageError as e:
            self.reporter.usage(str(e))
            return ExitCode.USAGE
        return exit_code_for(state)

    def _report_outcome(self, outcome: Outcome) -> None:
        if outcome.kind == OutcomeKind.INVALID:
            for problem in outcome.problems:
                self.reporter.problem(problem)
        elif outcome.kind != OutcomeKind.VALID:
            self.reporter.diagnostic(outcome.diagnostic)
