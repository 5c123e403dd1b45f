"""XML engine: lxml parsing with optional DTD validation."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from lxml import etree

from engines.base import (
    DtdMatch,
    EngineKind,
    EngineSetupError,
    Outcome,
    ValidationEngine,
    describe_os_error,
)

logger = logging.getLogger(__name__)


def reference_name(system_url: str) -> str:
    """Base name of a system identifier (path or URL)."""
    return system_url.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]


class DtdResolver(etree.Resolver):
    """
    Decides, per external reference, whether the configured DTD applies.

    A reference whose base name equals the configured DTD's base name is
    answered with the configured DTD. Anything else is left to lxml's
    default resolution. Every call records its own decision; nothing is
    carried over between documents since a resolver serves one parse.
    """

    def __init__(self, dtd_path: Optional[str] = None, dtd_content: Optional[bytes] = None):
        super().__init__()
        self.dtd_path = dtd_path
        self.dtd_content = dtd_content
        self.dtd_name = Path(dtd_path).name if dtd_path else ""
        self.decisions: List[DtdMatch] = []
        self.references: List[str] = []

    def decide(self, system_url: Optional[str]) -> DtdMatch:
        if not self.dtd_path:
            return DtdMatch.NO_DTD_CONFIGURED
        if not system_url:
            return DtdMatch.MISMATCHED
        if reference_name(system_url) == self.dtd_name:
            return DtdMatch.APPLIED
        return DtdMatch.MISMATCHED

    def resolve(self, system_url, public_id, context):
        decision = self.decide(system_url)
        self.decisions.append(decision)
        if system_url:
            self.references.append(reference_name(system_url))
        logger.debug(f"Reference {system_url!r} (public id {public_id!r}): {decision.value}")

        if decision != DtdMatch.APPLIED:
            return None
        base_url = str(Path(self.dtd_path).resolve())
        if self.dtd_content is not None:
            return self.resolve_string(self.dtd_content, context, base_url=base_url)
        return self.resolve_filename(base_url, context)

    @property
    def first_reference(self) -> str:
        """The external subset is resolved before any entity used in content."""
        return self.references[0] if self.references else ""

    @property
    def match(self) -> DtdMatch:
        """Overall state for the document: applied if any reference matched."""
        if DtdMatch.APPLIED in self.decisions:
            return DtdMatch.APPLIED
        if DtdMatch.MISMATCHED in self.decisions:
            return DtdMatch.MISMATCHED
        return DtdMatch.NO_DTD_CONFIGURED


class DiagnosticSink:
    """Collects parser and validator messages as problems.

    Warnings count as problems just like errors and fatal errors.
    """

    def __init__(self):
        self.problems: List[str] = []

    def warning(self, message: str) -> None:
        self.problems.append(f"Warning: {message}")

    def error(self, message: str) -> None:
        self.problems.append(f"Error: {message}")

    def fatal_error(self, message: str) -> None:
        self.problems.append(f"Fatal error: {message}")

    def consume(self, entries: Iterable) -> None:
        """Route lxml error log entries by level."""
        for entry in entries:
            message = f"{entry.filename}:{entry.line}:{entry.column}: {entry.message}"
            if entry.level >= etree.ErrorLevels.FATAL:
                self.fatal_error(message)
            elif entry.level == etree.ErrorLevels.ERROR:
                self.error(message)
            elif entry.level == etree.ErrorLevels.WARNING:
                self.warning(message)


def is_malformed(entries: Iterable) -> bool:
    """True if a failed parse logged a well-formedness (fatal) error.

    Validity errors are logged at ERROR level, missing grammars too.
    """
    entries = list(entries)
    if not entries:
        return True
    return any(entry.level >= etree.ErrorLevels.FATAL for entry in entries)


class DtdValidationEngine(ValidationEngine):
    """
    XML engine: namespace-aware lxml parsing with DTD validation.

    The configured DTD is read and checked once. Each document gets a
    fresh validating parser carrying a DtdResolver that serves the
    configured DTD wherever its name is referenced, so the document's
    internal subset is validated together with it. Diagnostics only count
    for documents whose DTD reference matched; the others are only
    checked for well-formedness.
    """

    def __init__(self, dtd_path: Optional[str] = None):
        self.dtd_path = dtd_path
        self._dtd_content: Optional[bytes] = self._load_dtd(dtd_path) if dtd_path else None

    @property
    def engine_type(self) -> EngineKind:
        return EngineKind.XML_DTD

    @classmethod
    def from_config(cls, config) -> "DtdValidationEngine":
        return cls(config.dtd_path)

    @staticmethod
    def _load_dtd(dtd_path: str) -> bytes:
        path = Path(dtd_path)
        if not path.is_file():
            raise EngineSetupError(f"{dtd_path} (No such file or directory)")
        try:
            content = path.read_bytes()
            etree.DTD(str(path))
        except (etree.DTDParseError, OSError) as e:
            raise EngineSetupError(f"{dtd_path}: {e}") from e
        logger.debug(f"Loaded DTD {dtd_path}")
        return content

    def _make_parser(self, resolver: DtdResolver) -> etree.XMLParser:
        parser = etree.XMLParser(
            load_dtd=True,
            dtd_validation=self.dtd_path is not None,
            resolve_entities=True,
            no_network=True,
        )
        parser.resolvers.add(resolver)
        return parser

    def validate(self, file_path: str) -> Outcome:
        resolver = DtdResolver(self.dtd_path, self._dtd_content)
        parser = self._make_parser(resolver)
        sink = DiagnosticSink()

        try:
            with open(file_path, "rb") as f:
                tree = etree.parse(f, parser, base_url=str(Path(file_path).resolve()))
        except OSError as e:
            return Outcome.io_error(describe_os_error(file_path, e))
        except etree.XMLSyntaxError as e:
            match = resolver.match
            extra = {"dtd_match": match, "dtd_reference": resolver.first_reference}
            if match == DtdMatch.APPLIED:
                sink.consume(e.error_log)
                if not sink.problems:
                    sink.fatal_error(str(e))
                return Outcome.invalid(sink.problems, **extra)
            if is_malformed(e.error_log):
                return Outcome.syntax_error(f"{file_path}: {e}", **extra)
            return Outcome.valid(**extra)

        match = resolver.match
        reference = tree.docinfo.system_url
        extra = {
            "dtd_match": match,
            "dtd_reference": reference_name(reference) if reference else resolver.first_reference,
        }
        if match != DtdMatch.APPLIED:
            return Outcome.valid(**extra)

        sink.consume(parser.error_log)
        if sink.problems:
            return Outcome.invalid(sink.problems, **extra)
        return Outcome.valid(**extra)

    def progress_message(self, file_path: str, outcome: Outcome) -> str:
        if outcome.dtd_match == DtdMatch.APPLIED:
            return f"Validating '{file_path}' with dtd '{self.dtd_path}'..."
        if outcome.dtd_match == DtdMatch.MISMATCHED and outcome.dtd_reference:
            return (
                f"NOT Validating (passthrough) '{file_path}' "
                f"(expected dtd='{outcome.dtd_reference}' but provided dtd='{Path(self.dtd_path).name}')..."
            )
        return f"NOT Validating (passthrough) '{file_path}' with lxml..."

    def takes_part_in_summary(self, dtd_matched: bool) -> bool:
        return dtd_matched
