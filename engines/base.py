"""Base classes and data structures for validation engines."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class EngineKind(Enum):
    """Validation engine types.

    Declaration order is the order in which engines run against each file.
    """

    JSONSCHEMA = "jsonschema"          # -vj: schema engine A
    FASTJSONSCHEMA = "fastjsonschema"  # -ve: schema engine B
    XML_DTD = "xml"                    # -vx: lxml with optional DTD
    PASSTHROUGH_JSON = "json"          # -pj: engine A's decoder, no schema
    PASSTHROUGH_TOKENS = "tokens"      # -pe: engine B's token scan, no schema


class OutcomeKind(Enum):
    """Result categories for one file checked by one engine."""

    VALID = "VALID"
    INVALID = "INVALID"
    SYNTAX_ERROR = "SYNTAX_ERROR"
    IO_ERROR = "IO_ERROR"
    NULL_STATE = "NULL_STATE"  # engine produced no parser/tokenizer


class DtdMatch(Enum):
    """How a document's DTD reference related to the configured DTD."""

    NO_DTD_CONFIGURED = "NO_DTD_CONFIGURED"
    APPLIED = "APPLIED"
    MISMATCHED = "MISMATCHED"


@dataclass(frozen=True)
class Outcome:
    """The result of validating one file with one engine."""

    kind: OutcomeKind
    problems: Tuple[str, ...] = ()
    diagnostic: str = ""
    dtd_match: Optional[DtdMatch] = None
    dtd_reference: str = ""  # base name of the last DTD reference seen

    @classmethod
    def valid(cls, **extra) -> "Outcome":
        return cls(OutcomeKind.VALID, **extra)

    @classmethod
    def invalid(cls, problems, **extra) -> "Outcome":
        return cls(OutcomeKind.INVALID, problems=tuple(problems), **extra)

    @classmethod
    def syntax_error(cls, diagnostic: str, **extra) -> "Outcome":
        return cls(OutcomeKind.SYNTAX_ERROR, diagnostic=diagnostic, **extra)

    @classmethod
    def io_error(cls, diagnostic: str) -> "Outcome":
        return cls(OutcomeKind.IO_ERROR, diagnostic=diagnostic)

    @classmethod
    def null_state(cls, diagnostic: str) -> "Outcome":
        return cls(OutcomeKind.NULL_STATE, diagnostic=diagnostic)

    @property
    def is_valid(self) -> bool:
        return self.kind == OutcomeKind.VALID


class EngineSetupError(Exception):
    """Raised when an engine cannot load its schema or DTD."""


def describe_os_error(path: str, error: OSError) -> str:
    """Render an OSError the way file-open failures are reported."""
    reason = error.strerror or str(error)
    return f"{path} ({reason})"


class ValidationEngine(ABC):
    """Abstract base class for validation engines.

    Engines load their grammar once at construction and are then asked to
    validate any number of files. ``validate`` never raises for problems in
    the file; every failure is returned as an :class:`Outcome`.
    """

    # Engines that check documents against a schema always take part in the
    # final summary line.
    schema_validating: bool = False

    progress_template: str = "Validating '{file}'..."

    @property
    @abstractmethod
    def engine_type(self) -> EngineKind:
        """Return the engine type."""
        pass

    @classmethod
    def from_config(cls, config) -> "ValidationEngine":
        """Build the engine from a Config. Override if the engine needs paths."""
        return cls()

    @abstractmethod
    def validate(self, file_path: str) -> Outcome:
        """Validate a single file and return its outcome."""
        pass

    def progress_message(self, file_path: str, outcome: Outcome) -> str:
        return self.progress_template.format(file=file_path)

    def takes_part_in_summary(self, dtd_matched: bool) -> bool:
        return self.schema_validating
