"""Schema engine A: streaming validation with jsonschema."""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List

from jsonschema import SchemaError, ValidationError
from jsonschema.validators import validator_for
from referencing.exceptions import Unresolvable

from engines.base import (
    EngineKind,
    EngineSetupError,
    Outcome,
    ValidationEngine,
    describe_os_error,
)

logger = logging.getLogger(__name__)


def load_json_document(file_path: str) -> Any:
    """Decode one JSON document from a file handle.

    Shared by the jsonschema engine and the json passthrough engine.
    """
    with open(file_path, "r", encoding="utf-8") as f:
        return json.load(f)


def describe_decode_error(error: Exception) -> str:
    if isinstance(error, json.JSONDecodeError):
        return f"{error.msg} (line {error.lineno}, column {error.colno})"
    return str(error)


class ProblemHandler:
    """Collects problems as the validator delivers them."""

    def __init__(self):
        self.problems: List[str] = []

    def handle_problems(self, errors: Iterable[ValidationError]) -> None:
        for error in errors:
            self.problems.append(self.format_problem(error))

    @staticmethod
    def format_problem(error: ValidationError) -> str:
        return f"[{error.json_path}] {error.message}"


class JsonSchemaEngine(ValidationEngine):
    """
    Schema engine A: jsonschema.

    The schema is checked and compiled into a validator once. Violations are
    pulled lazily from ``iter_errors`` and handed to a ProblemHandler, so an
    invalid document never raises; it just produces problems.
    """

    schema_validating = True
    progress_template = "Validating '{file}' with jsonschema..."

    def __init__(self, schema_path: str):
        self.schema_path = schema_path
        self._validator = self._load_validator(schema_path)

    @property
    def engine_type(self) -> EngineKind:
        return EngineKind.JSONSCHEMA

    @classmethod
    def from_config(cls, config) -> "JsonSchemaEngine":
        return cls(config.schema_path)

    @staticmethod
    def _load_validator(schema_path: str):
        try:
            schema = json.loads(Path(schema_path).read_text(encoding="utf-8"))
        except OSError as e:
            raise EngineSetupError(describe_os_error(schema_path, e)) from e
        except (ValueError, RecursionError) as e:
            raise EngineSetupError(f"{schema_path}: {describe_decode_error(e)}") from e

        if not isinstance(schema, (dict, bool)):
            raise EngineSetupError(f"{schema_path}: a schema must be a JSON object or boolean")

        validator_cls = validator_for(schema)
        try:
            validator_cls.check_schema(schema)
        except SchemaError as e:
            raise EngineSetupError(f"{schema_path}: invalid schema: {e.message}") from e

        logger.debug(f"Loaded schema {schema_path} with {validator_cls.__name__}")
        return validator_cls(schema)

    def validate(self, file_path: str) -> Outcome:
        try:
            document = load_json_document(file_path)
        except OSError as e:
            return Outcome.io_error(describe_os_error(file_path, e))
        except (ValueError, RecursionError) as e:
            return Outcome.invalid([f"{file_path}: {describe_decode_error(e)}"])

        handler = ProblemHandler()
        try:
            handler.handle_problems(self._validator.iter_errors(document))
        except Unresolvable as e:
            # References are resolved lazily, so this only surfaces mid-validation
            logger.debug(f"Unresolvable reference while validating {file_path}: {e}")
            handler.problems.append(f"{file_path}: unresolvable schema reference: {e}")
        except RecursionError as e:
            handler.problems.append(f"{file_path}: {e}")

        if handler.problems:
            return Outcome.invalid(handler.problems)
        return Outcome.valid()
