"""Schema engine B: whole-document validation with fastjsonschema."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import fastjsonschema

from engines.base import (
    EngineKind,
    EngineSetupError,
    Outcome,
    ValidationEngine,
    describe_os_error,
)

logger = logging.getLogger(__name__)


class DocumentTypeError(ValueError):
    """The document's top-level value is not the container that was sniffed."""


def first_significant_char(text: str) -> Optional[str]:
    """Return the first non-whitespace character of ``text``, if any."""
    for char in text:
        if not char.isspace():
            return char
    return None


def load_array(text: str) -> List[Any]:
    value = json.loads(text)
    if not isinstance(value, list):
        raise DocumentTypeError("A JSON array text must begin with '['")
    return value


def load_object(text: str) -> Dict[str, Any]:
    value = json.loads(text)
    if not isinstance(value, dict):
        raise DocumentTypeError("A JSON object text must begin with '{'")
    return value


def exception_to_json(error: fastjsonschema.JsonSchemaValueException) -> str:
    """Render a validation exception as pretty-printed JSON."""
    report = {
        "message": error.message,
        "path": error.name,
        "keyword": error.rule,
        "value": error.value,
        "schemaRule": error.rule_definition,
    }
    return json.dumps(report, indent=2, ensure_ascii=False, default=str)


class FastJsonSchemaEngine(ValidationEngine):
    """
    Schema engine B: fastjsonschema.

    The schema is compiled to a validation function once. Each document is
    read whole, and its first non-whitespace character decides whether it
    is decoded as an array or an object. The compiled validator raises on
    the first violation; that exception is reported as a single JSON
    problem.
    """

    schema_validating = True
    progress_template = "Validating '{file}' with fastjsonschema..."

    def __init__(self, schema_path: str):
        self.schema_path = schema_path
        self._validate = self._compile(schema_path)

    @property
    def engine_type(self) -> EngineKind:
        return EngineKind.FASTJSONSCHEMA

    @classmethod
    def from_config(cls, config) -> "FastJsonSchemaEngine":
        return cls(config.schema_path)

    @staticmethod
    def _compile(schema_path: str):
        try:
            schema = load_object(Path(schema_path).read_text(encoding="utf-8"))
        except OSError as e:
            raise EngineSetupError(describe_os_error(schema_path, e)) from e
        except (ValueError, RecursionError) as e:
            raise EngineSetupError(f"{schema_path}: {e}") from e

        try:
            compiled = fastjsonschema.compile(schema)
        except (fastjsonschema.JsonSchemaDefinitionException, ValueError, OSError, re.error) as e:
            raise EngineSetupError(f"{schema_path}: invalid schema: {e}") from e

        logger.debug(f"Compiled schema {schema_path}")
        return compiled

    def _load_document(self, text: str) -> Any:
        first = first_significant_char(text)
        if first is None:
            raise DocumentTypeError("A JSON text must contain a value, but the input is empty")
        if first == "[":
            return load_array(text)
        return load_object(text)

    def validate(self, file_path: str) -> Outcome:
        try:
            text = Path(file_path).read_text(encoding="utf-8")
        except OSError as e:
            return Outcome.io_error(describe_os_error(file_path, e))
        except UnicodeDecodeError as e:
            return Outcome.invalid([f"{file_path}: {e}"])

        try:
            document = self._load_document(text)
        except (ValueError, RecursionError) as e:
            return Outcome.invalid([f"{file_path}: {e}"])

        try:
            self._validate(document)
        except fastjsonschema.JsonSchemaValueException as e:
            return Outcome.invalid([exception_to_json(e)])
        except RecursionError as e:
            return Outcome.invalid([f"{file_path}: {e}"])

        return Outcome.valid()
