"""Passthrough engines: parse only, no schema."""

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Optional

from engines.base import (
    EngineKind,
    Outcome,
    ValidationEngine,
    describe_os_error,
)
from engines.engine_jsonschema import describe_decode_error

logger = logging.getLogger(__name__)


class TokenScanner:
    """Drains a text as a sequence of JSON values.

    Whitespace between values is skipped, so concatenated documents
    (``{"a": 1} {"b": 2}``) scan cleanly. An empty text yields nothing.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self._decoder = json.JSONDecoder()

    def more(self) -> bool:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1
        return self.pos < len(self.text)

    def next_value(self) -> Any:
        value, self.pos = self._decoder.raw_decode(self.text, self.pos)
        return value

    def __iter__(self) -> Iterator[Any]:
        while self.more():
            yield self.next_value()


class JsonPassthroughEngine(ValidationEngine):
    """Decode exactly one JSON document with engine A's decoder."""

    progress_template = "NOT validating (passthrough) '{file}' with json..."

    @property
    def engine_type(self) -> EngineKind:
        return EngineKind.PASSTHROUGH_JSON

    def _create_parser(self) -> Optional[json.JSONDecoder]:
        return json.JSONDecoder()

    def validate(self, file_path: str) -> Outcome:
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                parser = self._create_parser()
                if parser is None:
                    return Outcome.null_state(f"{file_path}: no JSON parser available")
                parser.decode(f.read())
        except OSError as e:
            return Outcome.io_error(describe_os_error(file_path, e))
        except (ValueError, RecursionError) as e:
            return Outcome.syntax_error(f"{file_path}: {describe_decode_error(e)}")

        return Outcome.valid()


class JsonTokenPassthroughEngine(ValidationEngine):
    """Scan a file value by value with engine B's tokenizer."""

    progress_template = "NOT validating (passthrough) '{file}' with tokens..."

    @property
    def engine_type(self) -> EngineKind:
        return EngineKind.PASSTHROUGH_TOKENS

    def _create_tokenizer(self, text: str) -> Optional[TokenScanner]:
        return TokenScanner(text)

    def validate(self, file_path: str) -> Outcome:
        try:
            text = Path(file_path).read_text(encoding="utf-8")
        except OSError as e:
            return Outcome.io_error(describe_os_error(file_path, e))
        except UnicodeDecodeError as e:
            return Outcome.syntax_error(f"{file_path}: {e}")

        scanner = self._create_tokenizer(text)
        if scanner is None:
            return Outcome.null_state(f"{file_path}: no JSON tokenizer available")

        count = 0
        try:
            for _ in scanner:
                count += 1
        except (ValueError, RecursionError) as e:
            return Outcome.syntax_error(f"{file_path}: {describe_decode_error(e)}")

        logger.debug(f"Scanned {count} value(s) in {file_path}")
        return Outcome.valid()
