"""Validation engines for the jjval document validator."""

from typing import Dict, Type

from .base import (
    DtdMatch,
    EngineKind,
    EngineSetupError,
    Outcome,
    OutcomeKind,
    ValidationEngine,
)
from .engine_jsonschema import JsonSchemaEngine, ProblemHandler
from .engine_fastjsonschema import FastJsonSchemaEngine
from .engine_passthrough import (
    JsonPassthroughEngine,
    JsonTokenPassthroughEngine,
    TokenScanner,
)
from .engine_dtd import DiagnosticSink, DtdResolver, DtdValidationEngine

ENGINE_CLASSES: Dict[EngineKind, Type[ValidationEngine]] = {
    EngineKind.JSONSCHEMA: JsonSchemaEngine,
    EngineKind.FASTJSONSCHEMA: FastJsonSchemaEngine,
    EngineKind.XML_DTD: DtdValidationEngine,
    EngineKind.PASSTHROUGH_JSON: JsonPassthroughEngine,
    EngineKind.PASSTHROUGH_TOKENS: JsonTokenPassthroughEngine,
}


def build_engine(kind: EngineKind, config) -> ValidationEngine:
    """Create the engine for ``kind``; may raise EngineSetupError."""
    return ENGINE_CLASSES[kind].from_config(config)


__all__ = [
    # Base classes
    "DtdMatch",
    "EngineKind",
    "EngineSetupError",
    "Outcome",
    "OutcomeKind",
    "ValidationEngine",
    # JSON engines
    "JsonSchemaEngine",
    "ProblemHandler",
    "FastJsonSchemaEngine",
    "JsonPassthroughEngine",
    "JsonTokenPassthroughEngine",
    "TokenScanner",
    # XML engine
    "DiagnosticSink",
    "DtdResolver",
    "DtdValidationEngine",
    # Registry
    "ENGINE_CLASSES",
    "build_engine",
]
