"""Configuration for the jjval document validator."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import os

from engines.base import EngineKind


@dataclass
class Config:
    """Configuration for one jjval invocation."""

    # Engine selection (-vj, -ve, -vx, -pj, -pe)
    validate_jsonschema: bool = False
    validate_fastjsonschema: bool = False
    validate_xml: bool = False
    passthrough_json: bool = False
    passthrough_tokens: bool = False

    # Grammar files (-s, -d)
    schema_path: Optional[str] = None
    dtd_path: Optional[str] = None

    # Output settings (-q, -nv)
    quiet: bool = False
    show_version: bool = True

    # Environment-derived settings
    log_level: str = field(default_factory=lambda: os.environ.get("JJVAL_LOG_LEVEL", "WARNING"))
    build_time: str = field(default_factory=lambda: os.environ.get("JJVAL_BUILD_TIME", "(unknown)"))

    def selected_engines(self) -> List[EngineKind]:
        """Enabled engine kinds, in the order they run for each file."""
        flags = {
            EngineKind.JSONSCHEMA: self.validate_jsonschema,
            EngineKind.FASTJSONSCHEMA: self.validate_fastjsonschema,
            EngineKind.XML_DTD: self.validate_xml,
            EngineKind.PASSTHROUGH_JSON: self.passthrough_json,
            EngineKind.PASSTHROUGH_TOKENS: self.passthrough_tokens,
        }
        return [kind for kind in EngineKind if flags[kind]]

    @property
    def requires_schema(self) -> bool:
        return self.validate_jsonschema or self.validate_fastjsonschema

    @property
    def schema_readable(self) -> bool:
        if not self.schema_path:
            return False
        path = Path(self.schema_path)
        return path.is_file() and os.access(path, os.R_OK)
