from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError
from .logger import get_logger

log = get_logger(__name__)

CONFIG_ENV_VAR = "OKLCHIFY_CONFIG"


class OklchifyConfig(BaseModel):
    schema_version: int = Field(1, ge=1)
    css_extensions: List[str] = Field(default_factory=lambda: [".css"])
    literal_extensions: List[str] = Field(
        default_factory=lambda: [".ts", ".tsx", ".js", ".jsx"]
    )
    # Indent unit for generated CSS blocks when the source rule has none.
    default_indent: str = "    "
    backup: bool = False

    @field_validator("css_extensions", "literal_extensions")
    @classmethod
    def _normalise_extensions(cls, value: List[str]) -> List[str]:
        result: List[str] = []
        for ext in value:
            ext = ext.strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = "." + ext
            result.append(ext)
        return result

    @field_validator("default_indent")
    @classmethod
    def _whitespace_only(cls, value: str) -> str:
        if value.strip():
            raise ValueError("default_indent must contain only spaces or tabs")
        return value

    def kind_for(self, path: Path) -> Optional[str]:
        suffix = path.suffix.lower()
        if suffix in self.css_extensions:
            return "css"
        if suffix in self.literal_extensions:
            return "literal"
        return None


def load_config(path: Optional[Path] = None) -> OklchifyConfig:
    """Load configuration from ``path`` or ``$OKLCHIFY_CONFIG``; defaults otherwise."""
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            return OklchifyConfig()
        path = Path(env_path)
        log.debug(f"Using config from {CONFIG_ENV_VAR}: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Could not read config {path}: {exc}") from exc
    try:
        return OklchifyConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config {path}: {exc}") from exc
