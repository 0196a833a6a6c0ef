from __future__ import annotations

from pathlib import Path
from typing import Optional

__all__ = [
    "OklchifyError",
    "ConfigError",
    "ParseFailure",
    "InsertionPointNotFound",
]


class OklchifyError(Exception):
    """Base class for per-file failures reported by the driver."""


class ConfigError(OklchifyError):
    """Configuration file is unreadable or does not validate."""


class ParseFailure(OklchifyError):
    """Stylesheet source could not be parsed into a tree."""

    def __init__(
        self, message: str, line: Optional[int] = None, column: Optional[int] = None
    ) -> None:
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} at line {line}, column {column}"
        super().__init__(message)


class InsertionPointNotFound(OklchifyError):
    """The literal transformer could not locate its anchor in the source."""

    def __init__(self, anchor: str, path: Optional[Path] = None) -> None:
        self.anchor = anchor
        self.path = path
        where = f" in {path}" if path is not None else ""
        super().__init__(f"Could not find insertion point for {anchor!r}{where}")
