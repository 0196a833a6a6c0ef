from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

STATUS_CONVERTED = "converted"
STATUS_NOTHING_TO_DO = "nothing-to-do"
STATUS_ALREADY_PROCESSED = "already-processed"
STATUS_SKIPPED = "skipped"
STATUS_ERROR = "error"


@dataclass
class FileReport:
    """Outcome of processing one input document."""

    path: Path
    kind: Optional[str] = None
    status: str = STATUS_NOTHING_TO_DO
    colors_converted: int = 0
    scopes_converted: int = 0
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None
    dry_run: bool = False
    saved_path: Optional[Path] = None
    backup_path: Optional[Path] = None

    @property
    def has_changes(self) -> bool:
        return self.status == STATUS_CONVERTED

    @property
    def failed(self) -> bool:
        return self.status == STATUS_ERROR

    def mark_saved(self, path: Path) -> None:
        self.saved_path = path

    def status_line(self) -> str:
        prefix = "[DRY-RUN] " if self.dry_run else ""
        if self.status == STATUS_CONVERTED:
            verb = "Would convert" if self.dry_run else "Converted"
            return (
                f"{prefix}✓ {verb} {self.path} "
                f"(found {self.colors_converted} hex colors)"
            )
        if self.status == STATUS_ALREADY_PROCESSED:
            return f"{prefix}ℹ @supports block already exists in {self.path}, skipping"
        if self.status == STATUS_NOTHING_TO_DO:
            return f"{prefix}ℹ No hex colors found in {self.path}"
        if self.status == STATUS_SKIPPED:
            return (
                f"⚠ Skipping {self.path} - unknown file type. "
                "Use .css, .ts, .tsx, .js, or .jsx"
            )
        return f"✗ Error processing {self.path}: {self.error}"


@dataclass
class RunReport:
    """Aggregates file reports for one CLI invocation."""

    files: List[FileReport] = field(default_factory=list)
    dry_run: bool = False
    summary_lines: List[str] = field(default_factory=list)

    def add(self, report: FileReport) -> FileReport:
        self.files.append(report)
        return report

    def extend_summary(self, lines: Iterable[str]) -> None:
        self.summary_lines.extend(lines)

    def _count(self, status: str) -> int:
        return sum(1 for f in self.files if f.status == status)

    @property
    def files_converted(self) -> int:
        return self._count(STATUS_CONVERTED)

    @property
    def files_failed(self) -> int:
        return self._count(STATUS_ERROR)

    @property
    def colors_converted(self) -> int:
        return sum(f.colors_converted for f in self.files)

    @property
    def has_changes(self) -> bool:
        return any(f.has_changes for f in self.files)

    def build_summary(self) -> List[str]:
        lines = [
            f"Files processed: {len(self.files)}",
            f"Files converted: {self.files_converted}",
            f"Colors converted: {self.colors_converted}",
        ]
        if self.files_failed:
            lines.append(f"Files failed: {self.files_failed}")
        skipped = self._count(STATUS_SKIPPED)
        if skipped:
            lines.append(f"Files skipped: {skipped}")
        return lines
