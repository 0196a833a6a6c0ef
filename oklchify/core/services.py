from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .config import OklchifyConfig
from .context import (
    FileReport,
    RunReport,
    STATUS_ALREADY_PROCESSED,
    STATUS_CONVERTED,
    STATUS_ERROR,
    STATUS_NOTHING_TO_DO,
    STATUS_SKIPPED,
)
from .css_transformer import eligible_pairs, scan_stylesheet, transform_css
from .errors import OklchifyError
from .literal_transformer import scan_literal, transform_literal
from .logger import get_logger
from .stylesheet import parse_stylesheet

log = get_logger(__name__)

__all__ = [
    "ConversionOptions",
    "ConversionService",
    "collect_input_files",
    "read_source",
    "write_source",
]


@dataclass
class ConversionOptions:
    dry_run: bool = False
    backup: bool = False


def read_source(path: Path) -> str:
    # newline="" keeps CRLF files byte-identical outside the inserted block.
    with path.open("r", encoding="utf-8", newline="") as fh:
        return fh.read()


def write_source(path: Path, text: str) -> None:
    with path.open("w", encoding="utf-8", newline="") as fh:
        fh.write(text)


def collect_input_files(paths: Iterable[Path], config: OklchifyConfig) -> List[Path]:
    """Expand directories to supported files; explicit files are kept as given."""
    files: List[Path] = []
    seen = set()
    for path in paths:
        if path.is_dir():
            candidates = sorted(
                p for p in path.rglob("*") if p.is_file() and config.kind_for(p)
            )
        else:
            candidates = [path]
        for candidate in candidates:
            key = str(candidate)
            if key in seen:
                continue
            seen.add(key)
            files.append(candidate)
    return files


class ConversionService:
    """Dispatches each document to the transformer matching its extension."""

    def __init__(self, config: OklchifyConfig, options: Optional[ConversionOptions] = None) -> None:
        self.config = config
        self.options = options or ConversionOptions(backup=config.backup)

    def run(self, paths: Iterable[Path]) -> RunReport:
        report = RunReport(dry_run=self.options.dry_run)
        for path in collect_input_files(paths, self.config):
            file_report = report.add(self.process_file(path))
            line = file_report.status_line()
            if file_report.failed:
                log.error(line)
            elif file_report.status == STATUS_SKIPPED:
                log.warning(line)
            else:
                log.info(line)
            for warning in file_report.warnings:
                log.warning("  ⚠ Could not convert %s", warning)
        report.extend_summary(report.build_summary())
        return report

    def process_file(self, path: Path) -> FileReport:
        kind = self.config.kind_for(path)
        report = FileReport(path=path, kind=kind, dry_run=self.options.dry_run)
        if kind is None:
            report.status = STATUS_SKIPPED
            return report
        try:
            source = read_source(path)
            if kind == "css":
                output = self._convert_css(source, report)
            else:
                output = self._convert_literal(source, path, report)
            if report.status == STATUS_CONVERTED and not self.options.dry_run:
                self._write(path, output, report)
        except (OklchifyError, OSError, UnicodeDecodeError) as exc:
            report.status = STATUS_ERROR
            report.error = str(exc)
        return report

    def scan_file(self, path: Path) -> List[Tuple[str, str, str, str]]:
        """Eligible ``(scope, prop, hex, oklch)`` rows; nothing is written."""
        kind = self.config.kind_for(path)
        source = read_source(path)
        if kind == "css":
            return eligible_pairs(scan_stylesheet(parse_stylesheet(source)))
        if kind == "literal":
            return [
                ("", entry.prop, entry.hex, entry.oklch)
                for entry in scan_literal(source).values()
            ]
        return []

    def _convert_css(self, source: str, report: FileReport) -> str:
        result = transform_css(source, indent_unit=self.config.default_indent)
        report.warnings.extend(result.failures)
        if result.changed:
            report.status = STATUS_CONVERTED
            report.colors_converted = result.colors_converted
            report.scopes_converted = result.rules_converted + (
                1 if result.root_colors_converted else 0
            )
        elif result.already_processed:
            report.status = STATUS_ALREADY_PROCESSED
        return result.output

    def _convert_literal(self, source: str, path: Path, report: FileReport) -> str:
        result = transform_literal(source, path)
        report.warnings.extend(result.failures)
        if result.already_processed:
            report.status = STATUS_ALREADY_PROCESSED
        elif result.changed:
            report.status = STATUS_CONVERTED
            report.colors_converted = result.colors_converted
            report.scopes_converted = 1
        else:
            report.status = STATUS_NOTHING_TO_DO
        return result.output

    def _write(self, path: Path, output: str, report: FileReport) -> None:
        if self.options.backup:
            backup = path.with_suffix(path.suffix + ".bak")
            shutil.copy2(path, backup)
            report.backup_path = backup
        write_source(path, output)
        report.mark_saved(path)
