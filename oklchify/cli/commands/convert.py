from __future__ import annotations
from argparse import Namespace
from pathlib import Path

from ...core.config import load_config
from ...core.errors import ConfigError
from ...core.logger import get_logger
from ...core.services import ConversionOptions, ConversionService


log = get_logger(__name__)


def run(args: Namespace) -> int:
    try:
        config = load_config(Path(args.config) if args.config else None)
    except ConfigError as e:
        log.error(f"✗ {e}")
        return 2

    if args.dry_run:
        log.info("DRY RUN - No files will be written")

    service = ConversionService(
        config,
        ConversionOptions(dry_run=args.dry_run, backup=args.backup or config.backup),
    )
    result = service.run(Path(p) for p in args.paths)

    log.info("\n=== Summary ===")
    for line in result.summary_lines:
        log.info(line)
    log.info("Done!")
    return 0
