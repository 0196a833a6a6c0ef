from __future__ import annotations
from argparse import Namespace
from pathlib import Path

from ...core.config import load_config
from ...core.errors import ConfigError, OklchifyError
from ...core.logger import get_logger
from ...core.services import ConversionService, collect_input_files


log = get_logger(__name__)


def run(args: Namespace) -> int:
    try:
        config = load_config(Path(args.config) if args.config else None)
    except ConfigError as e:
        log.error(f"✗ {e}")
        return 2

    service = ConversionService(config)
    total = 0
    for path in collect_input_files((Path(p) for p in args.paths), config):
        if config.kind_for(path) is None:
            log.warning(f"⚠ Skipping {path} - unknown file type")
            continue
        try:
            rows = service.scan_file(path)
        except (OklchifyError, OSError, UnicodeDecodeError) as e:
            log.error(f"✗ Error scanning {path}: {e}")
            continue
        log.info(f"{path}: {len(rows)} hex colors")
        for scope, prop, hex_value, oklch in rows:
            where = f"{scope} " if scope else ""
            log.info(f"  {where}{prop}: {hex_value} -> {oklch}")
        total += len(rows)

    log.info(f"Total: {total} hex colors")
    return 0
