from __future__ import annotations

from pathlib import Path
import logging

from stagesync.config import SyncConfig, default_config, resolve_target
from stagesync.ignore_engine import build_ignore_engine
from stagesync.models import SyncSummary
from stagesync.reporting import LoggingReporter, Reporter
from stagesync.sync_engine import SyncOptions, copy_tree


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_INVALID_CONFIG = 3


def _is_source_dir(path: Path, follow_symlinks: bool) -> bool:
    if not follow_symlinks and path.is_symlink():
        return False
    return path.is_dir()


def synchronize(
    root: Path,
    config: SyncConfig,
    reporter: Reporter,
    dry_run: bool = False,
    logger: logging.Logger | None = None,
) -> SyncSummary:
    log = logger or logging.getLogger("stagesync.run")
    ignore = build_ignore_engine(config)
    options = SyncOptions(dry_run=dry_run, follow_symlinks=config.follow_symlinks)
    summary = SyncSummary()

    for stage in config.stage_folders:
        stage_path = root / stage
        if not stage_path.is_dir():
            log.debug("stage folder not present: %s", stage)
            continue

        for mapping in config.area_mappings:
            source = stage_path / mapping.area
            if not _is_source_dir(source, config.follow_symlinks):
                continue

            target = resolve_target(root, mapping)
            stats = copy_tree(source, target, ignore, reporter, options)
            summary.absorb(stage, mapping.area, stats)
            log.debug(
                "%s/%s -> %s | copied=%s skipped=%s",
                stage,
                mapping.area,
                mapping.target,
                stats.copied,
                stats.skipped,
            )

    return summary


def run_sync(
    root: Path,
    config: SyncConfig | None = None,
    reporter: Reporter | None = None,
    dry_run: bool = False,
    logger: logging.Logger | None = None,
) -> tuple[int, SyncSummary]:
    log = logger or logging.getLogger("stagesync.run")
    root = root.resolve()
    config = config or default_config()
    reporter = reporter or LoggingReporter(root)

    try:
        summary = synchronize(root, config, reporter, dry_run=dry_run, logger=log)
    except Exception as exc:
        log.error("sync failed: %s", exc)
        return EXIT_RUNTIME_ERROR, SyncSummary()

    return EXIT_SUCCESS, summary
