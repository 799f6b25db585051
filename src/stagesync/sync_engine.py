from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path, PurePath
import shutil
import stat

from stagesync.ignore_engine import IgnoreEngine
from stagesync.models import CopyStats, SyncEvent
from stagesync.reporting import ACTION_COPIED, ACTION_SKIPPED, Reporter


@dataclass(frozen=True, slots=True)
class SyncOptions:
    dry_run: bool = False
    follow_symlinks: bool = False
    planned: set[Path] = field(default_factory=set, compare=False, repr=False)


def _stat(path: Path, follow_symlinks: bool) -> os.stat_result | None:
    try:
        return path.stat() if follow_symlinks else path.lstat()
    except FileNotFoundError:
        return None


def _should_copy(source_stat: os.stat_result, destination_file: Path, options: SyncOptions) -> bool:
    if options.dry_run and destination_file in options.planned:
        return False
    try:
        destination_stat = destination_file.stat()
    except FileNotFoundError:
        return True
    return source_stat.st_mtime_ns > destination_stat.st_mtime_ns


def _validate_paths(source: Path, destination: Path) -> None:
    source_resolved = source.resolve()
    destination_resolved = destination.resolve()

    if destination_resolved == source_resolved or source_resolved in destination_resolved.parents:
        raise ValueError(
            f"Invalid mapping: destination is inside source, which can recurse: {destination}"
        )


def _ensure_dir(path: Path, options: SyncOptions) -> None:
    if options.dry_run or path.is_dir():
        return
    path.mkdir(parents=True, exist_ok=True)


def _copy_entry(
    source: Path,
    destination: Path,
    relative: PurePath,
    ignore: IgnoreEngine,
    reporter: Reporter,
    options: SyncOptions,
) -> CopyStats:
    source_stat = _stat(source, options.follow_symlinks)
    if source_stat is None:
        return CopyStats()

    if stat.S_ISDIR(source_stat.st_mode):
        _ensure_dir(destination, options)
        try:
            entries = sorted(os.listdir(source))
        except FileNotFoundError:
            return CopyStats()

        stats = CopyStats()
        for entry in entries:
            entry_relative = relative / entry
            entry_path = source / entry
            if ignore.is_ignored(entry_relative, is_dir=entry_path.is_dir()):
                continue
            stats += _copy_entry(
                entry_path,
                destination / entry,
                entry_relative,
                ignore,
                reporter,
                options,
            )
        return stats

    if not stat.S_ISREG(source_stat.st_mode):
        return CopyStats()

    _ensure_dir(destination.parent, options)

    if not _should_copy(source_stat, destination, options):
        reporter.record(SyncEvent(action=ACTION_SKIPPED, source=source, destination=destination))
        return CopyStats(skipped=1)

    if not options.dry_run:
        try:
            shutil.copyfile(source, destination)
        except FileNotFoundError:
            if source.exists():
                raise
            return CopyStats()
    else:
        options.planned.add(destination)
    reporter.record(SyncEvent(action=ACTION_COPIED, source=source, destination=destination))
    return CopyStats(copied=1)


def copy_tree(
    source: Path,
    destination: Path,
    ignore: IgnoreEngine,
    reporter: Reporter,
    options: SyncOptions | None = None,
) -> CopyStats:
    _validate_paths(source, destination)
    return _copy_entry(
        source,
        destination,
        PurePath(),
        ignore,
        reporter,
        options or SyncOptions(),
    )
