import os
from pathlib import Path

import pytest

from stagesync.config import SyncConfig
from stagesync.ignore_engine import build_ignore_engine
from stagesync.models import CopyStats
from stagesync.reporting import ACTION_COPIED, ACTION_SKIPPED, CollectingReporter
from stagesync.sync_engine import SyncOptions, copy_tree


NS = 1_000_000_000


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _set_mtime(path: Path, seconds: int) -> None:
    os.utime(path, ns=(seconds * NS, seconds * NS))


def _copy(source: Path, destination: Path, **option_kwargs) -> tuple[CopyStats, CollectingReporter]:
    reporter = CollectingReporter()
    stats = copy_tree(
        source,
        destination,
        build_ignore_engine(SyncConfig()),
        reporter,
        SyncOptions(**option_kwargs),
    )
    return stats, reporter


def test_copy_tree_copies_new_files_and_creates_directories(tmp_path: Path) -> None:
    source = tmp_path / "Frontend"
    destination = tmp_path / "out" / "pages"
    _write(source / "index.html", "<h1>hi</h1>")
    _write(source / "assets" / "css" / "site.css", "body {}")

    stats, reporter = _copy(source, destination)

    assert stats == CopyStats(copied=2, skipped=0)
    assert (destination / "index.html").read_text(encoding="utf-8") == "<h1>hi</h1>"
    assert (destination / "assets" / "css" / "site.css").read_text(encoding="utf-8") == "body {}"
    assert [event.action for event in reporter.events] == [ACTION_COPIED, ACTION_COPIED]


def test_second_run_without_changes_skips_everything(tmp_path: Path) -> None:
    source = tmp_path / "Frontend"
    destination = tmp_path / "pages"
    _write(source / "a.html", "a")
    _write(source / "sub" / "b.html", "b")

    first, _ = _copy(source, destination)
    second, reporter = _copy(source, destination)

    assert first == CopyStats(copied=2, skipped=0)
    assert second == CopyStats(copied=0, skipped=2)
    assert len(reporter.by_action(ACTION_SKIPPED)) == 2


def test_newer_source_is_copied_again(tmp_path: Path) -> None:
    source = tmp_path / "Frontend"
    destination = tmp_path / "pages"
    _write(source / "index.html", "v1")
    _write(destination / "index.html", "old")
    _set_mtime(destination / "index.html", 1_000)
    _set_mtime(source / "index.html", 2_000)

    stats, _ = _copy(source, destination)

    assert stats == CopyStats(copied=1, skipped=0)
    assert (destination / "index.html").read_text(encoding="utf-8") == "v1"


@pytest.mark.parametrize("destination_mtime", [2_000, 3_000])
def test_destination_at_least_as_new_is_skipped(tmp_path: Path, destination_mtime: int) -> None:
    source = tmp_path / "Frontend"
    destination = tmp_path / "pages"
    _write(source / "index.html", "new content")
    _write(destination / "index.html", "kept")
    _set_mtime(source / "index.html", 2_000)
    _set_mtime(destination / "index.html", destination_mtime)

    stats, _ = _copy(source, destination)

    assert stats == CopyStats(copied=0, skipped=1)
    assert (destination / "index.html").read_text(encoding="utf-8") == "kept"


def test_source_mtime_is_not_carried_to_destination(tmp_path: Path) -> None:
    source = tmp_path / "Frontend"
    destination = tmp_path / "pages"
    _write(source / "index.html", "x")
    _set_mtime(source / "index.html", 1_000)

    _copy(source, destination)

    assert (destination / "index.html").stat().st_mtime_ns != 1_000 * NS


def test_hidden_entries_and_node_modules_are_never_visited(tmp_path: Path) -> None:
    source = tmp_path / "Backend_APIs"
    destination = tmp_path / "api" / "Backend_APIs"
    _write(source / "handler.js", "ok")
    _write(source / ".env", "SECRET=1")
    _write(source / ".cache" / "blob", "x")
    _write(source / "node_modules" / "lib" / "index.js", "x")
    _write(source / "nested" / "node_modules" / "pkg.json", "{}")
    _write(source / "nested" / ".DS_Store", "x")
    _write(source / "nested" / "route.js", "ok")

    stats, _ = _copy(source, destination)

    assert stats == CopyStats(copied=2, skipped=0)
    assert (destination / "handler.js").exists()
    assert (destination / "nested" / "route.js").exists()
    assert not (destination / ".env").exists()
    assert not (destination / ".cache").exists()
    assert not (destination / "node_modules").exists()
    assert not (destination / "nested" / "node_modules").exists()
    assert not (destination / "nested" / ".DS_Store").exists()


def test_destination_only_files_are_left_untouched(tmp_path: Path) -> None:
    source = tmp_path / "Frontend"
    destination = tmp_path / "pages"
    _write(source / "index.html", "new")
    _write(destination / "legacy.html", "legacy")
    _set_mtime(destination / "legacy.html", 1_000)

    stats, reporter = _copy(source, destination)

    assert stats == CopyStats(copied=1, skipped=0)
    assert (destination / "legacy.html").read_text(encoding="utf-8") == "legacy"
    assert (destination / "legacy.html").stat().st_mtime_ns == 1_000 * NS
    assert all(event.destination.name != "legacy.html" for event in reporter.events)


def test_missing_source_is_a_no_op(tmp_path: Path) -> None:
    destination = tmp_path / "pages"

    stats, reporter = _copy(tmp_path / "does-not-exist", destination)

    assert stats == CopyStats()
    assert reporter.events == []
    assert not destination.exists()


def test_empty_source_directory_still_creates_destination(tmp_path: Path) -> None:
    source = tmp_path / "External"
    source.mkdir()
    destination = tmp_path / "api" / "External"

    stats, _ = _copy(source, destination)

    assert stats == CopyStats()
    assert destination.is_dir()


def test_dry_run_reports_without_writing(tmp_path: Path) -> None:
    source = tmp_path / "Frontend"
    destination = tmp_path / "pages"
    _write(source / "index.html", "x")
    _write(source / "sub" / "page.html", "y")

    stats, reporter = _copy(source, destination, dry_run=True)

    assert stats == CopyStats(copied=2, skipped=0)
    assert len(reporter.by_action(ACTION_COPIED)) == 2
    assert not destination.exists()


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
def test_symlinks_are_ignored_unless_followed(tmp_path: Path) -> None:
    source = tmp_path / "Frontend"
    outside = tmp_path / "outside.html"
    _write(source / "index.html", "x")
    _write(outside, "linked")
    try:
        (source / "link.html").symlink_to(outside)
    except OSError:
        pytest.skip("cannot create symlinks here")

    stats, _ = _copy(source, tmp_path / "pages")
    followed, _ = _copy(source, tmp_path / "pages-followed", follow_symlinks=True)

    assert stats == CopyStats(copied=1, skipped=0)
    assert not (tmp_path / "pages" / "link.html").exists()
    assert followed == CopyStats(copied=2, skipped=0)
    assert (tmp_path / "pages-followed" / "link.html").read_text(encoding="utf-8") == "linked"


def test_filesystem_errors_propagate(tmp_path: Path) -> None:
    source = tmp_path / "Frontend"
    _write(source / "index.html", "x")
    blocker = tmp_path / "pages"
    _write(blocker, "i am a file, not a directory")

    with pytest.raises(OSError):
        _copy(source, blocker)


def test_copy_stats_are_summed() -> None:
    assert CopyStats(copied=1, skipped=2) + CopyStats(copied=3, skipped=4) == CopyStats(copied=4, skipped=6)


def test_destination_inside_source_is_rejected_before_writing(tmp_path: Path) -> None:
    source = tmp_path / "Frontend"
    _write(source / "index.html", "x")

    with pytest.raises(ValueError, match="destination is inside source"):
        _copy(source, source / "out")
    with pytest.raises(ValueError, match="destination is inside source"):
        _copy(source, source)

    assert not (source / "out").exists()


def test_dry_run_treats_planned_copies_as_up_to_date(tmp_path: Path) -> None:
    source = tmp_path / "Frontend"
    destination = tmp_path / "pages"
    _write(source / "index.html", "x")
    options = SyncOptions(dry_run=True)
    ignore = build_ignore_engine(SyncConfig())

    first = copy_tree(source, destination, ignore, CollectingReporter(), options)
    second = copy_tree(source, destination, ignore, CollectingReporter(), options)

    assert first == CopyStats(copied=1, skipped=0)
    assert second == CopyStats(copied=0, skipped=1)
    assert not destination.exists()
