from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from stagesync.models import SyncEvent, SyncSummary


ACTION_COPIED = "copied"
ACTION_SKIPPED = "skipped"

RULE = "=" * 50


class Reporter(Protocol):
    def record(self, event: SyncEvent) -> None: ...


class CollectingReporter:
    def __init__(self) -> None:
        self.events: list[SyncEvent] = []

    def record(self, event: SyncEvent) -> None:
        self.events.append(event)

    def by_action(self, action: str) -> list[SyncEvent]:
        return [event for event in self.events if event.action == action]


class LoggingReporter:
    def __init__(self, root: Path, logger: logging.Logger | None = None) -> None:
        self.root = root
        self.log = logger or logging.getLogger("stagesync.sync")

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return str(path)

    def record(self, event: SyncEvent) -> None:
        level = logging.INFO if event.action == ACTION_COPIED else logging.DEBUG
        self.log.log(
            level,
            "%s: %s -> %s",
            event.action,
            self._relative(event.source),
            self._relative(event.destination),
        )


class ConsoleFormatter(logging.Formatter):
    ICONS = {
        logging.DEBUG: "·",
        logging.INFO: "ℹ️ ",
        logging.WARNING: "⚠️ ",
        logging.ERROR: "❌",
        logging.CRITICAL: "❌",
    }
    COLORS = {
        logging.DEBUG: "\x1b[90m",
        logging.INFO: "\x1b[36m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31m",
    }
    SUCCESS_COLOR = "\x1b[32m"
    RESET = "\x1b[0m"

    def __init__(self, use_color: bool = False) -> None:
        super().__init__("%(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if getattr(record, "success", False):
            icon, color = "✅", self.SUCCESS_COLOR
        else:
            icon = self.ICONS.get(record.levelno, "")
            color = self.COLORS.get(record.levelno, "")
        line = f"{icon} {message}" if icon else message
        if self.use_color and color:
            return f"{color}{line}{self.RESET}"
        return line


def stream_supports_color(stream) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def render_header(title: str) -> str:
    return f"\n{RULE}\n🔄 {title}\n{RULE}\n"


def render_summary(summary: SyncSummary) -> str:
    lines = [
        "",
        RULE,
        "📊 Sync result",
        RULE,
        f"  files copied:  {summary.copied}",
        f"  files skipped: {summary.skipped} (unchanged)",
        RULE,
        "",
    ]
    return "\n".join(lines)


def log_outcome(summary: SyncSummary, logger: logging.Logger) -> None:
    if summary.copied > 0:
        logger.info("%s file(s) synced", summary.copied, extra={"success": True})
    else:
        logger.info("nothing to sync")
