from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class CopyStats:
    copied: int = 0
    skipped: int = 0

    def __add__(self, other: CopyStats) -> CopyStats:
        if not isinstance(other, CopyStats):
            return NotImplemented
        return CopyStats(copied=self.copied + other.copied, skipped=self.skipped + other.skipped)


@dataclass(frozen=True, slots=True)
class SyncEvent:
    action: str
    source: Path
    destination: Path


@dataclass(slots=True)
class SyncSummary:
    copied: int = 0
    skipped: int = 0
    processed: list[tuple[str, str]] = field(default_factory=list)

    def absorb(self, stage: str, area: str, stats: CopyStats) -> None:
        self.copied += stats.copied
        self.skipped += stats.skipped
        self.processed.append((stage, area))
