from __future__ import annotations

from pathlib import PurePath
from typing import Iterable

import pathspec

from stagesync.config import DEFAULT_EXCLUDES, SyncConfig


class IgnoreEngine:
    """Gitignore-style matcher for paths relative to an area folder."""

    def __init__(self, patterns: Iterable[str], fixed_patterns: Iterable[str] = DEFAULT_EXCLUDES) -> None:
        self._fixed = pathspec.GitIgnoreSpec.from_lines(fixed_patterns)
        self._spec = pathspec.GitIgnoreSpec.from_lines(patterns)

    def is_ignored(self, relative_path: PurePath, is_dir: bool = False) -> bool:
        unix_path = relative_path.as_posix()
        candidate = f"{unix_path}/" if is_dir and not unix_path.endswith("/") else unix_path
        if self._fixed.match_file(candidate):
            return True
        return self._spec.match_file(candidate)


def build_ignore_engine(config: SyncConfig) -> IgnoreEngine:
    return IgnoreEngine(config.excludes)
