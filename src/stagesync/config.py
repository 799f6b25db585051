from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

import json
import yaml


DEFAULT_STAGE_FOLDERS = (
    "S1_개발_준비",
    "S2_개발-1차",
    "S3_개발-2차",
    "S4_개발-3차",
    "S5_개발_마무리",
)

DEFAULT_EXCLUDES = (
    ".*",
    "node_modules",
)


@dataclass(frozen=True, slots=True)
class AreaMapping:
    area: str
    target: str


DEFAULT_AREA_MAPPINGS = (
    AreaMapping(area="Frontend", target="pages"),
    AreaMapping(area="Backend_APIs", target="api/Backend_APIs"),
    AreaMapping(area="Security", target="api/Security"),
    AreaMapping(area="Backend_Infra", target="api/Backend_Infra"),
    AreaMapping(area="External", target="api/External"),
)


@dataclass(frozen=True, slots=True)
class SyncConfig:
    stage_folders: tuple[str, ...] = DEFAULT_STAGE_FOLDERS
    area_mappings: tuple[AreaMapping, ...] = DEFAULT_AREA_MAPPINGS
    excludes: tuple[str, ...] = DEFAULT_EXCLUDES
    follow_symlinks: bool = False


def default_config() -> SyncConfig:
    return SyncConfig()


def _as_name(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    name = value.strip()
    if "/" in name or "\\" in name or name in {".", ".."}:
        raise ValueError(f"{field_name} must be a single folder name: {name}")
    return name


def _as_relative_target(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string path")
    target = PurePosixPath(value.strip().replace("\\", "/"))
    if target.is_absolute() or ".." in target.parts:
        raise ValueError(f"{field_name} must stay inside the project root: {value}")
    return target.as_posix()


def _as_bool(value: Any, field_name: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise ValueError(f"{field_name} must be a boolean")


def _as_list_of_strings(value: Any, field_name: str, default: tuple[str, ...] = ()) -> list[str]:
    if value is None:
        return list(default)
    if not isinstance(value, list) or any(not isinstance(item, str) for item in value):
        raise ValueError(f"{field_name} must be a list of strings")
    return [item for item in value if item.strip()]


def _load_raw_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ValueError(f"Config file does not exist: {config_path}")

    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in {".yml", ".yaml"}:
        loaded = yaml.safe_load(text)
    elif suffix == ".json":
        loaded = json.loads(text)
    else:
        raise ValueError("Config file must be .yaml/.yml or .json")

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError("Config root must be an object")
    return loaded


def _parse_stage_folders(raw_stages: Any) -> tuple[str, ...]:
    if raw_stages is None:
        return DEFAULT_STAGE_FOLDERS
    if not isinstance(raw_stages, list) or not raw_stages:
        raise ValueError("stageFolders must be a non-empty list")

    stages: list[str] = []
    for index, raw_stage in enumerate(raw_stages):
        name = _as_name(raw_stage, f"stageFolders[{index}]")
        if name in stages:
            raise ValueError(f"Duplicate stage folder: {name}")
        stages.append(name)
    return tuple(stages)


def _parse_area_mappings(raw_mappings: Any) -> tuple[AreaMapping, ...]:
    if raw_mappings is None:
        return DEFAULT_AREA_MAPPINGS
    if not isinstance(raw_mappings, list) or not raw_mappings:
        raise ValueError("areaMappings must be a non-empty list")

    mappings: list[AreaMapping] = []
    areas: set[str] = set()
    for index, raw_mapping in enumerate(raw_mappings):
        if not isinstance(raw_mapping, dict):
            raise ValueError(f"areaMappings[{index}] must be an object")
        area = _as_name(raw_mapping.get("area"), f"areaMappings[{index}].area")
        if area in areas:
            raise ValueError(f"Duplicate area: {area}")
        areas.add(area)
        target = _as_relative_target(raw_mapping.get("target"), f"areaMappings[{index}].target")
        mappings.append(AreaMapping(area=area, target=target))
    return tuple(mappings)


def _validate_targets(stage_folders: tuple[str, ...], area_mappings: tuple[AreaMapping, ...]) -> None:
    sources = {(stage, mapping.area) for stage in stage_folders for mapping in area_mappings}
    for mapping in area_mappings:
        parts = PurePosixPath(mapping.target).parts
        if tuple(parts[:2]) in sources:
            raise ValueError(
                f"Invalid mapping: target {mapping.target} is inside a stage source, which can recurse"
            )


def load_config(config_path: Path) -> SyncConfig:
    raw = _load_raw_config(config_path)

    excludes = list(DEFAULT_EXCLUDES)
    raw_excludes = _as_list_of_strings(raw.get("additionalExcludes"), "additionalExcludes")
    for index, pattern in enumerate(raw_excludes):
        if pattern.lstrip().startswith("!"):
            raise ValueError(f"additionalExcludes[{index}] cannot re-include entries: {pattern}")
        if pattern not in excludes:
            excludes.append(pattern)

    stage_folders = _parse_stage_folders(raw.get("stageFolders"))
    area_mappings = _parse_area_mappings(raw.get("areaMappings"))
    _validate_targets(stage_folders, area_mappings)

    return SyncConfig(
        stage_folders=stage_folders,
        area_mappings=area_mappings,
        excludes=tuple(excludes),
        follow_symlinks=_as_bool(raw.get("followSymlinks"), "followSymlinks", default=False),
    )


def resolve_target(root: Path, mapping: AreaMapping) -> Path:
    return root / mapping.target
