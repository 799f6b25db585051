from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from stagesync.config import SyncConfig, default_config, load_config, resolve_target
from stagesync.reporting import (
    ConsoleFormatter,
    LoggingReporter,
    log_outcome,
    render_header,
    render_summary,
    stream_supports_color,
)
from stagesync.run_service import (
    EXIT_INVALID_CONFIG,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    run_sync,
)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        type=Path,
        default=argparse.SUPPRESS,
        help="Project root holding the stage folders (default: current directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=argparse.SUPPRESS,
        help="Optional YAML/JSON file overriding the built-in stage and area table",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stagesync",
        description="Copy stage folder contents into the root publishing layout",
    )
    _add_common_arguments(parser)
    parser.add_argument("--dry-run", action="store_true", default=argparse.SUPPRESS)
    parser.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS)
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Sync stage folders into the root layout (default)")
    _add_common_arguments(run_parser)
    run_parser.add_argument("--dry-run", action="store_true", default=argparse.SUPPRESS)
    run_parser.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS)

    list_parser = subparsers.add_parser("list", help="List stage/area to target mappings")
    _add_common_arguments(list_parser)

    validate_parser = subparsers.add_parser("validate-config", help="Validate a config file")
    validate_parser.add_argument("--config", required=True, type=Path)

    return parser


def _configure_logging(verbose: bool) -> logging.Logger:
    logger = logging.getLogger("stagesync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    out_handler = logging.StreamHandler(sys.stdout)
    out_handler.addFilter(lambda record: record.levelno < logging.WARNING)
    out_handler.setFormatter(ConsoleFormatter(use_color=stream_supports_color(sys.stdout)))
    logger.addHandler(out_handler)

    err_handler = logging.StreamHandler(sys.stderr)
    err_handler.setLevel(logging.WARNING)
    err_handler.setFormatter(ConsoleFormatter(use_color=stream_supports_color(sys.stderr)))
    logger.addHandler(err_handler)

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    return logger


def _load(config_path: Path | None) -> SyncConfig:
    if config_path is None:
        return default_config()
    return load_config(config_path)


def cmd_validate(config_path: Path) -> int:
    try:
        config = load_config(config_path)
    except Exception as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    print(
        f"Valid config: {config_path} "
        f"({len(config.stage_folders)} stage(s), {len(config.area_mappings)} area(s))"
    )
    for mapping in config.area_mappings:
        print(f"  - {mapping.area} -> {mapping.target}")
    return EXIT_SUCCESS


def cmd_list(root: Path, config_path: Path | None) -> int:
    try:
        config = _load(config_path)
    except Exception as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    root = root.resolve()
    print(f"root: {root}")
    for stage in config.stage_folders:
        stage_present = (root / stage).is_dir()
        print(f"stage: {stage}{'' if stage_present else ' (missing)'}")
        for mapping in config.area_mappings:
            marker = "present" if (root / stage / mapping.area).is_dir() else "missing"
            target = resolve_target(root, mapping).relative_to(root).as_posix()
            print(f"  - {mapping.area} -> {target} ({marker})")
    return EXIT_SUCCESS


def cmd_run(root: Path, config_path: Path | None, dry_run: bool, verbose: bool) -> int:
    logger = _configure_logging(verbose)

    try:
        config = _load(config_path)
    except Exception as exc:
        logger.error("Invalid config: %s", exc)
        return EXIT_INVALID_CONFIG

    title = "Stage -> Root sync" + (" (dry run)" if dry_run else "")
    print(render_header(title))

    resolved_root = root.resolve()
    exit_code, summary = run_sync(
        resolved_root,
        config,
        reporter=LoggingReporter(resolved_root, logging.getLogger("stagesync.sync")),
        dry_run=dry_run,
        logger=logging.getLogger("stagesync.run"),
    )
    if exit_code != EXIT_SUCCESS:
        return exit_code

    print(render_summary(summary))
    log_outcome(summary, logging.getLogger("stagesync.run"))
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    command = args.command or "run"
    root = getattr(args, "root", None) or Path.cwd()
    config_path = getattr(args, "config", None)

    if command == "validate-config":
        return cmd_validate(args.config)
    if command == "list":
        return cmd_list(root=root, config_path=config_path)
    if command == "run":
        return cmd_run(
            root=root,
            config_path=config_path,
            dry_run=getattr(args, "dry_run", False),
            verbose=getattr(args, "verbose", False),
        )

    parser.print_help()
    return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
