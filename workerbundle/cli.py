"""CLI entrypoints for workerbundle commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .assets import ModulesAssets
from .config import CONFIG_FILENAME, build_assets, load_config
from .errors import WorkerBundleError
from .logging import configure_logging, get_logger


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_project_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=(
            f"Path to the configuration file (defaults to <path>/{CONFIG_FILENAME}). "
            "Relative paths inside it still resolve against <path>."
        ),
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write log records to this file.",
    )
    parser.add_argument(
        "--standard-filters",
        action="store_true",
        help="Skip hidden files and honor .gitignore/.ignore while walking the upload directory.",
    )
    parser.add_argument(
        "--no-follow-links",
        action="store_true",
        help="Do not follow symbolic links while walking the upload directory.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workerbundle",
        description="Classify worker build output into modules and assemble bindings.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    modules_parser = subparsers.add_parser(
        "modules",
        help="List the modules classified from the upload directory.",
    )
    _add_verbose_option(modules_parser, suppress_default=True)
    _add_project_options(modules_parser)
    modules_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the manifest as JSON.",
    )

    bindings_parser = subparsers.add_parser(
        "bindings",
        help="Print the upload metadata, including bindings, as JSON.",
    )
    _add_verbose_option(bindings_parser, suppress_default=True)
    _add_project_options(bindings_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for workerbundle commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(args.log_file) if args.log_file else None,
    )
    logger = get_logger("cli")

    try:
        if args.config:
            config = load_config(Path(args.config), root=Path(args.path))
        else:
            config = load_config(Path(args.path))
        bundle = build_assets(
            config,
            follow_links=not args.no_follow_links,
            standard_filters=bool(args.standard_filters),
        )
    except (WorkerBundleError, OSError) as exc:
        logger.debug("Bundle assembly failed", exc_info=True)
        parser.exit(1, f"workerbundle {args.command} failed: {exc}\n")

    if args.command == "modules":
        if not isinstance(bundle, ModulesAssets):
            parser.exit(1, "The modules command requires format: modules\n")
        rows = [
            {
                "name": module.name,
                "type": module.module_type.name,
                "content_type": content_type,
                "path": str(module.path),
            }
            for module, content_type in bundle.parts()
        ]
        if args.json:
            print(json.dumps(rows, indent=2))
        else:
            for row in rows:
                print(f"{row['name']}\t{row['type']}\t{row['content_type']}")
    elif args.command == "bindings":
        print(json.dumps(bundle.metadata(), indent=2))
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
