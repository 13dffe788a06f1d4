# src/addon_manifest/cli.py

import argparse
import os
import sys
import time
from pathlib import Path
from typing import List, Optional

from addon_manifest import config as config_loader
from addon_manifest import log_utils
from addon_manifest.constants import (
    DEFAULT_MAX_PAGES,
    DEFAULT_PRIMARY_OUTPUT,
    DEFAULT_SECONDARY_OUTPUT,
    EXIT_FAILURE,
    EXIT_SUCCESS,
    GITHUB_MAX_PER_PAGE,
    OVERRIDES_FILE_NAME,
    REPO_ENV_VAR,
)
from addon_manifest.exceptions import (
    ConfigurationError,
    ManifestWriteError,
    MissingEnvironmentError,
)
from addon_manifest.github_source import GithubReleaseSource
from addon_manifest.models import Manifest
from addon_manifest.pipeline import ManifestPipeline
from addon_manifest.utils import build_retry_session, get_app_version
from addon_manifest.writer import write_manifest


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="addon-manifest",
        description="Generate the OMSI 2 addon installer manifest from GitHub releases",
    )
    parser.add_argument(
        "--log-level",
        help="Console log level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--log-dir",
        help="Also write a rotating log file into this directory",
    )
    subparsers = parser.add_subparsers(dest="command")

    output_options = argparse.ArgumentParser(add_help=False)
    output_options.add_argument(
        "--output",
        "-o",
        default=DEFAULT_PRIMARY_OUTPUT,
        help=f"Primary manifest path (default: {DEFAULT_PRIMARY_OUTPUT})",
    )
    output_options.add_argument(
        "--secondary-output",
        default=DEFAULT_SECONDARY_OUTPUT,
        help=f"Best-effort secondary manifest path (default: {DEFAULT_SECONDARY_OUTPUT})",
    )
    output_options.add_argument(
        "--no-secondary-output",
        dest="secondary_output",
        action="store_const",
        const=None,
        help="Do not write the secondary manifest",
    )
    output_options.add_argument(
        "--overrides",
        default=OVERRIDES_FILE_NAME,
        help=f"Per-addon output overrides, skipped if absent (default: {OVERRIDES_FILE_NAME})",
    )
    output_options.add_argument(
        "--per-page",
        type=int,
        default=GITHUB_MAX_PER_PAGE,
        help="Releases requested per API page",
    )
    output_options.add_argument(
        "--max-pages",
        type=int,
        default=DEFAULT_MAX_PAGES,
        help="Maximum release pages fetched per repository",
    )

    generate_parser = subparsers.add_parser(
        "generate",
        parents=[output_options],
        help="Generate the manifest from the repository configuration",
    )
    generate_parser.add_argument(
        "--config",
        "-c",
        help="Configuration file (JSON or YAML)",
    )

    scan_parser = subparsers.add_parser(
        "scan",
        parents=[output_options],
        help="Generate the manifest from a single repository's release tags",
    )
    scan_parser.add_argument(
        "--repo",
        help=f"Repository as owner/name (default: ${REPO_ENV_VAR})",
    )

    subparsers.add_parser("version", help="Display addon-manifest version")
    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    if args.log_level:
        log_utils.set_log_level(args.log_level)
    if args.log_dir:
        log_utils.add_file_logging(Path(args.log_dir), args.log_level or "INFO")


def _build_pipeline(args: argparse.Namespace) -> ManifestPipeline:
    overrides = config_loader.load_overrides(Path(args.overrides))
    source = GithubReleaseSource(
        per_page=args.per_page,
        max_pages=args.max_pages,
        session=build_retry_session(),
    )
    return ManifestPipeline(source, overrides=overrides)


def _generate(args: argparse.Namespace) -> Manifest:
    config_path = config_loader.resolve_config_path(args.config)
    log_utils.logger.info(f"Using configuration {config_path}")
    repositories = config_loader.load_config(config_path)
    return _build_pipeline(args).run(repositories)


def _scan(args: argparse.Namespace) -> Manifest:
    repo = (args.repo or os.environ.get(REPO_ENV_VAR) or "").strip()
    if not repo:
        raise MissingEnvironmentError(
            REPO_ENV_VAR, details="pass --repo owner/name or set REPO"
        )
    if not config_loader.is_valid_repo(repo):
        raise ConfigurationError(f"Invalid repository identifier: {repo}")
    log_utils.logger.info(f"Scanning releases of {repo}")
    return _build_pipeline(args).scan(repo)


def run(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments, run the requested command and return the process exit code.

    Fatal errors (missing or unparsable configuration, missing required
    environment input, primary manifest write failure) are logged and yield
    EXIT_FAILURE; everything else yields EXIT_SUCCESS, including runs that
    produced no addons.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        print(f"addon-manifest {get_app_version()}")
        return EXIT_SUCCESS
    if args.command not in ("generate", "scan"):
        parser.print_help()
        return EXIT_SUCCESS

    _configure_logging(args)
    start_time = time.time()
    try:
        manifest = _generate(args) if args.command == "generate" else _scan(args)
        write_manifest(manifest, args.output, args.secondary_output)
    except (ConfigurationError, ManifestWriteError) as exc:
        log_utils.logger.error(str(exc))
        return EXIT_FAILURE

    elapsed = time.time() - start_time
    log_utils.logger.info(
        f"Generated {len(manifest.entries)} addons in {elapsed:.1f}s"
    )
    return EXIT_SUCCESS


def main():
    # Logging is automatically initialized by importing log_utils
    sys.exit(run())


if __name__ == "__main__":
    main()
