#!/usr/bin/env python3
"""Command line argument parsing and configuration building."""

from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional

from config import (DEFAULT_API_URL, DEFAULT_HEARTBEAT_S, DEFAULT_WORKERS,
                    BackupConfig, Config, GitHubConfig)
from logging_utils import Logger
from security import SecurityValidator
from token_cache import TokenCache, TokenCacheError

VERSION = "1.0.0"

# Exit codes
EXIT_AUTH_ERROR = 40
EXIT_MISSING_ARGUMENTS = 2

MAX_WORKERS = 64


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description=(
            "Backup GitHub repositories: mirror every repository owned by the "
            "authenticated user and by every organization the user belongs to. "
            "All access to GitHub uses OAuth tokens."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --token TOKEN --to /srv/backups
  %(prog)s --token TOKEN --cache ~/.github-backup.json
  %(prog)s --cache ~/.github-backup.json --to /srv/backups --verbose
  %(prog)s --api-url https://github.company.com/api/v3 --cache ~/.ghe.json
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {VERSION}",
    )
    return parser


def _add_auth_arguments(parser: argparse.ArgumentParser) -> None:
    """Add authentication arguments to parser."""
    parser.add_argument(
        "--token",
        dest="token",
        help="OAuth access token to use instead of the cached one "
        "(or set GITHUB_TOKEN env var)",
    )
    parser.add_argument(
        "--cache",
        dest="cache_file",
        metavar="FILE",
        help="Access token cache file: written when --token is given, "
        "read otherwise",
    )
    parser.add_argument(
        "--api-url",
        dest="api_url",
        default=DEFAULT_API_URL,
        help=f"Base URL of the GitHub API (default: {DEFAULT_API_URL})",
    )


def _add_behavior_arguments(parser: argparse.ArgumentParser) -> None:
    """Add backup behavior arguments to parser."""
    parser.add_argument(
        "--to",
        dest="backup_dir",
        metavar="DIR",
        default=".",
        help="Base directory for repository backups (default: current directory)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        dest="verbose",
        help="Log results for each repository",
    )
    parser.add_argument(
        "-w",
        "--workers",
        dest="workers",
        type=int,
        default=DEFAULT_WORKERS,
        help=f"Number of repositories synchronized concurrently (default: {DEFAULT_WORKERS})",
    )


def _validate_parsed_arguments(args) -> tuple:
    """Validate and sanitize parsed arguments."""
    try:
        validated_api_url = SecurityValidator.validate_url(
            args.api_url, ["https", "http"]
        ).rstrip("/")
        validated_backup_dir = SecurityValidator.validate_file_path(args.backup_dir)
        validated_cache_file = None
        if args.cache_file:
            validated_cache_file = SecurityValidator.validate_file_path(args.cache_file)

        if args.workers < 1 or args.workers > MAX_WORKERS:
            raise ValueError(f"workers must be between 1 and {MAX_WORKERS}")

        Logger.security_event(
            "CONFIG_VALIDATION", "successfully validated all configuration inputs"
        )
        return validated_api_url, validated_backup_dir, validated_cache_file

    except ValueError as e:
        Logger.security_event(
            "CONFIG_VALIDATION_FAILED", f"configuration validation failed: {e}"
        )
        Logger.error(f"configuration validation error: {e}")
        sys.exit(EXIT_MISSING_ARGUMENTS)


def resolve_token(
    token: Optional[str], cache_file: Optional[str], verbose: bool = False
) -> str:
    """Pick the access token: explicit value, then cache file, then GITHUB_TOKEN.

    An explicit value is stored in the cache file when one is given.
    """
    if token:
        if cache_file:
            try:
                TokenCache(cache_file).write(token)
            except TokenCacheError as e:
                Logger.warn(f"could not update cache: {e}")
        return token

    if cache_file:
        cache = TokenCache(cache_file)
        try:
            cached = cache.read()
        except TokenCacheError as e:
            Logger.error(f"error: {e}")
            sys.exit(EXIT_AUTH_ERROR)
        if verbose:
            Logger.info(f"using credentials cached in {cache_file}")
        return cached

    env_token = os.getenv("GITHUB_TOKEN")
    if env_token:
        return env_token

    Logger.error(
        "error: no GitHub credentials provided (use --token, --cache or GITHUB_TOKEN)"
    )
    sys.exit(EXIT_MISSING_ARGUMENTS)


def parse_arguments(argv: Optional[List[str]] = None) -> Config:
    """Parse command line arguments and return configuration object."""
    parser = _create_argument_parser()
    _add_auth_arguments(parser)
    _add_behavior_arguments(parser)

    args = parser.parse_args(argv)

    validated_api_url, validated_backup_dir, validated_cache_file = (
        _validate_parsed_arguments(args)
    )
    token = resolve_token(args.token, validated_cache_file, args.verbose)

    return Config(
        github=GitHubConfig(
            api_url=validated_api_url,
            token=token,
        ),
        backup=BackupConfig(
            backup_dir=validated_backup_dir,
            verbose=args.verbose,
            workers=args.workers,
            heartbeat_s=DEFAULT_HEARTBEAT_S,
        ),
    )
