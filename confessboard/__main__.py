"""
confessboard Entry Point

Usage:
    python -m confessboard deploy            # Create a new board
    python -m confessboard post "text"       # Post a confession
    python -m confessboard vote up|down      # Vote on the current confession
    python -m confessboard show              # Show the board
    python -m confessboard watch             # Follow board changes
    python -m confessboard --help            # Show help
"""

import argparse
import sys
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from . import __version__


def setup_logging(
    level: str,
    log_file: str | None = None,
    max_size_mb: int = 10,
    backup_count: int = 3
):
    """Configure logging for the application."""
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    handlers = [logging.StreamHandler()]

    if log_file:
        handlers.append(RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count
        ))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=log_format,
        handlers=handlers
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="confessboard",
        description="confessboard - Anonymous single-slot confession board"
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"confessboard {__version__}"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=Path("confessboard.toml"),
        help="Path to configuration file (default: confessboard.toml)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: from config)"
    )
    parser.add_argument("--board", "-b", help="Board address (default: from config)")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Commands")

    init_parser = subparsers.add_parser("init-config", help="Write a default config file")
    init_parser.add_argument("--force", action="store_true", help="Overwrite existing file")

    subparsers.add_parser("deploy", help="Create a new board")
    subparsers.add_parser("boards", help="List boards in the local ledger")
    subparsers.add_parser("show", help="Show the current confession")

    post_parser = subparsers.add_parser("post", help="Post a confession")
    post_parser.add_argument("text", nargs="+", help="Confession text")
    post_parser.add_argument(
        "--timestamp",
        type=int,
        default=None,
        help="Timestamp in ms since epoch (default: now)"
    )

    vote_parser = subparsers.add_parser("vote", help="Vote on the current confession")
    vote_parser.add_argument("direction", choices=["up", "down"])
    vote_parser.add_argument(
        "--allow-self",
        action="store_true",
        help="Vote even if the confession is yours"
    )

    watch_parser = subparsers.add_parser("watch", help="Follow board changes")
    watch_parser.add_argument("--interval", type=float, default=None, help="Poll interval in seconds")
    watch_parser.add_argument("--count", type=int, default=None, help="Stop after N updates")

    return parser


def main(argv=None):
    """Main entry point for confessboard."""
    args = build_parser().parse_args(argv)

    from .config import load_config
    from .cli.commands import run_command

    config = load_config(args.config)
    setup_logging(
        args.log_level or config.logging.level,
        config.logging.file or None,
        config.logging.max_size_mb,
        config.logging.backup_count
    )
    logger = logging.getLogger("confessboard")

    errors = config.validate()
    if errors:
        for err in errors:
            logger.error(f"Config: {err}")
        sys.exit(1)

    try:
        sys.exit(run_command(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
