"""
confessboard Command Handlers

One function per CLI subcommand. Each takes the parsed arguments and the
loaded configuration and returns a process exit code.
"""

import os
import asyncio
import getpass
import logging
from pathlib import Path
from typing import Optional

from ..config import Config, create_default_config
from ..core.credentials import FileCredentialStore, CredentialStoreError
from ..core.crypto import CryptoManager
from ..core.service import ConfessionService
from ..db.connection import Database
from ..db.ledger import LedgerRepository
from ..db.models import VoteDirection
from ..utils.formatting import format_view, format_timestamp

logger = logging.getLogger(__name__)


def open_database(config: Config) -> Database:
    """Open the local ledger database named in the configuration."""
    db = Database(os.path.expanduser(config.database.path))
    db.initialize()
    return db


def resolve_passphrase(config: Config) -> str:
    """Read the credential passphrase from the environment or a prompt."""
    passphrase = os.environ.get(config.credential.passphrase_env)
    if passphrase:
        return passphrase
    return getpass.getpass("Credential passphrase: ")


def open_credential_store(config: Config) -> FileCredentialStore:
    """Build the sealed file credential store from configuration."""
    crypto = CryptoManager(
        time_cost=config.crypto.argon2_time_cost,
        memory_cost_kb=config.crypto.argon2_memory_kb,
        parallelism=config.crypto.argon2_parallelism
    )
    return FileCredentialStore(
        Path(os.path.expanduser(config.credential.path)),
        resolve_passphrase(config),
        crypto
    )


def board_address(args, config: Config) -> Optional[str]:
    """Board address from --board, falling back to the configuration."""
    return getattr(args, "board", None) or config.board.address or None


def service_options(config: Config) -> dict:
    """Service keyword arguments taken from the configuration."""
    return {
        "max_content_length": config.board.max_content_length,
        "poll_interval": config.watch.poll_interval_seconds,
    }


def _join(args, config: Config, db: Database) -> Optional[ConfessionService]:
    address = board_address(args, config)
    if not address:
        print("No board selected. Run 'deploy' or pass --board <address>.")
        return None

    try:
        return ConfessionService.join(
            db,
            open_credential_store(config),
            address,
            **service_options(config)
        )
    except LookupError:
        print(f"No board at address {address}.")
        return None
    except CredentialStoreError as e:
        print(f"Credential error: {e}")
        return None


def cmd_init_config(args, config: Config) -> int:
    """Write a default configuration file."""
    path = args.config
    if path.exists() and not args.force:
        print(f"{path} already exists. Use --force to overwrite.")
        return 1

    create_default_config(path)
    print(f"Default configuration written to {path}")
    return 0


def cmd_deploy(args, config: Config) -> int:
    """Create a new board and print its address."""
    db = open_database(config)
    try:
        service = ConfessionService.deploy(
            db,
            open_credential_store(config),
            **service_options(config)
        )
    except CredentialStoreError as e:
        print(f"Credential error: {e}")
        return 1
    finally:
        db.close()

    print(f"Board deployed: {service.address}")
    return 0


def cmd_boards(args, config: Config) -> int:
    """List boards in the local ledger."""
    db = open_database(config)
    try:
        boards = LedgerRepository(db).list_boards()
    finally:
        db.close()

    if not boards:
        print("No boards yet.")
        return 0

    for board in boards:
        created = format_timestamp(board.created_at_us // 1000)
        print(f"{board.address}  created {created}  transitions {board.sequence}")
    return 0


def cmd_show(args, config: Config) -> int:
    """Print the current board state."""
    db = open_database(config)
    try:
        service = _join(args, config, db)
        if service is None:
            return 1
        print(format_view(service.state(), service.address))
        return 0
    finally:
        db.close()


def cmd_post(args, config: Config) -> int:
    """Post a confession."""
    content = " ".join(args.text).strip()

    db = open_database(config)
    try:
        service = _join(args, config, db)
        if service is None:
            return 1

        view, error = service.post_confession(content, timestamp=args.timestamp)
        if error:
            print(error)
            return 1

        print(format_view(view, service.address))
        return 0
    finally:
        db.close()


def cmd_vote(args, config: Config) -> int:
    """Vote on the current confession."""
    direction = VoteDirection(args.direction)

    db = open_database(config)
    try:
        service = _join(args, config, db)
        if service is None:
            return 1

        if service.state().is_author and not args.allow_self:
            print("This is your confession. Use --allow-self to vote on it anyway.")
            return 1

        view, error = service.vote(direction)
        if error:
            print(error)
            return 1

        print(format_view(view, service.address))
        return 0
    finally:
        db.close()


def cmd_watch(args, config: Config) -> int:
    """Print the board state every time it changes."""
    db = open_database(config)
    try:
        service = _join(args, config, db)
        if service is None:
            return 1
        asyncio.run(_watch(service, args.interval, args.count))
        return 0
    finally:
        db.close()


async def _watch(service: ConfessionService, interval: Optional[float], count: Optional[int]):
    seen = 0
    async for view in service.watch(interval):
        print(format_view(view, service.address))
        print()
        seen += 1
        if count and seen >= count:
            break


COMMANDS = {
    "init-config": cmd_init_config,
    "deploy": cmd_deploy,
    "boards": cmd_boards,
    "show": cmd_show,
    "post": cmd_post,
    "vote": cmd_vote,
    "watch": cmd_watch,
}


def run_command(args, config: Config) -> int:
    """
    Run a CLI subcommand.

    Args:
        args: Parsed command line arguments
        config: Loaded configuration

    Returns:
        Exit code
    """
    handler = COMMANDS.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}")
        return 2
    return handler(args, config)
