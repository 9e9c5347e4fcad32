"""
confessboard Configuration Module

Handles loading, validation, and management of configuration settings.
"""

import sys
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

# Use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


@dataclass
class BoardConfig:
    """Board settings."""
    address: str = ""  # empty until a board is deployed or joined
    max_content_length: int = 2000


@dataclass
class DatabaseConfig:
    """Local ledger database settings."""
    path: str = "~/.local/share/confessboard/ledger.db"


@dataclass
class CryptoConfig:
    """Credential sealing settings."""
    argon2_time_cost: int = 3
    argon2_memory_kb: int = 65536  # 64MB
    argon2_parallelism: int = 1


@dataclass
class CredentialConfig:
    """Private credential storage settings."""
    path: str = "~/.local/share/confessboard/credential.bin"
    passphrase_env: str = "CONFESSBOARD_PASSPHRASE"


@dataclass
class WatchConfig:
    """Board watching settings."""
    poll_interval_seconds: float = 2.0


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    file: str = ""
    max_size_mb: int = 10
    backup_count: int = 3


@dataclass
class Config:
    """Main configuration container."""
    board: BoardConfig = field(default_factory=BoardConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    crypto: CryptoConfig = field(default_factory=CryptoConfig)
    credential: CredentialConfig = field(default_factory=CredentialConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.board.address:
            try:
                bytes.fromhex(self.board.address)
            except ValueError:
                errors.append("board.address must be a hex string")
        if self.board.max_content_length < 0:
            errors.append("board.max_content_length cannot be negative")

        if not self.database.path:
            errors.append("database.path cannot be empty")

        if self.crypto.argon2_time_cost < 1:
            errors.append("crypto.argon2_time_cost must be at least 1")
        if self.crypto.argon2_memory_kb < 8 * self.crypto.argon2_parallelism:
            errors.append("crypto.argon2_memory_kb must be at least 8 * argon2_parallelism")
        if self.crypto.argon2_parallelism < 1:
            errors.append("crypto.argon2_parallelism must be at least 1")

        if not self.credential.path:
            errors.append("credential.path cannot be empty")
        if not self.credential.passphrase_env:
            errors.append("credential.passphrase_env cannot be empty")

        if self.watch.poll_interval_seconds <= 0:
            errors.append("watch.poll_interval_seconds must be positive")

        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR"]
        if self.logging.level.upper() not in valid_levels:
            errors.append(f"logging.level must be one of: {valid_levels}")

        return errors

    def save(self, path: Path):
        """Save configuration to TOML file."""
        import toml  # For writing

        with open(path, "w") as f:
            toml.dump(self._to_dict(), f)

    def _to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return asdict(self)


def load_config(path: Path) -> Config:
    """Load configuration from TOML file."""
    config = Config()

    if not path.exists():
        return config

    with open(path, "rb") as f:
        data = tomllib.load(f)

    # Map TOML sections to config dataclasses
    if "board" in data:
        config.board = BoardConfig(**data["board"])

    if "database" in data:
        config.database = DatabaseConfig(**data["database"])

    if "crypto" in data:
        config.crypto = CryptoConfig(**data["crypto"])

    if "credential" in data:
        config.credential = CredentialConfig(**data["credential"])

    if "watch" in data:
        config.watch = WatchConfig(**data["watch"])

    if "logging" in data:
        config.logging = LoggingConfig(**data["logging"])

    return config


def create_default_config(path: Path):
    """Create a default configuration file."""
    config = Config()
    config.save(path)
