"""
confessboard Credential Stores

Hold a participant's private credential and hand it out on demand.
Both stores are idempotent: the first call creates the credential,
later calls return the same value.
"""

import os
import logging
import tempfile
import threading
from pathlib import Path
from typing import Optional

from .crypto import CryptoManager, SealError
from .identity import generate_credential, validate_credential

logger = logging.getLogger(__name__)


class CredentialStoreError(Exception):
    """Raised when a stored credential cannot be read."""


class MemoryCredentialStore:
    """Credential held only for the lifetime of the process."""

    def __init__(self, credential: Optional[bytes] = None):
        self._credential = validate_credential(credential) if credential is not None else None
        self._lock = threading.Lock()

    def get_or_create_credential(self) -> bytes:
        with self._lock:
            if self._credential is None:
                self._credential = generate_credential()
            return self._credential


class FileCredentialStore:
    """
    Credential sealed with a passphrase in a local file.

    The file holds Argon2id salt, nonce and ChaCha20-Poly1305 ciphertext;
    the plaintext credential never touches the disk.
    """

    def __init__(self, path, passphrase: str, crypto: CryptoManager):
        """
        Args:
            path: Location of the sealed credential file
            passphrase: Passphrase used to seal and unseal it
            crypto: Crypto manager carrying the Argon2id parameters
        """
        self.path = Path(path)
        self.crypto = crypto
        self._passphrase = passphrase
        self._credential: Optional[bytes] = None
        self._lock = threading.Lock()

    def exists(self) -> bool:
        return self.path.exists()

    def get_or_create_credential(self) -> bytes:
        """
        Load the credential, creating and sealing a new one if absent.

        Raises:
            CredentialStoreError: If the file exists but cannot be opened
        """
        with self._lock:
            if self._credential is None:
                if self.exists():
                    self._credential = self._load()
                else:
                    self._credential = self._create()
            return self._credential

    def _load(self) -> bytes:
        try:
            sealed = self.path.read_bytes()
            credential = self.crypto.unseal(sealed, self._passphrase)
            credential = validate_credential(credential)
        except (OSError, SealError, ValueError) as e:
            raise CredentialStoreError(f"Cannot open credential {self.path}: {e}") from e

        logger.info(f"Credential loaded from {self.path}")
        return credential

    def _create(self) -> bytes:
        credential = generate_credential()
        sealed = self.crypto.seal(credential, self._passphrase)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        # mkstemp creates the file with mode 0600
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(sealed)
                f.flush()
                os.fsync(f.fileno())
            # link() never replaces an existing file, so the first writer wins
            os.link(tmp_name, self.path)
        except FileExistsError:
            logger.info(f"Credential at {self.path} was created concurrently, loading it")
            return self._load()
        finally:
            os.unlink(tmp_name)

        logger.info(f"New credential created at {self.path}")
        return credential
