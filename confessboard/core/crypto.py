"""
confessboard Cryptography Module

Seals private credentials at rest: Argon2id turns the participant's
passphrase into a key, ChaCha20-Poly1305 encrypts the credential.
"""

import secrets
import logging
from dataclasses import dataclass

from argon2.low_level import hash_secret_raw, Type
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

logger = logging.getLogger(__name__)


SEAL_MAGIC = b"CBC1"
SEAL_AAD = b"confessboard:credential:v1"


class SealError(Exception):
    """Raised when sealed data cannot be opened."""


@dataclass
class SealedData:
    """Salt, nonce and ciphertext of a sealed secret."""
    salt: bytes  # 16 bytes for Argon2id
    nonce: bytes  # 12 bytes for ChaCha20-Poly1305
    ciphertext: bytes

    def to_bytes(self) -> bytes:
        """Serialize to bytes for storage."""
        return SEAL_MAGIC + self.salt + self.nonce + self.ciphertext

    @classmethod
    def from_bytes(cls, data: bytes) -> "SealedData":
        """Deserialize from bytes."""
        header = len(SEAL_MAGIC)
        salt_end = header + CryptoManager.SALT_LENGTH
        nonce_end = salt_end + CryptoManager.NONCE_LENGTH

        if not data.startswith(SEAL_MAGIC):
            raise SealError("Invalid sealed data: bad header")
        if len(data) <= nonce_end:
            raise SealError("Invalid sealed data: too short")

        return cls(
            salt=data[header:salt_end],
            nonce=data[salt_end:nonce_end],
            ciphertext=data[nonce_end:]
        )


class CryptoManager:
    """
    Passphrase sealing for secrets kept on the participant's machine.

    Key derivation: Argon2id (memory-hard, resistant to GPU attacks)
    Encryption: ChaCha20-Poly1305 (AEAD)
    """

    SALT_LENGTH = 16
    KEY_LENGTH = 32  # 256 bits for ChaCha20
    NONCE_LENGTH = 12  # ChaCha20-Poly1305 nonce size

    def __init__(
        self,
        time_cost: int = 3,
        memory_cost_kb: int = 65536,  # 64MB
        parallelism: int = 1
    ):
        """
        Initialize crypto manager with Argon2id parameters.

        Args:
            time_cost: Number of iterations (higher = slower + more secure)
            memory_cost_kb: Memory usage in KB
            parallelism: Number of parallel threads
        """
        self.time_cost = time_cost
        self.memory_cost_kb = memory_cost_kb
        self.parallelism = parallelism

        logger.debug(
            f"CryptoManager initialized: time={time_cost}, "
            f"memory={memory_cost_kb}KB, parallelism={parallelism}"
        )

    def generate_salt(self) -> bytes:
        """Generate a cryptographically secure random salt."""
        return secrets.token_bytes(self.SALT_LENGTH)

    def derive_key(self, passphrase: str, salt: bytes) -> bytes:
        """Derive a 256-bit key from a passphrase and salt with Argon2id."""
        if len(salt) != self.SALT_LENGTH:
            raise ValueError(f"Salt must be {self.SALT_LENGTH} bytes")

        return hash_secret_raw(
            secret=passphrase.encode('utf-8'),
            salt=salt,
            time_cost=self.time_cost,
            memory_cost=self.memory_cost_kb,
            parallelism=self.parallelism,
            hash_len=self.KEY_LENGTH,
            type=Type.ID
        )

    def seal(self, secret: bytes, passphrase: str) -> bytes:
        """
        Encrypt a secret under a passphrase.

        A fresh salt and nonce are drawn for every call, so sealing the
        same secret twice yields different output.

        Returns:
            Serialized SealedData
        """
        if not passphrase:
            raise ValueError("Passphrase cannot be empty")

        salt = self.generate_salt()
        key = self.derive_key(passphrase, salt)
        nonce = secrets.token_bytes(self.NONCE_LENGTH)

        ciphertext = ChaCha20Poly1305(key).encrypt(nonce, secret, SEAL_AAD)

        return SealedData(salt=salt, nonce=nonce, ciphertext=ciphertext).to_bytes()

    def unseal(self, data: bytes, passphrase: str) -> bytes:
        """
        Decrypt a secret sealed with seal().

        Raises:
            SealError: On a wrong passphrase, tampered data or bad format
        """
        sealed = SealedData.from_bytes(data)
        key = self.derive_key(passphrase, sealed.salt)

        try:
            return ChaCha20Poly1305(key).decrypt(sealed.nonce, sealed.ciphertext, SEAL_AAD)
        except InvalidTag:
            raise SealError("Wrong passphrase or corrupted data") from None
