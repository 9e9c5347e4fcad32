"""
confessboard Identity Module

Derives anonymous author tags from a participant's private credential.

A tag is SHA-256 over a domain-separated encoding of the slot ordinal and
the credential. The poster can recompute it from their credential to
recognise their own confession; anyone else sees 32 opaque bytes that
change with every slot.
"""

import secrets

from cryptography.hazmat.primitives import hashes

from ..db.models import U64_MAX


CREDENTIAL_LENGTH = 32
TAG_LENGTH = 32

# Domain separator, zero-padded to one 32-byte block
ANON_ID_DOMAIN = b"confessboard:anon-id:".ljust(32, b"\x00")


def generate_credential() -> bytes:
    """Generate a fresh, cryptographically unpredictable credential."""
    return secrets.token_bytes(CREDENTIAL_LENGTH)


def validate_credential(credential) -> bytes:
    """
    Check that a credential is a fixed-length byte string.

    Returns:
        The credential as immutable bytes

    Raises:
        TypeError: If credential is not bytes-like
        ValueError: If credential has the wrong length
    """
    if not isinstance(credential, (bytes, bytearray, memoryview)):
        raise TypeError("Credential must be bytes")

    credential = bytes(credential)
    if len(credential) != CREDENTIAL_LENGTH:
        raise ValueError(f"Credential must be {CREDENTIAL_LENGTH} bytes")

    return credential


def validate_slot_id(slot_id) -> int:
    """Check that a slot ordinal is an unsigned 64-bit integer."""
    if isinstance(slot_id, bool) or not isinstance(slot_id, int):
        raise TypeError("Slot id must be an integer")
    if slot_id < 0 or slot_id > U64_MAX:
        raise ValueError("Slot id must fit in an unsigned 64-bit integer")
    return slot_id


def derive_author_tag(credential: bytes, slot_id: int) -> bytes:
    """
    Derive the anonymous author tag for a slot.

    Args:
        credential: 32-byte private credential
        slot_id: Ordinal of the slot (0 for the first post on a board)

    Returns:
        32-byte tag, deterministic for (credential, slot_id)
    """
    credential = validate_credential(credential)
    slot_id = validate_slot_id(slot_id)

    digest = hashes.Hash(hashes.SHA256())
    digest.update(ANON_ID_DOMAIN)
    digest.update(slot_id.to_bytes(32, "big"))
    digest.update(credential)
    return digest.finalize()
