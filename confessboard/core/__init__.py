"""confessboard Core Module - Board rules, anonymous identity, and services."""

from .board import (
    BoardStateMachine, BoardError, AlreadyOccupiedError, NoActiveConfessionError,
    apply_post, apply_vote, apply_intention,
)
from .identity import derive_author_tag, generate_credential
from .reconciler import reconcile
from .driver import TransitionDriver, MemoryTransitionDriver, LedgerTransitionDriver
from .credentials import MemoryCredentialStore, FileCredentialStore, CredentialStoreError
from .crypto import CryptoManager
from .service import ConfessionService

__all__ = [
    "BoardStateMachine",
    "BoardError",
    "AlreadyOccupiedError",
    "NoActiveConfessionError",
    "apply_post",
    "apply_vote",
    "apply_intention",
    "derive_author_tag",
    "generate_credential",
    "reconcile",
    "TransitionDriver",
    "MemoryTransitionDriver",
    "LedgerTransitionDriver",
    "MemoryCredentialStore",
    "FileCredentialStore",
    "CredentialStoreError",
    "CryptoManager",
    "ConfessionService",
]
