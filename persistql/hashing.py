"""
Operation hashing - content ids for persisted operations.

The id of an operation is the hex digest of the exact UTF-8 bytes of its
rendered text, never of a parsed form. SHA-1 gives the 40-character ids
clients already persist.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from .faults import ConfigInvalidFault

DEFAULT_ALGORITHM = "sha1"


@dataclass(frozen=True)
class OperationHasher:
    """Deterministic content hash of a rendered operation."""

    algorithm: str = DEFAULT_ALGORITHM

    def __post_init__(self) -> None:
        if self.algorithm not in hashlib.algorithms_available:
            raise ConfigInvalidFault(
                "hash_algorithm",
                f"unknown hash algorithm {self.algorithm!r}",
            )
        # Variable-length digests need a length at hexdigest() time.
        if self.algorithm.startswith("shake_"):
            raise ConfigInvalidFault(
                "hash_algorithm",
                f"{self.algorithm!r} has no fixed digest size",
            )

    def hash(self, text: str) -> str:
        """Return the hex digest of *text*."""
        h = hashlib.new(self.algorithm)
        h.update(text.encode("utf-8"))
        return h.hexdigest()

    def __call__(self, text: str) -> str:
        return self.hash(text)

    def verify(self, text: str, digest: str) -> bool:
        """True when *digest* is the id of *text*."""
        return self.hash(text) == digest


default_hasher = OperationHasher()


def operation_id(text: str) -> str:
    """Id of *text* under the default (SHA-1) hasher."""
    return default_hasher.hash(text)
