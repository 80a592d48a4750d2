"""
BIP32 master keys for deterministic fixture keys.
"""

from __future__ import annotations

import hashlib
import hmac

from coincurve import PrivateKey


class HDKey:
    """
    BIP32 master key of a seed.
    Fixture keys are master keys, so no child derivation is done.
    """

    def __init__(self, private_key: PrivateKey):
        self.private_key = private_key

    @classmethod
    def from_seed(cls, seed: bytes) -> HDKey:
        # Left half of the HMAC is the key, the right half (chain code) is unused
        digest = hmac.new(b"Bitcoin seed", seed, hashlib.sha512).digest()
        return cls(PrivateKey(digest[:32]))

    def get_public_key_bytes(self) -> bytes:
        """Compressed public key"""
        return self.private_key.public_key.format(compressed=True)


def key_triplet(prefix: str) -> list[HDKey]:
    """Three master keys seeded with "{prefix}/1" .. "{prefix}/3"."""
    return [HDKey.from_seed(f"{prefix}/{i}".encode()) for i in (1, 2, 3)]
