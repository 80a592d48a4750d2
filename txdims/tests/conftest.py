"""
Test configuration for txdims tests.
"""

from __future__ import annotations

import pytest

from txdims.bip32 import HDKey, key_triplet


@pytest.fixture(scope="session")
def keys() -> list[HDKey]:
    """Deterministic 2-of-3 key set (test only!)."""
    return key_triplet("test/2")


@pytest.fixture
def g_pubkey() -> bytes:
    """Compressed public key of the secp256k1 generator point G."""
    return bytes.fromhex("0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798")
