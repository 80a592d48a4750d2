"""
Bitcoin serialization constants used for size estimation.

All sizes are in bytes unless stated otherwise.
"""

from __future__ import annotations

# Transaction-level fields
TX_VERSION_SIZE = 4
TX_LOCKTIME_SIZE = 4
# Segwit marker (0x00) and flag (0x01), counted as witness data
SEGWIT_MARKER_FLAG_SIZE = 2

# Input fields
OUTPOINT_SIZE = 36  # 32-byte txid + 4-byte vout
SEQUENCE_SIZE = 4

# Output fields
OUTPUT_VALUE_SIZE = 8

# Base bytes weigh 4 units, witness bytes weigh 1 (BIP141)
WITNESS_SCALE_FACTOR = 4

COMPRESSED_PUBKEY_SIZE = 33

# OP_2 <pubkey1> <pubkey2> <pubkey3> OP_3 OP_CHECKMULTISIG
MULTISIG_2OF3_SCRIPT_SIZE = 1 + 3 * (1 + COMPRESSED_PUBKEY_SIZE) + 1 + 1  # 105

# ECDSA signatures are DER encoded plus one sighash byte.
# With low-S, s always fits 32 bytes; r needs a 0x00 pad byte about half of the time,
# so a signature is 72 bytes (padded r) or 71 bytes (unpadded r), rarely shorter.
SIGNATURE_SIZE_PADDED_R = 72
SIGNATURE_SIZE_UNPADDED_R = 71
MAX_SIGNATURE_SIZE = 73
MIN_SIGNATURE_SIZE = 9

# Output script lengths for each template
P2SH_SCRIPT_SIZE = 23  # OP_HASH160 <20> OP_EQUAL
P2WSH_SCRIPT_SIZE = 34  # OP_0 <32>
P2PKH_SCRIPT_SIZE = 25  # OP_DUP OP_HASH160 <20> OP_EQUALVERIFY OP_CHECKSIG
P2WPKH_SCRIPT_SIZE = 22  # OP_0 <20>

SIGHASH_ALL = 0x01
