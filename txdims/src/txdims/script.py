"""
Script templates: encoding, push parsing and template matching.

Supports:
- P2SH (OP_HASH160 <20> OP_EQUAL)
- P2WSH (OP_0 <32>)
- P2PKH (OP_DUP OP_HASH160 <20> OP_EQUALVERIFY OP_CHECKSIG)
- P2WPKH (OP_0 <20>)
- Null data (OP_RETURN <pushes...>)
- 2-of-3 multisig redeem/witness scripts
"""

from __future__ import annotations

import hashlib
import struct

from txdims.constants import (
    COMPRESSED_PUBKEY_SIZE,
    MAX_SIGNATURE_SIZE,
    MIN_SIGNATURE_SIZE,
    MULTISIG_2OF3_SCRIPT_SIZE,
    P2PKH_SCRIPT_SIZE,
    P2SH_SCRIPT_SIZE,
    P2WPKH_SCRIPT_SIZE,
    P2WSH_SCRIPT_SIZE,
)

OP_0 = 0x00
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E
OP_1NEGATE = 0x4F
OP_1 = 0x51
OP_2 = 0x52
OP_3 = 0x53
OP_16 = 0x60
OP_RETURN = 0x6A
OP_DUP = 0x76
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_HASH160 = 0xA9
OP_CHECKSIG = 0xAC
OP_CHECKMULTISIG = 0xAE


class ScriptDecodeError(ValueError):
    """Raised when a script cannot be split into opcodes."""

    pass


class UnsupportedAddressError(ValueError):
    """Raised for valid address kinds whose scripts are not estimated (e.g. taproot)."""

    pass


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data))"""
    h = hashlib.new("ripemd160")
    h.update(hashlib.sha256(data).digest())
    return h.digest()


def push_data(data: bytes) -> bytes:
    """Encode a minimal push of data."""
    n = len(data)
    if n < OP_PUSHDATA1:
        return bytes([n]) + data
    elif n <= 0xFF:
        return bytes([OP_PUSHDATA1, n]) + data
    elif n <= 0xFFFF:
        return bytes([OP_PUSHDATA2]) + struct.pack("<H", n) + data
    else:
        return bytes([OP_PUSHDATA4]) + struct.pack("<I", n) + data


def parse_script(script: bytes) -> list[tuple[int, bytes | None]]:
    """
    Split a script into (opcode, data) pairs.

    data is the pushed bytes for push opcodes (b"" for OP_0) and None otherwise.

    Raises:
        ScriptDecodeError: If a push runs past the end of the script
    """
    ops: list[tuple[int, bytes | None]] = []
    offset = 0

    while offset < len(script):
        opcode = script[offset]
        offset += 1

        if opcode < OP_PUSHDATA1:
            size = opcode
        elif opcode == OP_PUSHDATA1:
            if offset + 1 > len(script):
                raise ScriptDecodeError("Truncated OP_PUSHDATA1")
            size = script[offset]
            offset += 1
        elif opcode == OP_PUSHDATA2:
            if offset + 2 > len(script):
                raise ScriptDecodeError("Truncated OP_PUSHDATA2")
            size = struct.unpack("<H", script[offset : offset + 2])[0]
            offset += 2
        elif opcode == OP_PUSHDATA4:
            if offset + 4 > len(script):
                raise ScriptDecodeError("Truncated OP_PUSHDATA4")
            size = struct.unpack("<I", script[offset : offset + 4])[0]
            offset += 4
        else:
            ops.append((opcode, None))
            continue

        if offset + size > len(script):
            raise ScriptDecodeError(f"Push of {size} bytes exceeds script length")
        ops.append((opcode, script[offset : offset + size]))
        offset += size

    return ops


def get_push_only_items(script: bytes) -> list[bytes] | None:
    """Return the pushed items if the script contains only data pushes, else None."""
    items = []
    for opcode, data in parse_script(script):
        if data is None:
            return None
        items.append(data)
    return items


# Encoders


def multisig_script(m: int, pubkeys: list[bytes]) -> bytes:
    """OP_m <pubkey>... OP_n OP_CHECKMULTISIG"""
    if not 1 <= m <= len(pubkeys) <= 16:
        raise ValueError(f"Invalid multisig parameters: {m}-of-{len(pubkeys)}")
    result = bytes([OP_1 + m - 1])
    for pubkey in pubkeys:
        result += push_data(pubkey)
    result += bytes([OP_1 + len(pubkeys) - 1, OP_CHECKMULTISIG])
    return result


def p2sh_script(redeem_script: bytes) -> bytes:
    return bytes([OP_HASH160, 0x14]) + hash160(redeem_script) + bytes([OP_EQUAL])


def p2wsh_script(witness_script: bytes) -> bytes:
    return bytes([OP_0, 0x20]) + hashlib.sha256(witness_script).digest()


def p2pkh_script(pubkey: bytes) -> bytes:
    return bytes([OP_DUP, OP_HASH160, 0x14]) + hash160(pubkey) + bytes([OP_EQUALVERIFY, OP_CHECKSIG])


def p2wpkh_script(pubkey: bytes) -> bytes:
    return bytes([OP_0, 0x14]) + hash160(pubkey)


def null_data_script(payload: bytes) -> bytes:
    return bytes([OP_RETURN]) + push_data(payload)


def address_to_script(address: str) -> bytes:
    """
    Convert a Bitcoin address to its scriptPubKey.

    Supports:
    - P2WPKH / P2WSH (bc1q..., tb1q..., bcrt1q...)
    - P2PKH (1..., m..., n...)
    - P2SH (3..., 2...)

    Raises:
        UnsupportedAddressError: For witness version 1+ addresses (taproot)
        ValueError: If the address is malformed
    """
    import bech32

    if address.lower().startswith(("bc1", "tb1", "bcrt1")):
        hrp_end = 4 if address.lower().startswith("bcrt") else 2
        hrp = address[:hrp_end].lower()

        # First data character after the "1" separator is the witness version
        version_char = address[hrp_end + 1 : hrp_end + 2].lower()
        if version_char and bech32.CHARSET.find(version_char) > 0:
            raise UnsupportedAddressError(
                f"Witness version {bech32.CHARSET.find(version_char)} address: {address}"
            )

        witver, witprog = bech32.decode(hrp, address)
        if witver is None or witprog is None:
            raise ValueError(f"Invalid bech32 address: {address}")

        program = bytes(witprog)
        if witver == 0 and len(program) in (20, 32):
            return bytes([OP_0, len(program)]) + program

        raise ValueError(f"Unsupported witness version: {witver}")

    import base58

    decoded = base58.b58decode_check(address)
    version = decoded[0]
    payload = decoded[1:]

    if len(payload) != 20:
        raise ValueError(f"Invalid address payload length: {len(payload)}")

    if version in (0x00, 0x6F):  # Mainnet/Testnet P2PKH
        return bytes([OP_DUP, OP_HASH160, 0x14]) + payload + bytes([OP_EQUALVERIFY, OP_CHECKSIG])
    elif version in (0x05, 0xC4):  # Mainnet/Testnet P2SH
        return bytes([OP_HASH160, 0x14]) + payload + bytes([OP_EQUAL])

    raise ValueError(f"Unknown address version: {version}")


# Template matching


def is_p2sh_script(script: bytes) -> bool:
    return (
        len(script) == P2SH_SCRIPT_SIZE
        and script[0] == OP_HASH160
        and script[1] == 0x14
        and script[-1] == OP_EQUAL
    )


def is_p2wsh_script(script: bytes) -> bool:
    return len(script) == P2WSH_SCRIPT_SIZE and script[0] == OP_0 and script[1] == 0x20


def is_p2pkh_script(script: bytes) -> bool:
    return (
        len(script) == P2PKH_SCRIPT_SIZE
        and script[:3] == bytes([OP_DUP, OP_HASH160, 0x14])
        and script[-2:] == bytes([OP_EQUALVERIFY, OP_CHECKSIG])
    )


def is_p2wpkh_script(script: bytes) -> bool:
    return len(script) == P2WPKH_SCRIPT_SIZE and script[0] == OP_0 and script[1] == 0x14


def get_null_data_payload_size(script: bytes) -> int | None:
    """
    Return the total pushed payload size of a null data script, or None if the
    script is not OP_RETURN followed only by pushes.
    """
    if not script or script[0] != OP_RETURN:
        return None
    try:
        ops = parse_script(script[1:])
    except ScriptDecodeError:
        return None

    size = 0
    for opcode, data in ops:
        if data is not None:
            size += len(data)
        elif not (opcode == OP_1NEGATE or OP_1 <= opcode <= OP_16):
            return None
    return size


def is_multisig_2of3_script(script: bytes) -> bool:
    if len(script) != MULTISIG_2OF3_SCRIPT_SIZE:
        return False
    if script[0] != OP_2 or script[-2] != OP_3 or script[-1] != OP_CHECKMULTISIG:
        return False
    keys = script[1:-2]
    for i in range(3):
        chunk = keys[i * 34 : (i + 1) * 34]
        if chunk[0] != COMPRESSED_PUBKEY_SIZE or not is_compressed_pubkey(chunk[1:]):
            return False
    return True


def is_compressed_pubkey(data: bytes) -> bool:
    return len(data) == COMPRESSED_PUBKEY_SIZE and data[0] in (0x02, 0x03)


def is_signature(data: bytes) -> bool:
    """DER signature with a trailing sighash byte."""
    return (
        MIN_SIGNATURE_SIZE <= len(data) <= MAX_SIGNATURE_SIZE
        and data[0] == 0x30
        and data[1] == len(data) - 3
    )
