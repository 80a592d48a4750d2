"""
Raw Bitcoin transaction model: parsing, serialization and size measurement.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, field

from txdims.sizes import compute_weight, weight_to_vsize


class TransactionDecodeError(Exception):
    pass


@dataclass
class TxInput:
    """Transaction input."""

    txid_le: bytes
    vout: int
    script_sig: bytes = b""
    sequence: int = 0xFFFFFFFF
    witness: list[bytes] = field(default_factory=list)

    @property
    def is_signed(self) -> bool:
        """An input without scriptSig and witness has not been signed yet."""
        return bool(self.script_sig) or bool(self.witness)


@dataclass
class TxOutput:
    """Transaction output."""

    value: int
    script: bytes


@dataclass
class Transaction:
    inputs: list[TxInput] = field(default_factory=list)
    outputs: list[TxOutput] = field(default_factory=list)
    version: int = 2
    locktime: int = 0

    @property
    def has_witness(self) -> bool:
        return any(inp.witness for inp in self.inputs)

    def serialize(self, include_witness: bool = True) -> bytes:
        """Serialize transaction to bytes. Witness data is only written if any input has some."""
        with_witness = include_witness and self.has_witness

        # Version (4 bytes, little-endian)
        result = struct.pack("<I", self.version)

        # Marker and flag for SegWit
        if with_witness:
            result += bytes([0x00, 0x01])

        result += encode_varint(len(self.inputs))
        for inp in self.inputs:
            result += inp.txid_le
            result += struct.pack("<I", inp.vout)
            result += encode_varint(len(inp.script_sig))
            result += inp.script_sig
            result += struct.pack("<I", inp.sequence)

        result += encode_varint(len(self.outputs))
        for out in self.outputs:
            result += serialize_output(out)

        if with_witness:
            for inp in self.inputs:
                result += encode_varint(len(inp.witness))
                for item in inp.witness:
                    result += encode_varint(len(item))
                    result += item

        result += struct.pack("<I", self.locktime)
        return result

    def hex(self) -> str:
        return self.serialize().hex()

    def txid(self) -> str:
        """Calculate txid (double SHA256 of non-witness data)."""
        return hash256(self.serialize(include_witness=False))[::-1].hex()

    def weight(self) -> int:
        base_size = len(self.serialize(include_witness=False))
        total_size = len(self.serialize())
        return compute_weight(base_size, total_size - base_size)

    def virtual_size(self) -> int:
        return weight_to_vsize(self.weight())

    def without_outputs(self) -> Transaction:
        """Copy of this transaction with the same inputs and no outputs."""
        return Transaction(
            inputs=list(self.inputs), outputs=[], version=self.version, locktime=self.locktime
        )

    @classmethod
    def from_bytes(cls, tx_bytes: bytes) -> Transaction:
        return deserialize_transaction(tx_bytes)

    @classmethod
    def from_hex(cls, tx_hex: str) -> Transaction:
        try:
            tx_bytes = bytes.fromhex(tx_hex)
        except ValueError as e:
            raise TransactionDecodeError(f"Invalid transaction hex: {e}") from e
        return deserialize_transaction(tx_bytes)


def hash256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def encode_varint(value: int) -> bytes:
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + value.to_bytes(2, "little")
    if value <= 0xFFFFFFFF:
        return b"\xfe" + value.to_bytes(4, "little")
    return b"\xff" + value.to_bytes(8, "little")


def read_varint(data: bytes, offset: int) -> tuple[int, int]:
    """Read varint and return (value, new_offset)."""
    first = data[offset]
    offset += 1

    if first < 0xFD:
        return first, offset
    if first == 0xFD:
        value = int.from_bytes(data[offset : offset + 2], "little")
        return value, offset + 2
    if first == 0xFE:
        value = int.from_bytes(data[offset : offset + 4], "little")
        return value, offset + 4
    value = int.from_bytes(data[offset : offset + 8], "little")
    return value, offset + 8


def serialize_output(out: TxOutput) -> bytes:
    return struct.pack("<Q", out.value) + encode_varint(len(out.script)) + out.script


def _read(tx_bytes: bytes, offset: int, size: int) -> tuple[bytes, int]:
    if offset + size > len(tx_bytes):
        raise TransactionDecodeError(f"Unexpected end of data at offset {offset}")
    return tx_bytes[offset : offset + size], offset + size


def deserialize_transaction(tx_bytes: bytes) -> Transaction:
    try:
        offset = 0
        raw, offset = _read(tx_bytes, offset, 4)
        version = struct.unpack("<I", raw)[0]

        marker_flag = False
        if tx_bytes[offset] == 0x00 and tx_bytes[offset + 1] == 0x01:
            marker_flag = True
            offset += 2

        input_count, offset = read_varint(tx_bytes, offset)
        inputs: list[TxInput] = []

        for _ in range(input_count):
            txid_le, offset = _read(tx_bytes, offset, 32)
            raw, offset = _read(tx_bytes, offset, 4)
            vout = struct.unpack("<I", raw)[0]

            script_len, offset = read_varint(tx_bytes, offset)
            script_sig, offset = _read(tx_bytes, offset, script_len)

            raw, offset = _read(tx_bytes, offset, 4)
            sequence = struct.unpack("<I", raw)[0]

            inputs.append(TxInput(txid_le, vout, script_sig, sequence))

        output_count, offset = read_varint(tx_bytes, offset)
        outputs: list[TxOutput] = []

        for _ in range(output_count):
            raw, offset = _read(tx_bytes, offset, 8)
            value = struct.unpack("<Q", raw)[0]

            script_len, offset = read_varint(tx_bytes, offset)
            script, offset = _read(tx_bytes, offset, script_len)

            outputs.append(TxOutput(value, script))

        if marker_flag:
            for inp in inputs:
                stack_count, offset = read_varint(tx_bytes, offset)
                for _ in range(stack_count):
                    item_len, offset = read_varint(tx_bytes, offset)
                    item, offset = _read(tx_bytes, offset, item_len)
                    inp.witness.append(item)

        raw, offset = _read(tx_bytes, offset, 4)
        locktime = struct.unpack("<I", raw)[0]

        if offset != len(tx_bytes):
            raise TransactionDecodeError(f"{len(tx_bytes) - offset} trailing bytes")

        return Transaction(inputs, outputs, version, locktime)

    except TransactionDecodeError:
        raise
    except Exception as e:
        raise TransactionDecodeError(f"Failed to parse transaction: {e}") from e
