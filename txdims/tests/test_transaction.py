"""
Tests for the raw transaction model.
"""

import pytest

from txdims.transaction import (
    Transaction,
    TransactionDecodeError,
    TxInput,
    TxOutput,
    deserialize_transaction,
    encode_varint,
    hash256,
    read_varint,
)

# A simple P2WPKH transaction (segwit) with one witness item
SEGWIT_TX_HEX = (
    "02000000"  # version
    "0001"  # marker + flag (segwit)
    "01"  # input count
    "0000000000000000000000000000000000000000000000000000000000000000"  # prev txid
    "00000000"  # prev vout
    "00"  # scriptSig length (empty for segwit)
    "ffffffff"  # sequence
    "01"  # output count
    "0000000000000000"  # value (0 sats)
    "16"  # scriptPubKey length
    "0014751e76e8199196d454941c45d1b3a323f1433bd6"  # P2WPKH scriptPubKey
    "01"  # witness stack count for input 0
    "03"  # item length
    "aabbcc"  # item
    "00000000"  # locktime
)

LEGACY_TX_HEX = (
    "01000000"  # version
    "01"  # input count
    "1111111111111111111111111111111111111111111111111111111111111111"  # prev txid
    "01000000"  # prev vout
    "02"  # scriptSig length
    "5152"  # OP_1 OP_2
    "feffffff"  # sequence
    "01"  # output count
    "e803000000000000"  # value (1000 sats)
    "01"  # scriptPubKey length
    "6a"  # OP_RETURN
    "00000000"  # locktime
)


class TestHash256:
    def test_empty_input(self):
        expected = bytes.fromhex("5df6e0e2761359d30a8275058e299fcc0381534545f55cf43e41983f5d4c9456")
        assert hash256(b"") == expected


class TestVarint:
    def test_read(self):
        assert read_varint(bytes([0x05, 0xFF]), 0) == (5, 1)
        assert read_varint(bytes([0xFD, 0x01, 0x00]), 0) == (1, 3)
        assert read_varint(bytes([0xFE, 0x01, 0x00, 0x00, 0x00]), 0) == (1, 5)

    def test_encode(self):
        assert encode_varint(5) == bytes([5])
        assert encode_varint(0x100) == bytes([0xFD, 0x00, 0x01])
        assert encode_varint(0x10000) == bytes([0xFE, 0x00, 0x00, 0x01, 0x00])


class TestDeserialize:
    def test_segwit(self):
        tx = Transaction.from_hex(SEGWIT_TX_HEX)

        assert tx.version == 2
        assert tx.has_witness
        assert len(tx.inputs) == 1
        assert tx.inputs[0].script_sig == b""
        assert tx.inputs[0].witness == [bytes.fromhex("aabbcc")]
        assert tx.inputs[0].sequence == 0xFFFFFFFF
        assert tx.outputs[0].value == 0
        assert len(tx.outputs[0].script) == 22
        assert tx.locktime == 0

    def test_legacy(self):
        tx = Transaction.from_hex(LEGACY_TX_HEX)

        assert tx.version == 1
        assert not tx.has_witness
        assert tx.inputs[0].txid_le == bytes([0x11] * 32)
        assert tx.inputs[0].vout == 1
        assert tx.inputs[0].script_sig == bytes([0x51, 0x52])
        assert tx.inputs[0].sequence == 0xFFFFFFFE
        assert tx.outputs == [TxOutput(1000, bytes([0x6A]))]

    @pytest.mark.parametrize("tx_hex", [SEGWIT_TX_HEX, LEGACY_TX_HEX])
    def test_reserialize(self, tx_hex):
        assert Transaction.from_hex(tx_hex).hex() == tx_hex

    def test_truncated(self):
        with pytest.raises(TransactionDecodeError):
            deserialize_transaction(bytes.fromhex(LEGACY_TX_HEX)[:-6])

    def test_trailing_bytes(self):
        with pytest.raises(TransactionDecodeError):
            Transaction.from_hex(LEGACY_TX_HEX + "00")

    def test_garbage(self):
        with pytest.raises(TransactionDecodeError):
            deserialize_transaction(b"\x00\x01\x02")

    def test_invalid_hex(self):
        with pytest.raises(TransactionDecodeError):
            Transaction.from_hex("zz")


class TestSize:
    def test_legacy_vsize_is_byte_length(self):
        tx = Transaction.from_hex(LEGACY_TX_HEX)
        assert tx.weight() == 4 * len(bytes.fromhex(LEGACY_TX_HEX))
        assert tx.virtual_size() == len(bytes.fromhex(LEGACY_TX_HEX))

    def test_segwit_weight(self):
        tx = Transaction.from_hex(SEGWIT_TX_HEX)
        total = len(bytes.fromhex(SEGWIT_TX_HEX))
        base = len(tx.serialize(include_witness=False))
        # marker, flag, stack count, item length, item
        assert total - base == 2 + 1 + 1 + 3
        assert tx.weight() == 4 * base + 7
        assert tx.virtual_size() == -(-(4 * base + 7) // 4)

    def test_without_outputs(self):
        tx = Transaction.from_hex(SEGWIT_TX_HEX)
        stripped = tx.without_outputs()
        assert stripped.outputs == []
        assert len(tx.outputs) == 1
        assert tx.virtual_size() - stripped.virtual_size() == 8 + 1 + 22

    def test_is_signed(self):
        assert not TxInput(bytes(32), 0).is_signed
        assert TxInput(bytes(32), 0, script_sig=b"\x00").is_signed
        assert TxInput(bytes(32), 0, witness=[b""]).is_signed

    def test_txid_ignores_witness(self):
        tx = Transaction.from_hex(SEGWIT_TX_HEX)
        txid = tx.txid()
        tx.inputs[0].witness = [bytes(72), bytes(33)]
        assert tx.txid() == txid
        assert len(txid) == 64
