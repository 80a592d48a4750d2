"""
Tests for output script and input classification.
"""

from __future__ import annotations

import pytest

from txdims.builder import (
    create_funding_tx,
    create_output_script_2of3,
    create_spend_tx,
    sign_2of3_inputs,
)
from txdims.classify import (
    AmbiguousUnsignedInputError,
    ClassificationError,
    UnrecognizedInputError,
    UnrecognizedScriptError,
    classify_input,
    classify_output_script,
)
from txdims.dimensions import Dimensions
from txdims.models import OpReturnType, PubKeyHashType, Script2of3Type
from txdims.script import (
    multisig_script,
    null_data_script,
    p2pkh_script,
    p2sh_script,
    p2wpkh_script,
    p2wsh_script,
    push_data,
)
from txdims.signing import sign_pubkeyhash_input
from txdims.transaction import Transaction, TxInput, TxOutput

MOCK_SIG = bytes.fromhex("3045" + "00" * 69) + b"\x01"  # 72 bytes, DER shaped


def _signed_2of3_input(keys, unspent_type: Script2of3Type) -> TxInput:
    unspent = create_output_script_2of3(keys, unspent_type)
    funding_tx = create_funding_tx([unspent], 10_000)
    tx = create_spend_tx(funding_tx, [p2wpkh_script(keys[0].get_public_key_bytes())], 9_000)
    sign_2of3_inputs(tx, [unspent], keys, 10_000)
    return tx.inputs[0]


def _signed_pubkeyhash_input(key, segwit: bool) -> TxInput:
    tx = Transaction(
        inputs=[TxInput(bytes(32), 0)],
        outputs=[TxOutput(9_000, p2wpkh_script(key.get_public_key_bytes()))],
    )
    sign_pubkeyhash_input(tx, 0, key.private_key, 10_000, segwit=segwit)
    return tx.inputs[0]


class TestClassifyOutputScript:
    def test_p2sh(self, keys):
        redeem = multisig_script(2, [k.get_public_key_bytes() for k in keys])
        assert classify_output_script(p2sh_script(redeem)) == Script2of3Type.P2SH

    def test_p2wsh(self, keys):
        witness_script = multisig_script(2, [k.get_public_key_bytes() for k in keys])
        assert classify_output_script(p2wsh_script(witness_script)) == Script2of3Type.P2WSH

    def test_p2pkh(self, g_pubkey):
        assert classify_output_script(p2pkh_script(g_pubkey)) == PubKeyHashType.P2PKH

    def test_p2wpkh(self, g_pubkey):
        assert classify_output_script(p2wpkh_script(g_pubkey)) == PubKeyHashType.P2WPKH

    @pytest.mark.parametrize("size", [0, 16, 32, 80])
    def test_op_return(self, size):
        script = null_data_script(bytes([0x01] * size))
        assert classify_output_script(script) == OpReturnType(size=size)

    def test_op_return_multiple_pushes(self):
        script = bytes([0x6A]) + push_data(b"\x01" * 4) + push_data(b"\x02" * 6)
        assert classify_output_script(script) == OpReturnType(size=10)

    def test_bare_op_return(self):
        assert classify_output_script(bytes([0x6A])) == OpReturnType(size=0)

    @pytest.mark.parametrize(
        "script",
        [
            b"",
            bytes([0x51, 0x20]) + bytes(32),  # taproot
            bytes([0x00, 0x14]) + bytes(19),  # short witness program
            bytes([0x6A, 0x76]),  # OP_RETURN followed by a non-push
            bytes([0x6A, 0x10]) + bytes(4),  # truncated push
        ],
    )
    def test_unrecognized(self, script):
        with pytest.raises(UnrecognizedScriptError):
            classify_output_script(script)


class TestClassifyInput:
    @pytest.mark.parametrize("unspent_type", list(Script2of3Type))
    def test_signed_2of3(self, keys, unspent_type):
        assert classify_input(_signed_2of3_input(keys, unspent_type)) == unspent_type

    def test_signed_p2pkh(self, keys):
        assert classify_input(_signed_pubkeyhash_input(keys[0], segwit=False)) == (
            PubKeyHashType.P2PKH
        )

    def test_signed_p2wpkh(self, keys):
        assert classify_input(_signed_pubkeyhash_input(keys[0], segwit=True)) == (
            PubKeyHashType.P2WPKH
        )

    def test_partially_signed_p2sh(self, keys):
        redeem = multisig_script(2, [k.get_public_key_bytes() for k in keys])
        script_sig = b"".join(push_data(x) for x in [b"", MOCK_SIG, b"", redeem])
        assert classify_input(TxInput(bytes(32), 0, script_sig)) == Script2of3Type.P2SH

    def test_unsigned(self):
        with pytest.raises(AmbiguousUnsignedInputError):
            classify_input(TxInput(bytes(32), 0))

    def test_p2sh_without_signatures(self, keys):
        redeem = multisig_script(2, [k.get_public_key_bytes() for k in keys])
        script_sig = push_data(b"") + push_data(b"") + push_data(redeem)
        with pytest.raises(UnrecognizedInputError):
            classify_input(TxInput(bytes(32), 0, script_sig))

    def test_p2sh_with_non_multisig_redeem_script(self, keys):
        redeem = multisig_script(1, [k.get_public_key_bytes() for k in keys])
        script_sig = b"".join(push_data(x) for x in [b"", MOCK_SIG, redeem])
        with pytest.raises(UnrecognizedInputError):
            classify_input(TxInput(bytes(32), 0, script_sig))

    def test_uncompressed_pubkey(self):
        script_sig = push_data(MOCK_SIG) + push_data(b"\x04" + bytes(64))
        with pytest.raises(UnrecognizedInputError):
            classify_input(TxInput(bytes(32), 0, script_sig))

    def test_non_push_script_sig(self):
        with pytest.raises(UnrecognizedInputError):
            classify_input(TxInput(bytes(32), 0, bytes([0x76, 0xA9])))

    def test_truncated_script_sig(self):
        with pytest.raises(UnrecognizedInputError):
            classify_input(TxInput(bytes(32), 0, bytes([0x48]) + MOCK_SIG[:10]))

    def test_nested_p2wpkh_not_supported(self, g_pubkey):
        txin = TxInput(
            bytes(32), 0, push_data(p2wpkh_script(g_pubkey)), witness=[MOCK_SIG, g_pubkey]
        )
        with pytest.raises(UnrecognizedInputError):
            classify_input(txin)

    def test_unknown_witness(self):
        txin = TxInput(bytes(32), 0, witness=[b"\x01" * 64])
        with pytest.raises(UnrecognizedInputError):
            classify_input(txin)

    def test_errors_share_base_class(self):
        assert issubclass(UnrecognizedInputError, ClassificationError)
        assert issubclass(UnrecognizedScriptError, ClassificationError)
        assert issubclass(AmbiguousUnsignedInputError, ClassificationError)


class TestFromTransactionErrors:
    def test_unrecognized_output_index(self, keys):
        tx = Transaction(
            inputs=[_signed_2of3_input(keys, Script2of3Type.P2WSH)],
            outputs=[
                TxOutput(1_000, p2wpkh_script(keys[0].get_public_key_bytes())),
                TxOutput(1_000, bytes([0x51, 0x20]) + bytes(32)),
            ],
        )
        with pytest.raises(UnrecognizedScriptError) as exc_info:
            Dimensions.from_transaction(tx)
        assert exc_info.value.index == 1
        assert "Output 1" in str(exc_info.value)

    def test_unrecognized_input_index(self, keys):
        tx = Transaction(
            inputs=[
                _signed_2of3_input(keys, Script2of3Type.P2SH),
                TxInput(bytes(32), 1, bytes([0x76])),
            ],
            outputs=[TxOutput(1_000, p2wpkh_script(keys[0].get_public_key_bytes()))],
        )
        with pytest.raises(UnrecognizedInputError) as exc_info:
            Dimensions.from_transaction(tx)
        assert exc_info.value.index == 1

    def test_unsigned_without_assumption(self):
        tx = Transaction(inputs=[TxInput(bytes(32), 0), TxInput(bytes(32), 1)])
        with pytest.raises(AmbiguousUnsignedInputError) as exc_info:
            Dimensions.from_transaction(tx)
        assert exc_info.value.index == 0

    @pytest.mark.parametrize(
        "assumption",
        ["p2pkh", "bogus", PubKeyHashType.P2WPKH, [Script2of3Type.P2SH, Script2of3Type.P2WSH]],
    )
    def test_unsupported_assumption(self, assumption):
        tx = Transaction(inputs=[TxInput(bytes(32), 0)])
        with pytest.raises(AmbiguousUnsignedInputError):
            Dimensions.from_transaction(tx, assume_unsigned=assumption)

    def test_assumption_by_value(self):
        tx = Transaction(inputs=[TxInput(bytes(32), 0)])
        assert Dimensions.from_transaction(tx, assume_unsigned="p2shP2wsh") == Dimensions(
            n_p2sh_p2wsh_inputs=1
        )

    def test_assumption_ignored_for_signed(self, keys):
        signed = _signed_2of3_input(keys, Script2of3Type.P2SH)
        tx = Transaction(inputs=[signed])
        assert Dimensions.from_transaction(tx, assume_unsigned="bogus") == Dimensions(
            n_p2sh_inputs=1
        )

    def test_mixed_signed_and_unsigned(self, keys):
        signed = _signed_2of3_input(keys, Script2of3Type.P2SH)
        tx = Transaction(inputs=[signed, TxInput(bytes(32), 1), TxInput(bytes(32), 2)])
        dims = Dimensions.from_transaction(tx, assume_unsigned=Dimensions.ASSUME_P2WSH)
        assert dims == Dimensions(n_p2sh_inputs=1, n_p2wsh_inputs=2)
