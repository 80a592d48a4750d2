"""
Transaction signing for 2-of-3 multisig and single-key inputs.

Legacy inputs use the original sighash algorithm, segwit inputs BIP143.
Only SIGHASH_ALL is supported.
"""

from __future__ import annotations

import struct

from coincurve import PrivateKey

from txdims.constants import SIGHASH_ALL
from txdims.script import p2pkh_script, push_data
from txdims.transaction import Transaction, TxInput, encode_varint, hash256, serialize_output


class TransactionSigningError(Exception):
    pass


def compute_sighash_legacy(
    tx: Transaction,
    input_index: int,
    script_code: bytes,
    sighash_type: int = SIGHASH_ALL,
) -> bytes:
    if input_index >= len(tx.inputs):
        raise TransactionSigningError("Input index out of range")

    # Every scriptSig is blanked except the one being signed, which is replaced by the scriptCode
    stripped = Transaction(
        inputs=[
            TxInput(inp.txid_le, inp.vout, script_code if i == input_index else b"", inp.sequence)
            for i, inp in enumerate(tx.inputs)
        ],
        outputs=tx.outputs,
        version=tx.version,
        locktime=tx.locktime,
    )
    preimage = stripped.serialize(include_witness=False) + struct.pack("<I", sighash_type)
    return hash256(preimage)


def compute_sighash_segwit(
    tx: Transaction,
    input_index: int,
    script_code: bytes,
    value: int,
    sighash_type: int = SIGHASH_ALL,
) -> bytes:
    if input_index >= len(tx.inputs):
        raise TransactionSigningError("Input index out of range")

    hash_prevouts = hash256(
        b"".join(inp.txid_le + struct.pack("<I", inp.vout) for inp in tx.inputs)
    )
    hash_sequence = hash256(b"".join(struct.pack("<I", inp.sequence) for inp in tx.inputs))
    hash_outputs = hash256(b"".join(serialize_output(out) for out in tx.outputs))

    target_input = tx.inputs[input_index]

    preimage = (
        struct.pack("<I", tx.version)
        + hash_prevouts
        + hash_sequence
        + target_input.txid_le
        + struct.pack("<I", target_input.vout)
        + encode_varint(len(script_code))
        + script_code
        + struct.pack("<Q", value)
        + struct.pack("<I", target_input.sequence)
        + hash_outputs
        + struct.pack("<I", tx.locktime)
        + struct.pack("<I", sighash_type)
    )

    return hash256(preimage)


def sign_digest(private_key: PrivateKey, sighash: bytes, sighash_type: int = SIGHASH_ALL) -> bytes:
    """DER-encoded low-S signature with the sighash type byte appended."""
    # The sighash is already SHA256d, so coincurve must not hash it again
    return private_key.sign(sighash, hasher=None) + bytes([sighash_type])


def sign_multisig_input(
    tx: Transaction,
    input_index: int,
    private_keys: list[PrivateKey],
    value: int,
    redeem_script: bytes | None = None,
    witness_script: bytes | None = None,
) -> None:
    """
    Sign a multisig input in place and set its scriptSig and witness.

    The private keys must be given in the order of their public keys in the
    multisig script.

    Args:
        tx: Transaction to sign
        input_index: Index of the input to sign
        private_keys: Signing keys
        value: Value of the output being spent (needed for segwit)
        redeem_script: P2SH redeem script, None for native P2WSH
        witness_script: Witness script, None for legacy P2SH
    """
    if input_index >= len(tx.inputs):
        raise TransactionSigningError("Input index out of range")
    if not private_keys:
        raise TransactionSigningError("No signing keys given")

    txin = tx.inputs[input_index]

    if witness_script is not None:
        sighash = compute_sighash_segwit(tx, input_index, witness_script, value)
        signatures = [sign_digest(key, sighash) for key in private_keys]
        txin.witness = [b"", *signatures, witness_script]
        txin.script_sig = push_data(redeem_script) if redeem_script is not None else b""
    elif redeem_script is not None:
        sighash = compute_sighash_legacy(tx, input_index, redeem_script)
        signatures = [sign_digest(key, sighash) for key in private_keys]
        txin.script_sig = b"".join(push_data(item) for item in [b"", *signatures, redeem_script])
        txin.witness = []
    else:
        raise TransactionSigningError("Multisig input needs a redeem script or a witness script")


def sign_pubkeyhash_input(
    tx: Transaction,
    input_index: int,
    private_key: PrivateKey,
    value: int,
    segwit: bool,
) -> None:
    """Sign a P2PKH (segwit=False) or P2WPKH (segwit=True) input in place."""
    if input_index >= len(tx.inputs):
        raise TransactionSigningError("Input index out of range")

    pubkey = private_key.public_key.format(compressed=True)
    # For P2WPKH, the BIP143 scriptCode is the P2PKH script
    script_code = p2pkh_script(pubkey)
    txin = tx.inputs[input_index]

    if segwit:
        sighash = compute_sighash_segwit(tx, input_index, script_code, value)
        txin.witness = [sign_digest(private_key, sighash), pubkey]
        txin.script_sig = b""
    else:
        sighash = compute_sighash_legacy(tx, input_index, script_code)
        txin.script_sig = push_data(sign_digest(private_key, sighash)) + push_data(pubkey)
        txin.witness = []
