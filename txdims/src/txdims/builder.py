"""
Builds funding and spending transactions for 2-of-3 multisig unspents.

Used to produce real signed transactions whose measured size can be compared
against the estimate.
"""

from __future__ import annotations

from dataclasses import dataclass

from txdims.bip32 import HDKey
from txdims.models import OpReturnType, PubKeyHashType, Script2of3Type, UnspentType
from txdims.script import (
    multisig_script,
    null_data_script,
    p2pkh_script,
    p2sh_script,
    p2wpkh_script,
    p2wsh_script,
)
from txdims.signing import sign_multisig_input
from txdims.transaction import Transaction, TxInput, TxOutput

FUNDING_TXID_LE = bytes([0x01] * 32)


@dataclass
class Unspent2of3:
    """Output script of a 2-of-3 unspent plus the scripts needed to spend it."""

    unspent_type: Script2of3Type
    script_pubkey: bytes
    redeem_script: bytes | None = None
    witness_script: bytes | None = None


def create_output_script_2of3(keys: list[HDKey], unspent_type: Script2of3Type) -> Unspent2of3:
    pubkeys = [key.get_public_key_bytes() for key in keys]
    script_2of3 = multisig_script(2, pubkeys)
    p2wsh_output_script = p2wsh_script(script_2of3)

    if unspent_type == Script2of3Type.P2SH:
        redeem_script = script_2of3
        return Unspent2of3(unspent_type, p2sh_script(redeem_script), redeem_script=redeem_script)
    if unspent_type == Script2of3Type.P2SH_P2WSH:
        return Unspent2of3(
            unspent_type,
            p2sh_script(p2wsh_output_script),
            redeem_script=p2wsh_output_script,
            witness_script=script_2of3,
        )
    if unspent_type == Script2of3Type.P2WSH:
        return Unspent2of3(unspent_type, p2wsh_output_script, witness_script=script_2of3)

    raise ValueError(f"Unknown multisig output type {unspent_type}")


def create_script_pubkey(keys: list[HDKey], unspent_type: UnspentType) -> bytes:
    """
    Create the scriptPubKey of an output of the given type.

    Args:
        keys: Keys for the multisig script; single-key types use the first key
        unspent_type: Any unspent type
    """
    if isinstance(unspent_type, Script2of3Type):
        return create_output_script_2of3(keys, unspent_type).script_pubkey

    if isinstance(unspent_type, OpReturnType):
        return null_data_script(bytes([0x01] * unspent_type.size))

    pubkey = keys[0].get_public_key_bytes()
    if unspent_type == PubKeyHashType.P2PKH:
        return p2pkh_script(pubkey)
    if unspent_type == PubKeyHashType.P2WPKH:
        return p2wpkh_script(pubkey)

    raise ValueError(f"Unsupported output type {unspent_type}")


def create_funding_tx(unspents: list[Unspent2of3], value: int) -> Transaction:
    """A transaction paying value to each unspent, in order."""
    return Transaction(
        inputs=[TxInput(FUNDING_TXID_LE, 0)],
        outputs=[TxOutput(value, unspent.script_pubkey) for unspent in unspents],
    )


def create_spend_tx(
    funding_tx: Transaction, output_scripts: list[bytes], value: int, locktime: int = 0
) -> Transaction:
    """An unsigned transaction spending every output of funding_tx."""
    txid_le = bytes.fromhex(funding_tx.txid())[::-1]
    return Transaction(
        inputs=[TxInput(txid_le, vout) for vout in range(len(funding_tx.outputs))],
        outputs=[TxOutput(value, script) for script in output_scripts],
        locktime=locktime,
    )


def sign_2of3_inputs(
    tx: Transaction, unspents: list[Unspent2of3], keys: list[HDKey], value: int
) -> Transaction:
    """Sign input i for unspents[i] with the first two keys, in place. Returns tx."""
    signing_keys = [key.private_key for key in keys[:2]]
    for i, unspent in enumerate(unspents):
        sign_multisig_input(
            tx,
            i,
            signing_keys,
            value,
            redeem_script=unspent.redeem_script,
            witness_script=unspent.witness_script,
        )
    return tx
