"""
Weight and virtual size arithmetic.

Per-input costs are derived from the fixed structure of each spend. The only
unknown is the length of each DER signature, so every input type assumes a
representative pair of signature sizes:

    type          scriptSig  witness  sigs      weight  vsize
    p2sh          253        -        72, 71    1184    296
    p2shP2wsh     35         252      71, 71    556     139
    p2wsh         0          254      72, 72    418     105
    p2pkh         107        -        72        592     148
    p2wpkh        0          108      72        272     68
"""

from __future__ import annotations

from txdims.constants import (
    COMPRESSED_PUBKEY_SIZE,
    MULTISIG_2OF3_SCRIPT_SIZE,
    OUTPOINT_SIZE,
    OUTPUT_VALUE_SIZE,
    P2WSH_SCRIPT_SIZE,
    SEGWIT_MARKER_FLAG_SIZE,
    SEQUENCE_SIZE,
    SIGNATURE_SIZE_PADDED_R,
    SIGNATURE_SIZE_UNPADDED_R,
    TX_LOCKTIME_SIZE,
    TX_VERSION_SIZE,
    WITNESS_SCALE_FACTOR,
)
from txdims.models import InputType, PubKeyHashType, Script2of3Type


def varint_size(n: int) -> int:
    """Length of the Bitcoin varint encoding of n."""
    if n < 0xFD:
        return 1
    elif n <= 0xFFFF:
        return 3
    elif n <= 0xFFFFFFFF:
        return 5
    else:
        return 9


def push_opcode_size(n: int) -> int:
    """Bytes taken by the opcode (and length) that push n bytes of data."""
    if n < 0x4C:
        return 1
    elif n <= 0xFF:
        return 2
    elif n <= 0xFFFF:
        return 3
    else:
        return 5


def compute_weight(base_size: int, witness_size: int = 0) -> int:
    return base_size * WITNESS_SCALE_FACTOR + witness_size


def weight_to_vsize(weight: int) -> int:
    """ceil(weight / 4)"""
    return -(-weight // WITNESS_SCALE_FACTOR)


def output_size(script_size: int) -> int:
    """Serialized size of an output whose scriptPubKey is script_size bytes."""
    return OUTPUT_VALUE_SIZE + varint_size(script_size) + script_size


def witness_stack_size(item_sizes: list[int]) -> int:
    return varint_size(len(item_sizes)) + sum(varint_size(s) + s for s in item_sizes)


def input_weight(script_sig_size: int, witness_items: list[int] | None = None) -> int:
    """
    Weight of an input.

    Args:
        script_sig_size: Length of the scriptSig
        witness_items: Lengths of the witness stack items, None if the input has no witness
    """
    base = OUTPOINT_SIZE + SEQUENCE_SIZE + varint_size(script_sig_size) + script_sig_size
    witness = witness_stack_size(witness_items) if witness_items is not None else 0
    return compute_weight(base, witness)


def multisig_stack(signature_sizes: tuple[int, ...]) -> list[int]:
    # OP_0 dummy for the CHECKMULTISIG off-by-one, signatures, then the script
    return [0, *signature_sizes, MULTISIG_2OF3_SCRIPT_SIZE]


def script_sig_size(item_sizes: list[int]) -> int:
    """Size of a push-only scriptSig pushing items of the given sizes."""
    return sum(push_opcode_size(s) + s for s in item_sizes)


def estimate_input_weight(input_type: InputType, signature_sizes: tuple[int, ...]) -> int:
    if input_type == Script2of3Type.P2SH:
        return input_weight(script_sig_size(multisig_stack(signature_sizes)))
    if input_type == Script2of3Type.P2SH_P2WSH:
        return input_weight(
            script_sig_size([P2WSH_SCRIPT_SIZE]), multisig_stack(signature_sizes)
        )
    if input_type == Script2of3Type.P2WSH:
        return input_weight(0, multisig_stack(signature_sizes))
    if input_type == PubKeyHashType.P2PKH:
        return input_weight(script_sig_size([*signature_sizes, COMPRESSED_PUBKEY_SIZE]))
    if input_type == PubKeyHashType.P2WPKH:
        return input_weight(0, [*signature_sizes, COMPRESSED_PUBKEY_SIZE])
    raise ValueError(f"Not a spendable input type: {input_type}")


REPRESENTATIVE_SIGNATURE_SIZES: dict[InputType, tuple[int, ...]] = {
    Script2of3Type.P2SH: (SIGNATURE_SIZE_PADDED_R, SIGNATURE_SIZE_UNPADDED_R),
    Script2of3Type.P2SH_P2WSH: (SIGNATURE_SIZE_UNPADDED_R, SIGNATURE_SIZE_UNPADDED_R),
    Script2of3Type.P2WSH: (SIGNATURE_SIZE_PADDED_R, SIGNATURE_SIZE_PADDED_R),
    PubKeyHashType.P2PKH: (SIGNATURE_SIZE_PADDED_R,),
    PubKeyHashType.P2WPKH: (SIGNATURE_SIZE_PADDED_R,),
}

INPUT_WEIGHTS: dict[InputType, int] = {
    t: estimate_input_weight(t, sizes) for t, sizes in REPRESENTATIVE_SIGNATURE_SIZES.items()
}

INPUT_VSIZES: dict[InputType, int] = {t: weight_to_vsize(w) for t, w in INPUT_WEIGHTS.items()}


def overhead_vsize(n_inputs: int, n_outputs: int, segwit: bool) -> int:
    """Version, locktime, input/output counts and, for segwit, the marker and flag."""
    base = TX_VERSION_SIZE + TX_LOCKTIME_SIZE + varint_size(n_inputs) + varint_size(n_outputs)
    return weight_to_vsize(compute_weight(base, SEGWIT_MARKER_FLAG_SIZE if segwit else 0))
