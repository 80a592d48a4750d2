"""
Classification of output scripts and signed inputs into unspent types.

Classification is an exhaustive match over the known templates. Anything that
does not match is rejected, since an unknown script invalidates any size
estimate built from it.
"""

from __future__ import annotations

from txdims.models import (
    InputType,
    OpReturnType,
    PubKeyHashType,
    Script2of3Type,
    UnspentType,
)
from txdims.script import (
    ScriptDecodeError,
    get_null_data_payload_size,
    get_push_only_items,
    is_compressed_pubkey,
    is_multisig_2of3_script,
    is_p2pkh_script,
    is_p2sh_script,
    is_p2wpkh_script,
    is_p2wsh_script,
    is_signature,
)
from txdims.transaction import TxInput


class ClassificationError(Exception):
    """Base class for classification failures. index is the input/output index, if known."""

    def __init__(self, message: str, index: int | None = None):
        super().__init__(message)
        self.index = index


class UnrecognizedScriptError(ClassificationError):
    pass


class UnrecognizedInputError(ClassificationError):
    pass


class AmbiguousUnsignedInputError(ClassificationError):
    pass


def classify_output_script(script: bytes) -> UnspentType:
    """
    Determine the unspent type of a scriptPubKey.

    Raises:
        UnrecognizedScriptError: If the script matches no known template
    """
    if is_p2sh_script(script):
        # P2SH-P2WSH outputs look the same as P2SH outputs
        return Script2of3Type.P2SH
    if is_p2wsh_script(script):
        return Script2of3Type.P2WSH
    if is_p2pkh_script(script):
        return PubKeyHashType.P2PKH
    if is_p2wpkh_script(script):
        return PubKeyHashType.P2WPKH

    payload_size = get_null_data_payload_size(script)
    if payload_size is not None:
        return OpReturnType(size=payload_size)

    raise UnrecognizedScriptError(f"Unrecognized output script: {script.hex()}")


def _is_multisig_stack(items: list[bytes]) -> bool:
    """
    OP_0 <sig|placeholder>... <2-of-3 script>

    Partially signed inputs keep empty placeholders for missing signatures.
    """
    if len(items) < 3 or items[0] != b"" or not is_multisig_2of3_script(items[-1]):
        return False
    signatures = items[1:-1]
    if len(signatures) > 3:
        return False
    if not all(s == b"" or is_signature(s) for s in signatures):
        return False
    return any(is_signature(s) for s in signatures)


def _is_pubkeyhash_stack(items: list[bytes]) -> bool:
    return len(items) == 2 and is_signature(items[0]) and is_compressed_pubkey(items[1])


def classify_input(txin: TxInput) -> InputType:
    """
    Determine the unspent type of a signed input from its scriptSig and witness.

    Raises:
        AmbiguousUnsignedInputError: If the input carries neither scriptSig nor witness
        UnrecognizedInputError: If the input matches no known spending pattern
    """
    if not txin.is_signed:
        raise AmbiguousUnsignedInputError("Cannot classify unsigned input")

    try:
        pushes = get_push_only_items(txin.script_sig)
    except ScriptDecodeError as e:
        raise UnrecognizedInputError(f"Malformed scriptSig: {e}") from e

    if pushes is None:
        raise UnrecognizedInputError(f"scriptSig is not push-only: {txin.script_sig.hex()}")

    if txin.witness:
        if not pushes:
            if _is_multisig_stack(txin.witness):
                return Script2of3Type.P2WSH
            if _is_pubkeyhash_stack(txin.witness):
                return PubKeyHashType.P2WPKH
        elif (
            len(pushes) == 1
            and is_p2wsh_script(pushes[0])
            and _is_multisig_stack(txin.witness)
        ):
            return Script2of3Type.P2SH_P2WSH
        raise UnrecognizedInputError(
            f"Unrecognized witness input: {len(pushes)} scriptSig pushes, "
            f"{len(txin.witness)} witness items"
        )

    if _is_multisig_stack(pushes):
        return Script2of3Type.P2SH
    if _is_pubkeyhash_stack(pushes):
        return PubKeyHashType.P2PKH

    raise UnrecognizedInputError(f"Unrecognized scriptSig: {txin.script_sig.hex()}")
