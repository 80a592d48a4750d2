"""
Unspent types recognized by the estimator.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Script2of3Type(str, Enum):
    """2-of-3 multisig, differing only in how the multisig script is wrapped."""

    P2SH = "p2sh"
    P2SH_P2WSH = "p2shP2wsh"
    P2WSH = "p2wsh"


class PubKeyHashType(str, Enum):
    P2PKH = "p2pkh"
    P2WPKH = "p2wpkh"


class OpReturnType(BaseModel):
    """Unspendable data carrier output with a payload of `size` bytes."""

    size: int = Field(..., ge=0)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"opReturn({self.size})"


InputType = Script2of3Type | PubKeyHashType
UnspentType = Script2of3Type | PubKeyHashType | OpReturnType

SEGWIT_INPUT_TYPES: frozenset[InputType] = frozenset(
    {Script2of3Type.P2SH_P2WSH, Script2of3Type.P2WSH, PubKeyHashType.P2WPKH}
)
