"""
Transaction dimensions: additive counts from which the virtual size is estimated.

A Dimensions value counts inputs per input type and accumulates the number and
serialized size of outputs. Values are immutable; partial descriptions are
merged with Dimensions.sum() or Dimensions.plus().

Example:
    >>> dims = Dimensions.sum({"n_p2sh_inputs": 2}, Dimensions.from_output_type(PubKeyHashType.P2WPKH))
    >>> dims.get_vsize()
    633
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from loguru import logger
from pydantic import BaseModel, Field

from txdims.classify import (
    AmbiguousUnsignedInputError,
    UnrecognizedInputError,
    UnrecognizedScriptError,
    classify_input,
    classify_output_script,
)
from txdims.constants import (
    P2PKH_SCRIPT_SIZE,
    P2SH_SCRIPT_SIZE,
    P2WPKH_SCRIPT_SIZE,
    P2WSH_SCRIPT_SIZE,
)
from txdims.models import (
    SEGWIT_INPUT_TYPES,
    InputType,
    OpReturnType,
    PubKeyHashType,
    Script2of3Type,
    UnspentType,
)
from txdims.script import UnsupportedAddressError, address_to_script, null_data_script
from txdims.sizes import INPUT_VSIZES, output_size, overhead_vsize
from txdims.transaction import Transaction, TxInput, TxOutput

INPUT_COUNT_FIELDS: dict[InputType, str] = {
    Script2of3Type.P2SH: "n_p2sh_inputs",
    Script2of3Type.P2SH_P2WSH: "n_p2sh_p2wsh_inputs",
    Script2of3Type.P2WSH: "n_p2wsh_inputs",
    PubKeyHashType.P2PKH: "n_p2pkh_inputs",
    PubKeyHashType.P2WPKH: "n_p2wpkh_inputs",
}

OUTPUT_SCRIPT_SIZES: dict[InputType, int] = {
    Script2of3Type.P2SH: P2SH_SCRIPT_SIZE,
    Script2of3Type.P2SH_P2WSH: P2SH_SCRIPT_SIZE,
    Script2of3Type.P2WSH: P2WSH_SCRIPT_SIZE,
    PubKeyHashType.P2PKH: P2PKH_SCRIPT_SIZE,
    PubKeyHashType.P2WPKH: P2WPKH_SCRIPT_SIZE,
}


def _resolve_assumption(assume_unsigned: Any, index: int) -> Script2of3Type:
    if assume_unsigned is None:
        raise AmbiguousUnsignedInputError(
            f"Input {index} is unsigned; pass assume_unsigned to classify unsigned inputs",
            index=index,
        )
    if isinstance(assume_unsigned, Script2of3Type):
        return assume_unsigned
    if isinstance(assume_unsigned, str):
        try:
            return Script2of3Type(assume_unsigned)
        except ValueError:
            pass
    raise AmbiguousUnsignedInputError(
        f"Input {index} is unsigned and assume_unsigned={assume_unsigned!r} "
        f"is not one of {[t.value for t in Script2of3Type]}",
        index=index,
    )


class Dimensions(BaseModel):
    """Counts of inputs per type plus output count and size."""

    n_p2sh_inputs: int = Field(default=0, ge=0)
    n_p2sh_p2wsh_inputs: int = Field(default=0, ge=0)
    n_p2wsh_inputs: int = Field(default=0, ge=0)
    n_p2pkh_inputs: int = Field(default=0, ge=0)
    n_p2wpkh_inputs: int = Field(default=0, ge=0)
    n_outputs: int = Field(default=0, ge=0)
    outputs_size: int = Field(default=0, ge=0)

    model_config = {"frozen": True, "extra": "forbid"}

    ASSUME_P2SH: ClassVar[Script2of3Type] = Script2of3Type.P2SH
    ASSUME_P2SH_P2WSH: ClassVar[Script2of3Type] = Script2of3Type.P2SH_P2WSH
    ASSUME_P2WSH: ClassVar[Script2of3Type] = Script2of3Type.P2WSH

    @classmethod
    def sum(cls, *parts: Dimensions | Mapping[str, int]) -> Dimensions:
        """
        Fold partial specifications into a single Dimensions by field-wise addition.

        Args:
            parts: Dimensions instances or mappings of field name to count

        Returns:
            Dimensions with every field summed, absent fields counting as zero

        Raises:
            ValidationError: If a mapping has unknown fields or invalid counts
        """
        totals: dict[str, int] = {}
        for part in parts:
            if not isinstance(part, Dimensions):
                part = cls(**part)
            for name, value in part.model_dump().items():
                totals[name] = totals.get(name, 0) + value
        return cls(**totals)

    def plus(self, other: Dimensions) -> Dimensions:
        return Dimensions.sum(self, other)

    # Accessors

    def get_input_count(self, input_type: InputType) -> int:
        return getattr(self, INPUT_COUNT_FIELDS[input_type])

    @property
    def n_inputs(self) -> int:
        return sum(self.get_input_count(t) for t in INPUT_COUNT_FIELDS)

    @property
    def is_segwit(self) -> bool:
        return any(self.get_input_count(t) > 0 for t in SEGWIT_INPUT_TYPES)

    def get_inputs_vsize(self) -> int:
        return sum(self.get_input_count(t) * INPUT_VSIZES[t] for t in INPUT_COUNT_FIELDS)

    def get_outputs_vsize(self) -> int:
        # Outputs carry no witness data
        return self.outputs_size

    def get_overhead_vsize(self) -> int:
        return overhead_vsize(self.n_inputs, self.n_outputs, self.is_segwit)

    def get_vsize(self) -> int:
        return self.get_overhead_vsize() + self.get_inputs_vsize() + self.get_outputs_vsize()

    # Planning constructors

    @classmethod
    def from_input_type(cls, input_type: UnspentType) -> Dimensions:
        if isinstance(input_type, OpReturnType):
            raise ValueError(f"{input_type} outputs cannot be spent")
        return cls(**{INPUT_COUNT_FIELDS[input_type]: 1})

    @classmethod
    def from_output_type(cls, output_type: UnspentType) -> Dimensions:
        if isinstance(output_type, OpReturnType):
            script_size = len(null_data_script(bytes(output_type.size)))
        else:
            script_size = OUTPUT_SCRIPT_SIZES[output_type]
        return cls(n_outputs=1, outputs_size=output_size(script_size))

    @classmethod
    def from_output_script(cls, script: bytes) -> Dimensions:
        """
        Raises:
            UnrecognizedScriptError: If the script matches no known template
        """
        classify_output_script(script)
        return cls(n_outputs=1, outputs_size=output_size(len(script)))

    @classmethod
    def from_address(cls, address: str) -> Dimensions:
        """
        Raises:
            UnrecognizedScriptError: If the address pays to an unsupported script type
            ValueError: If the address is malformed
        """
        try:
            script = address_to_script(address)
        except UnsupportedAddressError as e:
            raise UnrecognizedScriptError(str(e)) from e
        return cls.from_output_script(script)

    # Classification of concrete transaction data

    @classmethod
    def from_output(cls, txout: TxOutput) -> Dimensions:
        return cls.from_output_script(txout.script)

    @classmethod
    def from_input(cls, txin: TxInput) -> Dimensions:
        """
        Raises:
            UnrecognizedInputError: If the input matches no known spending pattern
            AmbiguousUnsignedInputError: If the input is unsigned
        """
        return cls.from_input_type(classify_input(txin))

    @classmethod
    def from_transaction(
        cls, tx: Transaction, assume_unsigned: Script2of3Type | str | None = None
    ) -> Dimensions:
        """
        Compute the dimensions of a transaction.

        Unsigned inputs cannot be classified from the wire data, so the caller must
        name the type they will have once signed. Signed inputs are always classified.

        Args:
            tx: Signed, partially signed or unsigned transaction
            assume_unsigned: Input type applied to every unsigned input

        Returns:
            Sum of the dimensions of all inputs and outputs

        Raises:
            UnrecognizedScriptError: If an output matches no known template
            UnrecognizedInputError: If a signed input matches no known spending pattern
            AmbiguousUnsignedInputError: If an unsigned input is present and
                assume_unsigned is missing or not a single 2-of-3 type
        """
        parts: list[Dimensions] = []

        for i, txout in enumerate(tx.outputs):
            try:
                parts.append(cls.from_output(txout))
            except UnrecognizedScriptError as e:
                raise UnrecognizedScriptError(f"Output {i}: {e}", index=i) from e

        assumption: Script2of3Type | None = None
        n_unsigned = 0

        for i, txin in enumerate(tx.inputs):
            if not txin.is_signed:
                if assumption is None:
                    assumption = _resolve_assumption(assume_unsigned, i)
                parts.append(cls.from_input_type(assumption))
                n_unsigned += 1
                continue
            try:
                parts.append(cls.from_input(txin))
            except UnrecognizedInputError as e:
                raise UnrecognizedInputError(f"Input {i}: {e}", index=i) from e

        if n_unsigned:
            logger.debug(f"Assumed {assumption.value} for {n_unsigned} unsigned inputs")

        dims = cls.sum(*parts)
        logger.debug(
            f"Transaction dimensions: {len(tx.inputs)} inputs, {len(tx.outputs)} outputs, "
            f"~{dims.get_vsize()} vbytes"
        )
        return dims
