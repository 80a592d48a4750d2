"""
txdims - Bitcoin transaction size estimation

Predicts the virtual size of transactions spending 2-of-3 multisig and
single-key inputs from the types of their inputs and outputs.
"""

__version__ = "0.1.0"

from txdims.classify import (
    AmbiguousUnsignedInputError,
    ClassificationError,
    UnrecognizedInputError,
    UnrecognizedScriptError,
    classify_input,
    classify_output_script,
)
from txdims.dimensions import Dimensions
from txdims.models import (
    InputType,
    OpReturnType,
    PubKeyHashType,
    Script2of3Type,
    UnspentType,
)
from txdims.stats import ErrorTracker, InvalidPercentileError
from txdims.transaction import Transaction, TransactionDecodeError, TxInput, TxOutput

__all__ = [
    "AmbiguousUnsignedInputError",
    "ClassificationError",
    "Dimensions",
    "ErrorTracker",
    "InputType",
    "InvalidPercentileError",
    "OpReturnType",
    "PubKeyHashType",
    "Script2of3Type",
    "Transaction",
    "TransactionDecodeError",
    "TxInput",
    "TxOutput",
    "UnrecognizedInputError",
    "UnrecognizedScriptError",
    "UnspentType",
    "classify_input",
    "classify_output_script",
]
