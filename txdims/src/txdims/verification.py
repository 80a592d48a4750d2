"""
Measure estimation errors against signed transactions.

The estimate is compared against the vsize measured on the serialized
transaction. Outputs must be accounted for exactly; input estimates carry
an error because signature lengths are only known after signing.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from loguru import logger

from txdims.dimensions import Dimensions
from txdims.stats import ErrorTracker
from txdims.transaction import Transaction


@dataclass
class EstimationErrors:
    """Estimate minus measured vsize, for inputs (with overhead) and for outputs."""

    inputs: ErrorTracker = field(default_factory=ErrorTracker)
    outputs: ErrorTracker = field(default_factory=ErrorTracker)


def measure_outputs_vsize(tx: Transaction) -> int:
    return tx.virtual_size() - tx.without_outputs().virtual_size()


def measure_estimation_errors(
    txs: Iterable[Transaction], errors: EstimationErrors | None = None
) -> EstimationErrors:
    """
    Record estimation errors for each signed transaction.

    Args:
        txs: Fully signed transactions
        errors: Trackers to add to, new ones are created if None

    Returns:
        The updated trackers
    """
    if errors is None:
        errors = EstimationErrors()

    for tx in txs:
        dims = Dimensions.from_transaction(tx)

        total_vsize = tx.virtual_size()
        outputs_vsize = measure_outputs_vsize(tx)
        errors.outputs.add(dims.get_outputs_vsize() - outputs_vsize)

        overhead_plus_inputs_vsize = total_vsize - outputs_vsize
        errors.inputs.add(
            dims.get_overhead_vsize() + dims.get_inputs_vsize() - overhead_plus_inputs_vsize
        )

    logger.debug(f"Input vsize errors after {errors.inputs.total} samples: {errors.inputs}")
    return errors
