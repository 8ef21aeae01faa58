"""
Fee estimation and change decision.

The final size of a transaction is not known until it is signed. The
estimate assumes every input carries a maximum size signature script
(policy.per_input_sig_overhead bytes), so the fee is always an overestimate.

Change is only created when the leftover after paying the (larger) fee for a
transaction with a change output is strictly above the dust limit. Otherwise
the whole leftover goes to the fee.
"""

from __future__ import annotations

from loguru import logger

from dcrdraft.config import FeePolicy
from dcrdraft.errors import InsufficientFundsError
from dcrdraft.models import Draft, FeeDecision
from dcrdraft.wire import TxOut


class FeeEngine:
    """Applies a fee policy to a draft."""

    def __init__(self, policy: FeePolicy | None = None):
        self.policy = policy or FeePolicy()

    def estimate_signed_size(self, draft: Draft) -> int:
        """Serialized size of the draft once every input is signed (upper bound)."""
        base_size = draft.tx.serialize_size()
        return base_size + len(draft.inputs) * self.policy.per_input_sig_overhead

    def decide(self, draft: Draft) -> FeeDecision:
        """
        Compute fees and decide on change without modifying the draft.

        Raises:
            InsufficientFundsError: Leftover without change is below the dust limit
        """
        policy = self.policy
        total_in = draft.total_input
        total_out = draft.total_output

        estimated_size = self.estimate_signed_size(draft)
        fee_without = policy.fee_for_size(estimated_size)
        fee_with = policy.fee_for_size(estimated_size + policy.change_output_size)
        dust_limit = policy.dust_limit

        logger.debug(
            f"Fee estimate: size={estimated_size} fee_without_change={fee_without} "
            f"fee_with_change={fee_with} dust_limit={dust_limit}"
        )

        if total_in - total_out - fee_without < dust_limit:
            raise InsufficientFundsError(total_in, total_out, dust_limit)

        if total_in - total_out - fee_with > dust_limit:
            return FeeDecision(
                fee=fee_with,
                estimated_size=estimated_size + policy.change_output_size,
                change_amount=total_in - total_out - fee_with,
                fee_without_change=fee_without,
                fee_with_change=fee_with,
                dust_limit=dust_limit,
            )

        return FeeDecision(
            fee=total_in - total_out,
            estimated_size=estimated_size,
            change_amount=0,
            fee_without_change=fee_without,
            fee_with_change=fee_with,
            dust_limit=dust_limit,
        )

    def apply(self, draft: Draft, change_script: bytes) -> FeeDecision:
        """
        Decide on change and append the change output to the draft if needed.

        Args:
            draft: Draft with all inputs and destination outputs
            change_script: Output script paying to the change address

        Returns:
            The fee decision
        """
        decision = self.decide(draft)

        if decision.has_change:
            draft.tx.add_tx_out(TxOut(value=decision.change_amount, pk_script=change_script))
            draft.change_index = len(draft.outputs) - 1
            logger.info(
                f"Adding change output of {decision.change_amount} atoms, fee {decision.fee}"
            )
        else:
            logger.info(f"No change output, fee {decision.fee} absorbs the leftover")

        return decision
