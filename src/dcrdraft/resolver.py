"""
Resolution of caller-supplied UTXO references into spendable credits.
"""

from __future__ import annotations

from loguru import logger

from dcrdraft.backends.base import WalletBackend
from dcrdraft.constants import P2PKH_SCRIPT_LEN, STAKE_P2PKH_SCRIPT_LEN
from dcrdraft.errors import (
    DuplicateReferenceError,
    UnsupportedScriptError,
    UtxoNotFoundError,
)
from dcrdraft.models import Credit, TreeKind, UtxoReference

EXPECTED_SCRIPT_LEN = {
    TreeKind.REGULAR: P2PKH_SCRIPT_LEN,
    TreeKind.STAKE: STAKE_P2PKH_SCRIPT_LEN,
}


def check_script_shape(ref: UtxoReference, output_script: bytes, tree: TreeKind) -> None:
    """
    Only pay-to-pubkey-hash outputs can be spent: 25 byte scripts in the
    regular tree, 26 byte (stake-tagged) scripts in the stake tree.
    """
    expected = EXPECTED_SCRIPT_LEN[tree]
    if len(output_script) != expected:
        raise UnsupportedScriptError(
            f"Output {ref} has a {len(output_script)} byte script in the "
            f"{tree.name.lower()} tree (expected {expected}); only P2PKH outputs are supported"
        )


class CreditResolver:
    """Looks up UTXO references in the wallet."""

    def __init__(self, backend: WalletBackend):
        self.backend = backend

    async def resolve(self, ref: UtxoReference) -> Credit:
        """
        Resolve a single reference.

        Raises:
            UtxoNotFoundError: The wallet does not own a matching output
            UnsupportedScriptError: The output is not P2PKH
        """
        wallet_tx = await self.backend.get_transaction(ref.txid)
        if wallet_tx is None:
            raise UtxoNotFoundError(f"Transaction not found: {ref.txid}")

        tree = wallet_tx.tx_type.tree
        for credit in wallet_tx.credits:
            if credit.index != ref.vout:
                continue
            check_script_shape(ref, credit.output_script, tree)
            logger.debug(f"Resolved {ref}: {credit.amount} atoms, {tree.name.lower()} tree")
            return Credit(
                ref=ref,
                amount=credit.amount,
                output_script=credit.output_script,
                tree=tree,
            )

        raise UtxoNotFoundError(f"Could not find utxo {ref} in wallet")

    async def resolve_all(self, refs: list[UtxoReference]) -> list[Credit]:
        """Resolve references in the order given."""
        seen: set[UtxoReference] = set()
        for ref in refs:
            if ref in seen:
                raise DuplicateReferenceError(f"Utxo {ref} specified more than once")
            seen.add(ref)

        credits = []
        for ref in refs:
            credits.append(await self.resolve(ref))

        logger.info(
            f"Resolved {len(credits)} credit(s) totalling {sum(c.amount for c in credits)} atoms"
        )
        return credits
