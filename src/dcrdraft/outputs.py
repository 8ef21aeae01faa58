"""
Assembly of destination outputs.
"""

from __future__ import annotations

from decimal import Decimal

from loguru import logger

from dcrdraft.address import NetworkType, decode_address, pay_to_addr_script
from dcrdraft.amount import to_atoms
from dcrdraft.wire import TxOut


class OutputAssembler:
    """Turns (address, amount) pairs into outputs, keeping a running total."""

    def __init__(self, network: NetworkType = NetworkType.MAINNET):
        self.network = network
        self.outputs: list[TxOut] = []
        self.total_output = 0

    def add(self, address: str, amount: str | Decimal) -> TxOut:
        """
        Add a destination.

        Args:
            address: Destination address
            amount: Amount in coins

        Raises:
            InvalidAddressError: Address does not decode for the network
            InvalidAmountError: Amount is malformed or out of range
            UnsupportedAddressError: No script template for the address type
        """
        decoded = decode_address(address, self.network)
        atoms = to_atoms(amount)
        pk_script = pay_to_addr_script(decoded)

        out = TxOut(value=atoms, pk_script=pk_script)
        self.outputs.append(out)
        self.total_output += atoms
        logger.debug(f"Output {len(self.outputs) - 1}: {atoms} atoms to {address}")
        return out
