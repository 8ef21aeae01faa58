"""
Draft building data models.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum

from dcrdraft.amount import format_atoms
from dcrdraft.errors import MalformedReferenceError
from dcrdraft.wire import MsgTx, TxIn, TxOut

_TXID_RE = re.compile(r"^[0-9a-fA-F]{64}$")


class TreeKind(IntEnum):
    REGULAR = 0
    STAKE = 1


class TransactionType(str, Enum):
    REGULAR = "regular"
    TICKET = "ticket"
    VOTE = "vote"
    REVOCATION = "revocation"
    COINBASE = "coinbase"

    @property
    def tree(self) -> TreeKind:
        if self in (TransactionType.TICKET, TransactionType.VOTE, TransactionType.REVOCATION):
            return TreeKind.STAKE
        return TreeKind.REGULAR


@dataclass(frozen=True)
class UtxoReference:
    """A caller-supplied output to spend."""

    txid: str
    vout: int

    @classmethod
    def parse(cls, value: str) -> UtxoReference:
        """Parse 'txid:vout'."""
        split = value.strip().split(":")
        if len(split) != 2:
            raise MalformedReferenceError(f"Invalid utxo {value!r}: expected txid:vout")

        txid, vout_str = split
        if not _TXID_RE.match(txid):
            raise MalformedReferenceError(f"Invalid utxo {value!r}: bad transaction hash")
        if not (vout_str.isascii() and vout_str.isdigit()):
            raise MalformedReferenceError(f"Invalid utxo {value!r}: bad output index")

        vout = int(vout_str)
        if vout > 0xFFFFFFFF:
            raise MalformedReferenceError(f"Invalid utxo {value!r}: output index out of range")
        return cls(txid=txid.lower(), vout=vout)

    def __str__(self) -> str:
        return f"{self.txid}:{self.vout}"


@dataclass(frozen=True)
class Credit:
    """A resolved, spendable output owned by the wallet."""

    ref: UtxoReference
    amount: int
    output_script: bytes
    tree: TreeKind

    def to_tx_in(self) -> TxIn:
        return TxIn(
            txid=self.ref.txid,
            vout=self.ref.vout,
            tree=int(self.tree),
            amount=self.amount,
        )


@dataclass
class Draft:
    """A transaction under construction."""

    tx: MsgTx = field(default_factory=MsgTx)
    change_index: int | None = None

    @property
    def inputs(self) -> list[TxIn]:
        return self.tx.tx_in

    @property
    def outputs(self) -> list[TxOut]:
        return self.tx.tx_out

    @property
    def total_input(self) -> int:
        return sum(tx_in.amount for tx_in in self.tx.tx_in)

    @property
    def total_output(self) -> int:
        return sum(tx_out.value for tx_out in self.tx.tx_out)

    @property
    def change_output(self) -> TxOut | None:
        if self.change_index is None:
            return None
        return self.tx.tx_out[self.change_index]


@dataclass(frozen=True)
class FeeDecision:
    """Outcome of fee estimation and the change decision."""

    fee: int
    estimated_size: int
    change_amount: int
    fee_without_change: int
    fee_with_change: int
    dust_limit: int

    @property
    def has_change(self) -> bool:
        return self.change_amount > 0


@dataclass
class BuildRequest:
    """Everything the caller supplies for one build."""

    utxos: list[UtxoReference]
    destinations: list[tuple[str, str]]
    change_address: str | None = None
    change_account: str = "default"


@dataclass
class BuildResult:
    """A finalized, unsigned transaction and its fee report."""

    tx: MsgTx
    unsigned_bytes: bytes
    fee: int
    estimated_size: int
    change_amount: int
    change_address: str | None
    dust_limit: int
    total_input: int
    total_output: int

    @property
    def unsigned_hex(self) -> str:
        return self.unsigned_bytes.hex()

    def summary(self) -> str:
        lines = [f"Estimated fee: {format_atoms(self.fee)} for {self.estimated_size} bytes"]
        if self.change_amount == 0:
            lines.append("Zero change.")
        else:
            lines.append(
                f"Sent {format_atoms(self.change_amount)} as change to {self.change_address}"
            )
        return "\n".join(lines)
