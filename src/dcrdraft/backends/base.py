"""
Base wallet backend interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import TracebackType

from dcrdraft.models import TransactionType


@dataclass
class WalletCredit:
    """An output of a wallet transaction that pays to the wallet."""

    index: int
    amount: int
    output_script: bytes


@dataclass
class WalletTransaction:
    txid: str
    tx_type: TransactionType
    credits: list[WalletCredit] = field(default_factory=list)
    confirmations: int = 0


@dataclass
class AddressValidation:
    is_valid: bool
    is_mine: bool = False


class WalletBackend(ABC):
    """
    Abstract wallet service interface.

    The builder only ever reads from the wallet (transaction lookup, address
    validation, change address derivation). Signing and publishing are
    invoked by the caller after a draft has been built.
    """

    async def __aenter__(self) -> WalletBackend:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @abstractmethod
    async def get_transaction(self, txid: str) -> WalletTransaction | None:
        """Get a wallet transaction by hash, None if the wallet does not know it"""

    @abstractmethod
    async def validate_address(self, address: str) -> AddressValidation:
        """Check an address is valid and owned by the wallet"""

    @abstractmethod
    async def derive_change_address(self, account: str) -> str:
        """Derive a fresh internal-branch address for the account"""

    @abstractmethod
    async def sign_transaction(self, unsigned_tx: bytes, passphrase: bytearray) -> bytes:
        """Sign all inputs of a transaction, returns the signed serialization"""

    @abstractmethod
    async def publish_transaction(self, signed_tx: bytes) -> str:
        """Publish a signed transaction, returns its hash"""

    async def close(self) -> None:
        """Close backend connection"""
        pass
