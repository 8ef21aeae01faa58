"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

import hashlib
import random

import pytest

from dcrdraft.address import Address, AddressKind, NetworkType, decode_address
from dcrdraft.backends.base import (
    AddressValidation,
    WalletBackend,
    WalletCredit,
    WalletTransaction,
)
from dcrdraft.errors import DraftValidationError
from dcrdraft.models import TransactionType, UtxoReference
from dcrdraft.wire import MsgTx


def make_address(
    seed: str,
    kind: AddressKind = AddressKind.P2PKH,
    network: NetworkType = NetworkType.MAINNET,
) -> str:
    """Deterministic address with a 20-byte payload derived from seed."""
    payload = hashlib.sha256(seed.encode()).digest()[:20]
    return Address(network=network, kind=kind, payload=payload).encode()


def p2pkh_script(seed: str = "input") -> bytes:
    payload = hashlib.sha256(seed.encode()).digest()[:20]
    return bytes([0x76, 0xA9, 0x14]) + payload + bytes([0x88, 0xAC])


def stake_p2pkh_script(seed: str = "stake") -> bytes:
    # OP_SSGEN-tagged P2PKH
    return bytes([0xBB]) + p2pkh_script(seed)


def make_txid(n: int) -> str:
    return hashlib.sha256(f"tx-{n}".encode()).hexdigest()


class SeededRandomSource:
    """Deterministic but uniform randomness for permutation tests."""

    def __init__(self, seed: int = 0):
        self._rng = random.Random(seed)

    def randbelow(self, n: int) -> int:
        return self._rng.randrange(n)


class FakeWallet(WalletBackend):
    """In-memory wallet."""

    def __init__(self, network: NetworkType = NetworkType.MAINNET):
        self.network = network
        self.transactions: dict[str, WalletTransaction] = {}
        self.owned_addresses: set[str] = set()
        self.change_address = make_address("change", network=network)
        self.owned_addresses.add(self.change_address)
        self.lookups: list[str] = []
        self.derived_accounts: list[str] = []
        self.signed: list[bytes] = []
        self.published: list[bytes] = []
        self.passphrases: list[bytes] = []
        self.closed = False
        self._next_tx = 0

    def add_credit(
        self,
        amount: int,
        tx_type: TransactionType = TransactionType.REGULAR,
        output_script: bytes | None = None,
        index: int = 0,
    ) -> UtxoReference:
        """Add a wallet transaction with a single credit, returns its reference."""
        if output_script is None:
            if tx_type.tree == 0:
                output_script = p2pkh_script(f"credit-{self._next_tx}")
            else:
                output_script = stake_p2pkh_script(f"credit-{self._next_tx}")
        txid = make_txid(self._next_tx)
        self._next_tx += 1
        self.transactions[txid] = WalletTransaction(
            txid=txid,
            tx_type=tx_type,
            credits=[WalletCredit(index=index, amount=amount, output_script=output_script)],
            confirmations=6,
        )
        return UtxoReference(txid=txid, vout=index)

    async def get_transaction(self, txid: str) -> WalletTransaction | None:
        self.lookups.append(txid)
        return self.transactions.get(txid)

    async def validate_address(self, address: str) -> AddressValidation:
        try:
            decode_address(address, self.network)
        except DraftValidationError:
            return AddressValidation(is_valid=False)
        return AddressValidation(is_valid=True, is_mine=address in self.owned_addresses)

    async def derive_change_address(self, account: str) -> str:
        self.derived_accounts.append(account)
        return self.change_address

    async def sign_transaction(self, unsigned_tx: bytes, passphrase: bytearray) -> bytes:
        self.passphrases.append(bytes(passphrase))
        self.signed.append(unsigned_tx)
        return unsigned_tx

    async def publish_transaction(self, signed_tx: bytes) -> str:
        self.published.append(signed_tx)
        return MsgTx.deserialize(signed_tx).tx_hash()

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def random_source() -> SeededRandomSource:
    return SeededRandomSource(1234)


@pytest.fixture
def dest_address() -> str:
    return make_address("destination")
