"""
Tests for the draft builder.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from dcrdraft.address import AddressKind, NetworkType, decode_address, pay_to_addr_script
from dcrdraft.builder import DraftBuilder
from dcrdraft.config import FeePolicy
from dcrdraft.errors import (
    DuplicateReferenceError,
    InsufficientFundsError,
    InvalidAddressError,
    InvalidAmountError,
    InvalidChangeAddressError,
    MismatchedArgumentsError,
    UnsupportedAddressError,
    UtxoNotFoundError,
)
from dcrdraft.models import BuildRequest, TransactionType, UtxoReference
from dcrdraft.wire import MsgTx
from tests.conftest import FakeWallet, SeededRandomSource, make_address, make_txid


@pytest.fixture
def builder(wallet: FakeWallet, random_source: SeededRandomSource) -> DraftBuilder:
    return DraftBuilder(wallet, random_source=random_source)


def half_request(ref: UtxoReference, dest_address: str) -> BuildRequest:
    """Send 0.5 DCR from a single credit."""
    return BuildRequest(utxos=[ref], destinations=[(dest_address, "0.5")])


class TestBuild:
    """End-to-end builds against an in-memory wallet."""

    @pytest.mark.asyncio
    async def test_single_input_with_change(
        self, wallet: FakeWallet, builder: DraftBuilder, dest_address: str
    ) -> None:
        ref = wallet.add_credit(100_000_000)
        result = await builder.build(half_request(ref, dest_address))

        assert result.fee == 2530
        assert result.estimated_size == 253
        assert result.change_amount == 49_997_470
        assert result.change_address == wallet.change_address
        assert result.total_input == 100_000_000
        assert result.total_output == 50_000_000
        assert wallet.derived_accounts == ["default"]

        tx = MsgTx.deserialize(result.unsigned_bytes)
        assert len(tx.tx_in) == 1
        assert tx.tx_in[0].txid == ref.txid
        assert tx.tx_in[0].amount == 100_000_000
        assert tx.tx_in[0].signature_script == b""
        assert [out.value for out in tx.tx_out] == [50_000_000, 49_997_470]
        change = decode_address(wallet.change_address, NetworkType.MAINNET)
        assert tx.tx_out[1].pk_script == pay_to_addr_script(change)
        assert result.unsigned_hex == result.tx.serialize().hex()

    @pytest.mark.asyncio
    async def test_no_change_when_leftover_is_dust(
        self, wallet: FakeWallet, builder: DraftBuilder, dest_address: str
    ) -> None:
        ref = wallet.add_credit(50_004_300)
        result = await builder.build(half_request(ref, dest_address))

        assert result.change_amount == 0
        assert result.change_address is None
        assert result.fee == 4300
        assert len(result.tx.tx_out) == 1
        assert result.summary().endswith("Zero change.")

    @pytest.mark.asyncio
    async def test_insufficient_funds(
        self, wallet: FakeWallet, builder: DraftBuilder, dest_address: str
    ) -> None:
        ref = wallet.add_credit(50_004_169)
        with pytest.raises(InsufficientFundsError):
            await builder.build(half_request(ref, dest_address))

    @pytest.mark.asyncio
    async def test_multiple_destinations_and_inputs(
        self, wallet: FakeWallet, builder: DraftBuilder
    ) -> None:
        refs = [wallet.add_credit(amount) for amount in (10_000_000, 20_000_000, 30_000_000)]
        p2sh = make_address("multisig", kind=AddressKind.P2SH)
        request = BuildRequest(
            utxos=refs,
            destinations=[(make_address("a"), "0.1"), (p2sh, "0.2")],
        )
        result = await builder.build(request)

        assert sorted(tx_in.txid for tx_in in result.tx.tx_in) == sorted(r.txid for r in refs)
        assert [out.value for out in result.tx.tx_out[:2]] == [10_000_000, 20_000_000]
        assert len(result.tx.tx_out[1].pk_script) == 23
        assert result.total_output == 30_000_000
        assert result.total_input == sum(out.value for out in result.tx.tx_out) + result.fee

    @pytest.mark.asyncio
    async def test_stake_inputs(
        self, wallet: FakeWallet, builder: DraftBuilder, dest_address: str
    ) -> None:
        ticket = wallet.add_credit(30_000_000, tx_type=TransactionType.REVOCATION)
        regular = wallet.add_credit(30_000_000)
        result = await builder.build(
            BuildRequest(utxos=[ticket, regular], destinations=[(dest_address, "0.5")])
        )

        trees = {tx_in.txid: tx_in.tree for tx_in in result.tx.tx_in}
        assert trees == {ticket.txid: 1, regular.txid: 0}

    @pytest.mark.asyncio
    async def test_same_result_up_to_input_order(
        self, wallet: FakeWallet, dest_address: str
    ) -> None:
        refs = [wallet.add_credit(10_000_000 + i) for i in range(6)]
        request = BuildRequest(utxos=refs, destinations=[(dest_address, "0.3")])

        first = await DraftBuilder(wallet, random_source=SeededRandomSource(1)).build(request)
        second = await DraftBuilder(wallet, random_source=SeededRandomSource(2)).build(request)

        assert first.fee == second.fee
        assert first.change_amount == second.change_amount
        assert first.tx.tx_out == second.tx.tx_out
        key = lambda tx_in: (tx_in.txid, tx_in.vout)  # noqa: E731
        assert sorted(first.tx.tx_in, key=key) == sorted(second.tx.tx_in, key=key)

    @pytest.mark.asyncio
    async def test_custom_policy(self, wallet: FakeWallet, dest_address: str) -> None:
        ref = wallet.add_credit(100_000_000)
        builder = DraftBuilder(
            wallet,
            policy=FeePolicy(fee_rate_per_kb=20_000),
            random_source=SeededRandomSource(),
        )
        result = await builder.build(half_request(ref, dest_address))

        assert builder.policy.fee_rate_per_kb == 20_000
        assert result.fee == 5060
        assert result.dust_limit == 4000


class TestBuildFailures:
    """Builds that abort before producing a draft."""

    @pytest.mark.asyncio
    async def test_no_utxos(self, builder: DraftBuilder, dest_address: str) -> None:
        with pytest.raises(MismatchedArgumentsError):
            await builder.build(BuildRequest(utxos=[], destinations=[(dest_address, "1")]))

    @pytest.mark.asyncio
    async def test_no_destinations(self, wallet: FakeWallet, builder: DraftBuilder) -> None:
        ref = wallet.add_credit(1_000)
        with pytest.raises(MismatchedArgumentsError):
            await builder.build(BuildRequest(utxos=[ref], destinations=[]))

    @pytest.mark.asyncio
    async def test_missing_utxo_skips_fee_arithmetic(
        self, builder: DraftBuilder, dest_address: str
    ) -> None:
        missing = UtxoReference(txid=make_txid(404), vout=0)
        with patch.object(builder.fee_engine, "decide") as decide:
            with pytest.raises(UtxoNotFoundError):
                await builder.build(
                    BuildRequest(utxos=[missing], destinations=[(dest_address, "1")])
                )
        decide.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_utxo(
        self, wallet: FakeWallet, builder: DraftBuilder, dest_address: str
    ) -> None:
        ref = wallet.add_credit(100_000_000)
        with pytest.raises(DuplicateReferenceError):
            await builder.build(BuildRequest(utxos=[ref, ref], destinations=[(dest_address, "1")]))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "destination, error",
        [
            ("DsNotAnAddress", InvalidAddressError),
            (make_address("x", network=NetworkType.TESTNET), InvalidAddressError),
            (make_address("x", kind=AddressKind.P2PKH_SCHNORR), UnsupportedAddressError),
        ],
    )
    async def test_bad_destination(
        self, wallet: FakeWallet, builder: DraftBuilder, destination: str, error: type
    ) -> None:
        ref = wallet.add_credit(100_000_000)
        with pytest.raises(error):
            await builder.build(BuildRequest(utxos=[ref], destinations=[(destination, "0.5")]))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-0.5", "lots"])
    async def test_bad_amount(
        self, wallet: FakeWallet, builder: DraftBuilder, dest_address: str, amount: str
    ) -> None:
        ref = wallet.add_credit(100_000_000)
        with pytest.raises(InvalidAmountError):
            await builder.build(BuildRequest(utxos=[ref], destinations=[(dest_address, amount)]))


class TestChangeAddress:
    """Tests for settling the change address."""

    @pytest.mark.asyncio
    async def test_explicit_owned_address(
        self, wallet: FakeWallet, builder: DraftBuilder, dest_address: str
    ) -> None:
        own = make_address("my-change")
        wallet.owned_addresses.add(own)
        ref = wallet.add_credit(100_000_000)

        result = await builder.build(
            BuildRequest(utxos=[ref], destinations=[(dest_address, "0.5")], change_address=own)
        )

        assert result.change_address == own
        assert wallet.derived_accounts == []

    @pytest.mark.asyncio
    async def test_not_owned(
        self, wallet: FakeWallet, builder: DraftBuilder, dest_address: str
    ) -> None:
        ref = wallet.add_credit(100_000_000)
        request = BuildRequest(
            utxos=[ref],
            destinations=[(dest_address, "0.5")],
            change_address=make_address("stranger"),
        )
        with pytest.raises(InvalidChangeAddressError, match="not owned"):
            await builder.build(request)
        # settled before any lookups
        assert wallet.lookups == []

    @pytest.mark.asyncio
    async def test_malformed(
        self, wallet: FakeWallet, builder: DraftBuilder, dest_address: str
    ) -> None:
        ref = wallet.add_credit(100_000_000)
        request = BuildRequest(
            utxos=[ref], destinations=[(dest_address, "0.5")], change_address="garbage"
        )
        with pytest.raises(InvalidChangeAddressError):
            await builder.build(request)

    @pytest.mark.asyncio
    async def test_derived_from_account(
        self, wallet: FakeWallet, builder: DraftBuilder, dest_address: str
    ) -> None:
        ref = wallet.add_credit(100_000_000)
        await builder.build(
            BuildRequest(
                utxos=[ref], destinations=[(dest_address, "0.5")], change_account="savings"
            )
        )
        assert wallet.derived_accounts == ["savings"]

    @pytest.mark.asyncio
    async def test_derived_address_for_wrong_network(
        self, wallet: FakeWallet, builder: DraftBuilder, dest_address: str
    ) -> None:
        wallet.change_address = make_address("change", network=NetworkType.SIMNET)
        ref = wallet.add_credit(100_000_000)
        with pytest.raises(InvalidChangeAddressError, match="derived"):
            await builder.build(half_request(ref, dest_address))
