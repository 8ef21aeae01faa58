"""
Unsigned transaction draft builder.

Builds a transaction from explicitly chosen wallet outputs:
- the change address is settled first (validated or freshly derived)
- every UTXO reference is resolved against the wallet
- destination outputs are assembled
- the fee engine decides on change
- inputs are shuffled and the draft is serialized
"""

from __future__ import annotations

from loguru import logger

from dcrdraft.address import Address, NetworkType, decode_address, pay_to_addr_script
from dcrdraft.backends.base import WalletBackend
from dcrdraft.config import FeePolicy
from dcrdraft.errors import (
    DraftError,
    InvalidAddressError,
    InvalidChangeAddressError,
    MismatchedArgumentsError,
)
from dcrdraft.fees import FeeEngine
from dcrdraft.models import BuildRequest, BuildResult, Draft
from dcrdraft.outputs import OutputAssembler
from dcrdraft.resolver import CreditResolver
from dcrdraft.shuffle import RandomSource, SystemRandomSource, shuffle_inputs


class DraftBuilder:
    """Builds unsigned transactions against a wallet backend."""

    def __init__(
        self,
        backend: WalletBackend,
        network: NetworkType = NetworkType.MAINNET,
        policy: FeePolicy | None = None,
        random_source: RandomSource | None = None,
    ):
        self.backend = backend
        self.network = network
        self.fee_engine = FeeEngine(policy)
        self.resolver = CreditResolver(backend)
        self.random_source = random_source or SystemRandomSource()

    @property
    def policy(self) -> FeePolicy:
        return self.fee_engine.policy

    async def resolve_change_address(self, request: BuildRequest) -> Address:
        """
        Settle the change address before any fee arithmetic.

        An explicit address must decode for the network and belong to the
        wallet. Without one, a fresh internal address is derived from the
        request's change account.
        """
        if request.change_address:
            try:
                address = decode_address(request.change_address, self.network)
            except InvalidAddressError as e:
                raise InvalidChangeAddressError(f"Invalid change address: {e}") from e

            validation = await self.backend.validate_address(request.change_address)
            if not validation.is_valid:
                raise InvalidChangeAddressError(
                    f"Change address {request.change_address} rejected by wallet"
                )
            if not validation.is_mine:
                raise InvalidChangeAddressError(
                    f"Change address {request.change_address} is not owned by the wallet"
                )
            return address

        derived = await self.backend.derive_change_address(request.change_account)
        try:
            return decode_address(derived, self.network)
        except InvalidAddressError as e:
            raise InvalidChangeAddressError(
                f"Wallet derived an invalid change address: {e}"
            ) from e

    async def build(self, request: BuildRequest) -> BuildResult:
        """
        Build an unsigned transaction.

        Args:
            request: UTXOs to spend, destinations and change settings

        Returns:
            The serialized draft and its fee report

        Raises:
            DraftValidationError: Bad references, addresses, amounts or scripts
            InsufficientFundsError: Inputs cannot cover outputs plus fee
            UpstreamError: The wallet failed or timed out
            EntropyUnavailableError: Inputs could not be shuffled
        """
        if not request.utxos:
            raise MismatchedArgumentsError("No utxos specified")
        if not request.destinations:
            raise MismatchedArgumentsError("No destination addresses specified")

        change_address = await self.resolve_change_address(request)
        change_script = pay_to_addr_script(change_address)

        draft = Draft()
        credits = await self.resolver.resolve_all(request.utxos)
        for credit in credits:
            draft.tx.add_tx_in(credit.to_tx_in())

        assembler = OutputAssembler(self.network)
        for address, amount in request.destinations:
            draft.tx.add_tx_out(assembler.add(address, amount))

        decision = self.fee_engine.apply(draft, change_script)

        shuffle_inputs(draft.tx.tx_in, self.random_source)

        total_input = draft.total_input
        total_output = draft.total_output
        if total_input != total_output + decision.fee or decision.fee < 0:
            raise DraftError(
                f"Draft does not balance: inputs {total_input}, outputs {total_output}, "
                f"fee {decision.fee}"
            )

        unsigned_bytes = draft.tx.serialize()
        logger.info(
            f"Built draft with {len(draft.inputs)} input(s) and {len(draft.outputs)} output(s), "
            f"{len(unsigned_bytes)} bytes unsigned"
        )

        return BuildResult(
            tx=draft.tx,
            unsigned_bytes=unsigned_bytes,
            fee=decision.fee,
            estimated_size=decision.estimated_size,
            change_amount=decision.change_amount,
            change_address=change_address.encode() if decision.has_change else None,
            dust_limit=decision.dust_limit,
            total_input=total_input,
            total_output=assembler.total_output,
        )
