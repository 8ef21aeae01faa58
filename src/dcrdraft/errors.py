"""
Exception hierarchy for draft building.

Every error is terminal for the build that raised it. Each top-level class
carries the process exit status the CLI reports for it.
"""

from __future__ import annotations


class DraftError(Exception):
    """Base class for all draft building failures."""

    exit_code = 1


class DraftValidationError(DraftError):
    """Caller input is wrong; retrying with the same input cannot succeed."""

    exit_code = 2


class MalformedReferenceError(DraftValidationError):
    """A UTXO reference is not of the form txid:vout."""


class DuplicateReferenceError(DraftValidationError):
    """The same UTXO reference was supplied more than once."""


class UtxoNotFoundError(DraftValidationError):
    """No wallet-owned output matches the reference."""


class UnsupportedScriptError(DraftValidationError):
    """The referenced output is not a pay-to-pubkey-hash script."""


class InvalidAddressError(DraftValidationError):
    """An address could not be decoded for the configured network."""


class UnsupportedAddressError(DraftValidationError):
    """No payment script can be produced for the address type."""


class InvalidAmountError(DraftValidationError):
    """An amount is malformed, non-positive or out of range."""


class InvalidChangeAddressError(DraftValidationError):
    """The supplied change address is invalid or not owned by the wallet."""


class MismatchedArgumentsError(DraftValidationError):
    """The request is inconsistent (counts differ, nothing to send, ...)."""


class InsufficientFundsError(DraftError):
    """Inputs cannot cover the outputs plus a fee above the dust limit."""

    exit_code = 3

    def __init__(self, total_input: int, total_output: int, dust_limit: int):
        self.total_input = total_input
        self.total_output = total_output
        self.dust_limit = dust_limit
        super().__init__(
            f"cannot send {total_output} from {total_input} without change "
            f"due to dust limit of {dust_limit}"
        )


class UpstreamError(DraftError):
    """The wallet service failed; retrying may help."""

    exit_code = 4


class UpstreamTimeoutError(UpstreamError):
    """The wallet service did not answer within the configured timeout."""


class SigningError(UpstreamError):
    """The wallet refused or failed to sign the transaction."""


class BroadcastError(UpstreamError):
    """The wallet failed to publish the transaction."""


class EntropyUnavailableError(DraftError):
    """The system randomness source could not be read."""

    exit_code = 5
