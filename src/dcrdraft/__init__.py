"""
dcrdraft - Unsigned Decred transaction builder

Resolves explicitly chosen wallet outputs, sizes the transaction, applies
the fee and dust policy, decides on change and serializes a shuffled,
unsigned transaction for an external signer.
"""

__version__ = "0.1.0"

from dcrdraft.address import Address, AddressKind, NetworkType, decode_address
from dcrdraft.amount import format_atoms, to_atoms
from dcrdraft.builder import DraftBuilder
from dcrdraft.config import FeePolicy, Settings, get_settings
from dcrdraft.errors import (
    BroadcastError,
    DraftError,
    DraftValidationError,
    DuplicateReferenceError,
    EntropyUnavailableError,
    InsufficientFundsError,
    InvalidAddressError,
    InvalidAmountError,
    InvalidChangeAddressError,
    MalformedReferenceError,
    MismatchedArgumentsError,
    SigningError,
    UnsupportedAddressError,
    UnsupportedScriptError,
    UpstreamError,
    UpstreamTimeoutError,
    UtxoNotFoundError,
)
from dcrdraft.fees import FeeEngine
from dcrdraft.models import (
    BuildRequest,
    BuildResult,
    Credit,
    Draft,
    FeeDecision,
    TransactionType,
    TreeKind,
    UtxoReference,
)
from dcrdraft.shuffle import RandomSource, SystemRandomSource, shuffle_inputs
from dcrdraft.wire import MsgTx, TxIn, TxOut

__all__ = [
    "Address",
    "AddressKind",
    "BroadcastError",
    "BuildRequest",
    "BuildResult",
    "Credit",
    "Draft",
    "DraftBuilder",
    "DraftError",
    "DraftValidationError",
    "DuplicateReferenceError",
    "EntropyUnavailableError",
    "FeeDecision",
    "FeeEngine",
    "FeePolicy",
    "InsufficientFundsError",
    "InvalidAddressError",
    "InvalidAmountError",
    "InvalidChangeAddressError",
    "MalformedReferenceError",
    "MismatchedArgumentsError",
    "MsgTx",
    "NetworkType",
    "RandomSource",
    "Settings",
    "SigningError",
    "SystemRandomSource",
    "TransactionType",
    "TreeKind",
    "TxIn",
    "TxOut",
    "UnsupportedAddressError",
    "UnsupportedScriptError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "UtxoNotFoundError",
    "UtxoReference",
    "decode_address",
    "format_atoms",
    "get_settings",
    "shuffle_inputs",
    "to_atoms",
]
