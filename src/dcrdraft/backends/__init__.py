"""
Wallet backend implementations.

Available backends:
- DcrwalletBackend: dcrwallet JSON-RPC over TLS
"""

from dcrdraft.backends.base import (
    AddressValidation,
    WalletBackend,
    WalletCredit,
    WalletTransaction,
)
from dcrdraft.backends.dcrwallet import DcrwalletBackend, RpcError

__all__ = [
    "AddressValidation",
    "DcrwalletBackend",
    "RpcError",
    "WalletBackend",
    "WalletCredit",
    "WalletTransaction",
]
