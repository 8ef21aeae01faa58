"""
dcrwallet JSON-RPC wallet backend.
"""

from __future__ import annotations

import ssl
from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from dcrdraft.backends.base import (
    AddressValidation,
    WalletBackend,
    WalletCredit,
    WalletTransaction,
)
from dcrdraft.errors import (
    BroadcastError,
    SigningError,
    UpstreamError,
    UpstreamTimeoutError,
)
from dcrdraft.models import TransactionType
from dcrdraft.wire import MsgTx, WireError

# Timeout for regular RPC calls (seconds)
DEFAULT_RPC_TIMEOUT = 30.0

# Seconds the wallet stays unlocked for signing
UNLOCK_TIMEOUT = 60

# dcrwallet: "No information available about transaction"
RPC_ERR_NO_TX_INFO = -5

# dcrwallet: "Invalid address or key"
RPC_ERR_INVALID_ADDRESS = -4


class RpcError(UpstreamError):
    """The wallet answered with a JSON-RPC error object"""

    def __init__(self, method: str, code: int, message: str):
        self.method = method
        self.code = code
        super().__init__(f"RPC error {code} from {method}: {message}")


class DcrwalletBackend(WalletBackend):
    """
    Wallet backend using dcrwallet's JSON-RPC server.

    dcrwallet serves JSON-RPC over TLS with a self-signed certificate
    (rpc.cert in the wallet's app data directory) and HTTP basic auth.
    """

    def __init__(
        self,
        rpc_url: str = "https://127.0.0.1:9110",
        rpc_user: str = "",
        rpc_password: str = "",
        rpc_cert: Path | None = None,
        timeout: float = DEFAULT_RPC_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.rpc_url = rpc_url.rstrip("/")
        self.timeout = timeout
        if client is None:
            verify: ssl.SSLContext | bool = True
            if rpc_cert is not None:
                try:
                    verify = ssl.create_default_context(cafile=str(rpc_cert))
                except OSError as e:
                    # ssl.SSLError is an OSError too (unparseable PEM)
                    raise UpstreamError(
                        f"Cannot load wallet certificate {rpc_cert}: {e}"
                    ) from e
            client = httpx.AsyncClient(
                timeout=timeout, auth=(rpc_user, rpc_password), verify=verify
            )
        self.client = client
        self._request_id = 0

    async def _rpc_call(self, method: str, params: list | None = None) -> Any:
        """
        Make a JSON-RPC call to dcrwallet.

        Args:
            method: RPC method name
            params: Method parameters

        Returns:
            RPC result

        Raises:
            RpcError: On RPC errors
            UpstreamTimeoutError: When the call exceeds the client timeout
            UpstreamError: On connection/HTTP errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "1.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        logger.debug(f"RPC call: {method}")
        try:
            response = await self.client.post(self.rpc_url, json=payload)
            # dcrwallet reports RPC errors with HTTP 500 and a JSON body
            if response.status_code != 500:
                response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"RPC call timed out: {method} - {e}")
            raise UpstreamTimeoutError(
                f"Wallet call {method} timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise UpstreamError(f"Wallet call {method} failed: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"Wallet call {method} returned invalid JSON") from e

        if data.get("error"):
            error_info = data["error"]
            raise RpcError(
                method,
                error_info.get("code", 0),
                error_info.get("message", str(error_info)),
            )

        return data.get("result")

    async def get_transaction(self, txid: str) -> WalletTransaction | None:
        try:
            result = await self._rpc_call("gettransaction", [txid])
        except RpcError as e:
            if e.code == RPC_ERR_NO_TX_INFO:
                return None
            raise

        if not result or not result.get("hex"):
            return None

        try:
            tx = MsgTx.deserialize(bytes.fromhex(result["hex"]))
        except (ValueError, WireError) as e:
            raise UpstreamError(f"Wallet returned an unparseable transaction {txid}: {e}") from e

        raw_type = result.get("type") or result.get("txtype") or "regular"
        try:
            tx_type = TransactionType(raw_type)
        except ValueError:
            logger.warning(f"Unknown transaction type {raw_type!r} for {txid}, assuming regular")
            tx_type = TransactionType.REGULAR

        credits: dict[int, WalletCredit] = {}
        for detail in result.get("details", []):
            if detail.get("category") == "send":
                continue
            index = detail.get("vout")
            if index is None or index in credits:
                continue
            if index >= len(tx.tx_out):
                logger.warning(f"Wallet reported credit {txid}:{index} beyond output count")
                continue
            out = tx.tx_out[index]
            credits[index] = WalletCredit(
                index=index, amount=out.value, output_script=out.pk_script
            )

        return WalletTransaction(
            txid=txid,
            tx_type=tx_type,
            credits=sorted(credits.values(), key=lambda c: c.index),
            confirmations=result.get("confirmations", 0),
        )

    async def validate_address(self, address: str) -> AddressValidation:
        try:
            result = await self._rpc_call("validateaddress", [address])
        except RpcError as e:
            if e.code == RPC_ERR_INVALID_ADDRESS:
                return AddressValidation(is_valid=False)
            raise
        return AddressValidation(
            is_valid=bool(result.get("isvalid")),
            is_mine=bool(result.get("ismine")),
        )

    async def derive_change_address(self, account: str) -> str:
        address = await self._rpc_call("getrawchangeaddress", [account])
        logger.debug(f"Derived change address for account {account!r}")
        return address

    async def sign_transaction(self, unsigned_tx: bytes, passphrase: bytearray) -> bytes:
        try:
            # JSON-RPC needs a str here; that copy cannot be zeroed by the caller
            await self._rpc_call(
                "walletpassphrase", [passphrase.decode("utf-8"), UNLOCK_TIMEOUT]
            )
            try:
                result = await self._rpc_call("signrawtransaction", [unsigned_tx.hex()])
            finally:
                await self._lock_wallet()
        except RpcError as e:
            raise SigningError(f"Signing failed: {e}") from e

        if not result.get("complete"):
            errors = result.get("errors") or []
            raise SigningError(f"Transaction not fully signed: {errors}")

        return bytes.fromhex(result["hex"])

    async def _lock_wallet(self) -> None:
        """Relock the wallet without masking an error from the signing call."""
        try:
            await self._rpc_call("walletlock")
        except UpstreamError as e:
            logger.warning(f"Failed to relock wallet: {e}")

    async def publish_transaction(self, signed_tx: bytes) -> str:
        try:
            return await self._rpc_call("sendrawtransaction", [signed_tx.hex()])
        except RpcError as e:
            raise BroadcastError(f"Publishing failed: {e}") from e

    async def close(self) -> None:
        await self.client.aclose()
