"""
Command-line interface for building Decred transaction drafts.
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger
from pydantic import ValidationError

from dcrdraft.address import NetworkType
from dcrdraft.amount import format_atoms
from dcrdraft.backends.base import WalletBackend
from dcrdraft.backends.dcrwallet import DcrwalletBackend
from dcrdraft.builder import DraftBuilder
from dcrdraft.config import Settings
from dcrdraft.errors import DraftError, MismatchedArgumentsError
from dcrdraft.models import BuildRequest, UtxoReference

app = typer.Typer(
    name="dcr-draft",
    help="Build unsigned Decred transactions from explicitly chosen UTXOs",
    add_completion=False,
)


def setup_logging(level: str) -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def create_backend(settings: Settings) -> WalletBackend:
    """Create the wallet backend for the configured dcrwallet."""
    return DcrwalletBackend(
        rpc_url=settings.wallet_rpc_url,
        rpc_user=settings.rpc_user,
        rpc_password=settings.rpc_password,
        rpc_cert=settings.rpc_cert,
        timeout=settings.rpc_timeout,
    )


def read_passphrase() -> bytearray:
    """
    Read the wallet passphrase.

    Priority:
    1. DCRDRAFT_PASSPHRASE environment variable
    2. Hidden interactive prompt
    """
    passphrase = os.environ.get("DCRDRAFT_PASSPHRASE")
    if passphrase is None:
        passphrase = typer.prompt("Type wallet password", hide_input=True)
    buf = bytearray(passphrase, "utf-8")
    # strip in place, a stripped copy would leave the original unzeroed
    while buf and buf[-1:].isspace():
        del buf[-1]
    while buf and buf[:1].isspace():
        del buf[0]
    return buf


def make_request(
    utxos: list[str],
    dests: list[str],
    amounts: list[str],
    change_address: str | None,
    change_account: str,
) -> BuildRequest:
    """Validate argument shapes before anything talks to the wallet."""
    if not dests:
        raise MismatchedArgumentsError("No destination addresses specified")
    if len(dests) != len(amounts):
        raise MismatchedArgumentsError("Number of destination addresses and amounts different")
    if not utxos:
        raise MismatchedArgumentsError("No utxos specified")

    return BuildRequest(
        utxos=[UtxoReference.parse(u) for u in utxos],
        destinations=list(zip(dests, amounts)),
        change_address=change_address or None,
        change_account=change_account,
    )


async def _run_build(
    settings: Settings,
    request: BuildRequest,
    sign: bool,
    publish: bool,
) -> None:
    """Build, then optionally sign and publish."""
    async with create_backend(settings) as backend:
        builder = DraftBuilder(
            backend,
            network=settings.network,
            policy=settings.fee_policy(),
        )
        result = await builder.build(request)

        if sign:
            passphrase = read_passphrase()
            try:
                signed = await backend.sign_transaction(result.unsigned_bytes, passphrase)
            finally:
                passphrase[:] = bytes(len(passphrase))

            if publish:
                tx_hash = await backend.publish_transaction(signed)
                typer.echo(f"Published tx {tx_hash}")
            else:
                typer.echo("Serialized **SIGNED** Tx:")
                typer.echo(f"{signed.hex()}\n")
        else:
            typer.echo("Serialized unsigned tx:")
            typer.echo(f"{result.unsigned_hex}\n")

        typer.echo(result.summary())


@app.command()
def build(
    utxo: Annotated[
        list[str] | None,
        typer.Option("--utxo", "-u", help="Utxo to consume (txid:output_index), repeatable"),
    ] = None,
    dest: Annotated[
        list[str] | None,
        typer.Option("--dest", help="Destination address to send to, repeatable"),
    ] = None,
    amt: Annotated[
        list[str] | None,
        typer.Option("--amt", help="Amount in DCR for the destination at the same position"),
    ] = None,
    change_to: Annotated[
        str | None, typer.Option("--changeto", help="Address to send all change to")
    ] = None,
    change_account: Annotated[
        str, typer.Option("--changeaccount", help="Account to derive a change address from")
    ] = "default",
    sign: Annotated[
        bool, typer.Option("--sign", help="Sign the transaction (asks for the wallet password)")
    ] = False,
    publish: Annotated[
        bool, typer.Option("--publish", help="Publish the signed transaction (requires --sign)")
    ] = False,
    rpc_url: Annotated[
        str | None,
        typer.Option("--rpc-url", "-w", help="dcrwallet JSON-RPC URL"),
    ] = None,
    rpc_user: Annotated[str | None, typer.Option("--rpc-user", help="RPC user")] = None,
    rpc_password: Annotated[
        str | None, typer.Option("--rpc-password", help="RPC password")
    ] = None,
    rpc_cert: Annotated[
        Path | None, typer.Option("--rpc-cert", "-c", help="Location of the wallet's rpc.cert")
    ] = None,
    timeout: Annotated[
        float | None, typer.Option("--timeout", help="Wallet call timeout in seconds")
    ] = None,
    network: Annotated[
        str | None, typer.Option("--network", help="mainnet | testnet | simnet | regnet")
    ] = None,
    fee_rate: Annotated[
        int | None, typer.Option("--fee-rate", help="Fee rate in atoms/KB")
    ] = None,
    log_level: Annotated[str, typer.Option("--log-level", "-l", help="Log level")] = "INFO",
) -> None:
    """Build (and optionally sign and publish) a transaction."""
    setup_logging(log_level)

    if publish and not sign:
        logger.error("--publish requires --sign")
        raise typer.Exit(MismatchedArgumentsError.exit_code)

    try:
        request = make_request(utxo or [], dest or [], amt or [], change_to, change_account)
    except DraftError as e:
        logger.error(str(e))
        raise typer.Exit(e.exit_code)

    overrides = {
        "wallet_rpc_url": rpc_url,
        "rpc_user": rpc_user,
        "rpc_password": rpc_password,
        "rpc_cert": rpc_cert,
        "rpc_timeout": timeout,
        "fee_rate_per_kb": fee_rate,
    }
    if network is not None:
        try:
            overrides["network"] = NetworkType(network)
        except ValueError:
            logger.error(f"Invalid network: {network}")
            raise typer.Exit(MismatchedArgumentsError.exit_code)

    try:
        settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(MismatchedArgumentsError.exit_code)

    try:
        asyncio.run(_run_build(settings, request, sign, publish))
    except DraftError as e:
        logger.error(str(e))
        raise typer.Exit(e.exit_code)


@app.command()
def policy(
    fee_rate: Annotated[
        int | None, typer.Option("--fee-rate", help="Fee rate in atoms/KB")
    ] = None,
) -> None:
    """Show the fee policy in effect."""
    try:
        settings = Settings() if fee_rate is None else Settings(fee_rate_per_kb=fee_rate)
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(MismatchedArgumentsError.exit_code)
    fee_policy = settings.fee_policy()

    typer.echo(f"Fee rate:               {format_atoms(fee_policy.fee_rate_per_kb)}/KB")
    typer.echo(f"Dust limit:             {format_atoms(fee_policy.dust_limit)}")
    typer.echo(f"Signature overhead:     {fee_policy.per_input_sig_overhead} bytes/input")
    typer.echo(f"Change output size:     {fee_policy.change_output_size} bytes")


def main() -> None:
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
