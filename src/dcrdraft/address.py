"""
Decred address decoding and payment script derivation.

Decred base58 addresses are a 2-byte network/type identifier, the payload
and a 4-byte checksum taken from BLAKE-256(BLAKE-256(id + payload)).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import base58
from blake256.blake256 import blake_hash

from dcrdraft.errors import InvalidAddressError, UnsupportedAddressError

# Script opcodes
OP_DUP = 0x76
OP_HASH160 = 0xA9
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_CHECKSIG = 0xAC
OP_DATA_20 = 0x14


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIMNET = "simnet"
    REGNET = "regnet"


class AddressKind(str, Enum):
    P2PKH = "p2pkh"
    P2SH = "p2sh"
    P2PKH_ED25519 = "p2pkh-ed25519"
    P2PKH_SCHNORR = "p2pkh-schnorr"
    P2PK = "p2pk"


# Network -> {address id: kind}
ADDRESS_IDS: dict[NetworkType, dict[bytes, AddressKind]] = {
    NetworkType.MAINNET: {
        b"\x07\x3f": AddressKind.P2PKH,  # Ds
        b"\x07\x1a": AddressKind.P2SH,  # Dc
        b"\x07\x1f": AddressKind.P2PKH_ED25519,  # De
        b"\x07\x01": AddressKind.P2PKH_SCHNORR,  # DS
        b"\x13\x86": AddressKind.P2PK,  # Dk
    },
    NetworkType.TESTNET: {
        b"\x0f\x21": AddressKind.P2PKH,  # Ts
        b"\x0e\xfc": AddressKind.P2SH,  # Tc
        b"\x0f\x01": AddressKind.P2PKH_ED25519,  # Te
        b"\x0e\xe3": AddressKind.P2PKH_SCHNORR,  # TS
        b"\x28\xf7": AddressKind.P2PK,  # Tk
    },
    NetworkType.SIMNET: {
        b"\x0e\x91": AddressKind.P2PKH,  # Ss
        b"\x0e\x6c": AddressKind.P2SH,  # Sc
        b"\x0e\x71": AddressKind.P2PKH_ED25519,  # Se
        b"\x0e\x53": AddressKind.P2PKH_SCHNORR,  # SS
        b"\x27\x6f": AddressKind.P2PK,  # Sk
    },
    NetworkType.REGNET: {
        b"\x0e\x00": AddressKind.P2PKH,  # Rs
        b"\x0d\xdb": AddressKind.P2SH,  # Rc
        b"\x0d\xe0": AddressKind.P2PKH_ED25519,  # Re
        b"\x0d\xc2": AddressKind.P2PKH_SCHNORR,  # RS
        b"\x25\xe5": AddressKind.P2PK,  # Rk
    },
}


def checksum(data: bytes) -> bytes:
    """First four bytes of double BLAKE-256."""
    return blake_hash(blake_hash(data))[:4]


@dataclass(frozen=True)
class Address:
    """A decoded address."""

    network: NetworkType
    kind: AddressKind
    payload: bytes

    def encode(self) -> str:
        for addr_id, kind in ADDRESS_IDS[self.network].items():
            if kind == self.kind:
                data = addr_id + self.payload
                return base58.b58encode(data + checksum(data)).decode("ascii")
        raise ValueError(f"No address id for {self.kind.value} on {self.network.value}")

    def __str__(self) -> str:
        return self.encode()


def decode_address(address: str, network: NetworkType) -> Address:
    """
    Decode a base58 address for the given network.

    Raises:
        InvalidAddressError: Bad encoding, checksum or network
    """
    try:
        decoded = base58.b58decode(address.strip())
    except ValueError as e:
        raise InvalidAddressError(f"Invalid address {address!r}: {e}") from e

    if len(decoded) < 2 + 4:
        raise InvalidAddressError(f"Invalid address {address!r}: too short")

    data, check = decoded[:-4], decoded[-4:]
    if checksum(data) != check:
        raise InvalidAddressError(f"Invalid address {address!r}: checksum mismatch")

    addr_id, payload = data[:2], data[2:]
    kind = ADDRESS_IDS[network].get(addr_id)
    if kind is None:
        raise InvalidAddressError(f"Address {address!r} is not valid for {network.value}")

    if kind != AddressKind.P2PK and len(payload) != 20:
        raise InvalidAddressError(
            f"Invalid address {address!r}: hash is {len(payload)} bytes, expected 20"
        )

    return Address(network=network, kind=kind, payload=payload)


def pay_to_addr_script(address: Address) -> bytes:
    """
    Create the output script paying to an address.

    Supports:
    - P2PKH (secp256k1): OP_DUP OP_HASH160 <20-byte-hash> OP_EQUALVERIFY OP_CHECKSIG
    - P2SH: OP_HASH160 <20-byte-hash> OP_EQUAL

    Raises:
        UnsupportedAddressError: For any other address kind
    """
    if address.kind == AddressKind.P2PKH:
        return (
            bytes([OP_DUP, OP_HASH160, OP_DATA_20])
            + address.payload
            + bytes([OP_EQUALVERIFY, OP_CHECKSIG])
        )
    elif address.kind == AddressKind.P2SH:
        return bytes([OP_HASH160, OP_DATA_20]) + address.payload + bytes([OP_EQUAL])

    raise UnsupportedAddressError(f"Unsupported address type: {address.kind.value}")
