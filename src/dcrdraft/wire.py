"""
Decred transaction wire format.

Serializes and parses transactions in the full (prefix + witness) encoding
used by dcrd and dcrwallet:

- version: uint16 version | uint16 serialization type << 16
- prefix: inputs (outpoint + sequence), outputs, lock time, expiry
- witness: per input value, block height, block index and signature script
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from blake256.blake256 import blake_hash

from dcrdraft.constants import (
    DEFAULT_PK_SCRIPT_VERSION,
    MAX_TX_IN_SEQUENCE,
    NULL_BLOCK_HEIGHT,
    NULL_BLOCK_INDEX,
    TX_VERSION,
)

SER_TYPE_FULL = 0
SER_TYPE_NO_WITNESS = 1


class WireError(ValueError):
    """Raised when transaction bytes cannot be parsed"""


def varint(n: int) -> bytes:
    """Encode integer as a compact size varint."""
    if n < 0xFD:
        return bytes([n])
    elif n <= 0xFFFF:
        return bytes([0xFD]) + struct.pack("<H", n)
    elif n <= 0xFFFFFFFF:
        return bytes([0xFE]) + struct.pack("<I", n)
    else:
        return bytes([0xFF]) + struct.pack("<Q", n)


def varint_size(n: int) -> int:
    """Number of bytes varint(n) occupies."""
    if n < 0xFD:
        return 1
    elif n <= 0xFFFF:
        return 3
    elif n <= 0xFFFFFFFF:
        return 5
    return 9


def read_varint(data: bytes, offset: int) -> tuple[int, int]:
    """Read varint and return (value, bytes_consumed)."""
    if offset >= len(data):
        raise WireError("Unexpected end of data reading varint")
    first = data[offset]
    if first < 0xFD:
        return first, 1
    elif first == 0xFD:
        return struct.unpack_from("<H", data, offset + 1)[0], 3
    elif first == 0xFE:
        return struct.unpack_from("<I", data, offset + 1)[0], 5
    else:
        return struct.unpack_from("<Q", data, offset + 1)[0], 9


def hash_to_bytes(txid: str) -> bytes:
    """Convert a display-order transaction hash to its wire byte order."""
    raw = bytes.fromhex(txid)
    if len(raw) != 32:
        raise ValueError(f"Transaction hash must be 32 bytes, got {len(raw)}")
    return raw[::-1]


@dataclass
class TxIn:
    """Transaction input.

    ``amount`` is only written to the witness ``ValueIn`` slot, never to the
    input prefix.
    """

    txid: str
    vout: int
    tree: int
    amount: int
    signature_script: bytes = b""
    sequence: int = MAX_TX_IN_SEQUENCE
    block_height: int = NULL_BLOCK_HEIGHT
    block_index: int = NULL_BLOCK_INDEX

    def serialize_prefix(self) -> bytes:
        result = hash_to_bytes(self.txid)
        result += struct.pack("<IB", self.vout, self.tree)
        result += struct.pack("<I", self.sequence)
        return result

    def serialize_witness(self) -> bytes:
        result = struct.pack("<qII", self.amount, self.block_height, self.block_index)
        result += varint(len(self.signature_script))
        result += self.signature_script
        return result

    def serialize_size_prefix(self) -> int:
        # hash + index + tree + sequence
        return 32 + 4 + 1 + 4

    def serialize_size_witness(self) -> int:
        sig_len = len(self.signature_script)
        return 8 + 4 + 4 + varint_size(sig_len) + sig_len


@dataclass
class TxOut:
    """Transaction output."""

    value: int
    pk_script: bytes
    version: int = DEFAULT_PK_SCRIPT_VERSION

    def serialize(self) -> bytes:
        result = struct.pack("<qH", self.value, self.version)
        result += varint(len(self.pk_script))
        result += self.pk_script
        return result

    def serialize_size(self) -> int:
        return 8 + 2 + varint_size(len(self.pk_script)) + len(self.pk_script)


@dataclass
class MsgTx:
    """A Decred transaction."""

    tx_in: list[TxIn] = field(default_factory=list)
    tx_out: list[TxOut] = field(default_factory=list)
    version: int = TX_VERSION
    lock_time: int = 0
    expiry: int = 0

    def add_tx_in(self, tx_in: TxIn) -> None:
        self.tx_in.append(tx_in)

    def add_tx_out(self, tx_out: TxOut) -> None:
        self.tx_out.append(tx_out)

    def _serialize_prefix(self) -> bytes:
        result = varint(len(self.tx_in))
        for tx_in in self.tx_in:
            result += tx_in.serialize_prefix()
        result += varint(len(self.tx_out))
        for tx_out in self.tx_out:
            result += tx_out.serialize()
        result += struct.pack("<II", self.lock_time, self.expiry)
        return result

    def _serialize_witness(self) -> bytes:
        result = varint(len(self.tx_in))
        for tx_in in self.tx_in:
            result += tx_in.serialize_witness()
        return result

    def serialize(self) -> bytes:
        """Serialize the transaction with prefix and witness."""
        result = struct.pack("<I", self.version | (SER_TYPE_FULL << 16))
        result += self._serialize_prefix()
        result += self._serialize_witness()
        return result

    def serialize_size(self) -> int:
        """Length of serialize() in bytes."""
        n_in = len(self.tx_in)
        # version + lock time + expiry, input count twice, output count
        size = 12 + 2 * varint_size(n_in) + varint_size(len(self.tx_out))
        for tx_in in self.tx_in:
            size += tx_in.serialize_size_prefix() + tx_in.serialize_size_witness()
        for tx_out in self.tx_out:
            size += tx_out.serialize_size()
        return size

    def tx_hash(self) -> str:
        """Transaction hash (BLAKE-256 of the prefix) in display order."""
        data = struct.pack("<I", self.version | (SER_TYPE_NO_WITNESS << 16))
        data += self._serialize_prefix()
        return blake_hash(data)[::-1].hex()

    @classmethod
    def deserialize(cls, tx_bytes: bytes) -> MsgTx:
        """Parse a full or prefix-only serialized transaction."""
        try:
            return cls._deserialize(tx_bytes)
        except struct.error as e:
            raise WireError(f"Truncated transaction: {e}") from e

    @classmethod
    def _deserialize(cls, tx_bytes: bytes) -> MsgTx:
        offset = 0

        (raw_version,) = struct.unpack_from("<I", tx_bytes, offset)
        offset += 4
        version = raw_version & 0xFFFF
        ser_type = raw_version >> 16
        if ser_type not in (SER_TYPE_FULL, SER_TYPE_NO_WITNESS):
            raise WireError(f"Unsupported serialization type: {ser_type}")

        input_count, size = read_varint(tx_bytes, offset)
        offset += size

        inputs = []
        for _ in range(input_count):
            txid = tx_bytes[offset : offset + 32][::-1].hex()
            offset += 32
            vout, tree, sequence = struct.unpack_from("<IBI", tx_bytes, offset)
            offset += 9
            inputs.append(TxIn(txid=txid, vout=vout, tree=tree, amount=0, sequence=sequence))

        output_count, size = read_varint(tx_bytes, offset)
        offset += size

        outputs = []
        for _ in range(output_count):
            value, script_version = struct.unpack_from("<qH", tx_bytes, offset)
            offset += 10
            script_len, size = read_varint(tx_bytes, offset)
            offset += size
            pk_script = tx_bytes[offset : offset + script_len]
            if len(pk_script) != script_len:
                raise WireError("Truncated output script")
            offset += script_len
            outputs.append(TxOut(value=value, pk_script=pk_script, version=script_version))

        lock_time, expiry = struct.unpack_from("<II", tx_bytes, offset)
        offset += 8

        if ser_type == SER_TYPE_FULL:
            witness_count, size = read_varint(tx_bytes, offset)
            offset += size
            if witness_count != input_count:
                raise WireError(
                    f"Witness count {witness_count} does not match input count {input_count}"
                )
            for tx_in in inputs:
                tx_in.amount, tx_in.block_height, tx_in.block_index = struct.unpack_from(
                    "<qII", tx_bytes, offset
                )
                offset += 16
                sig_len, size = read_varint(tx_bytes, offset)
                offset += size
                tx_in.signature_script = tx_bytes[offset : offset + sig_len]
                if len(tx_in.signature_script) != sig_len:
                    raise WireError("Truncated signature script")
                offset += sig_len

        if offset != len(tx_bytes):
            raise WireError(f"{len(tx_bytes) - offset} trailing bytes after transaction")

        return cls(
            tx_in=inputs,
            tx_out=outputs,
            version=version,
            lock_time=lock_time,
            expiry=expiry,
        )
