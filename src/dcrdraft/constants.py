"""
Decred wire and fee policy constants.

Size constants follow the layout of a Decred pay-to-pubkey-hash spend:
- a signature script push of at most 73 bytes of DER signature plus sighash
  type, followed by a 33 byte compressed public key
- a change output of value (8) + script version (2) + script length (1) +
  a 25 byte P2PKH script
"""

from __future__ import annotations

# Atoms per coin
ATOMS_PER_COIN = 100_000_000

# Maximum number of coins that can ever exist
MAX_ATOMS = 21_000_000 * ATOMS_PER_COIN

# Default relay fee rate in atoms per kilobyte
DEFAULT_FEE_RATE = 10_000

# OP_DATA_73 + signature + OP_DATA_33 + compressed pubkey
SIG_SCRIPT_OVERHEAD = 1 + 73 + 1 + 33

# value + script version + script length + P2PKH script
CHANGE_OUTPUT_SIZE = 8 + 2 + 1 + 25

# Size of a minimal output the dust limit is priced at
DUST_RELAY_SIZE = 200

# Accepted output script lengths per tree
P2PKH_SCRIPT_LEN = 25
STAKE_P2PKH_SCRIPT_LEN = 26

# Transaction defaults
TX_VERSION = 1
MAX_TX_IN_SEQUENCE = 0xFFFFFFFF
NULL_BLOCK_HEIGHT = 0x00000000
NULL_BLOCK_INDEX = 0xFFFFFFFF
DEFAULT_PK_SCRIPT_VERSION = 0
