"""
Conversion between decimal coin amounts and integer atoms.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from dcrdraft.constants import ATOMS_PER_COIN, MAX_ATOMS
from dcrdraft.errors import InvalidAmountError


def to_atoms(amount: str | int | float | Decimal) -> int:
    """
    Convert a coin amount to atoms, rounding to the nearest atom.

    Args:
        amount: Amount in coins (e.g. "0.5" or Decimal("1.25"))

    Returns:
        Amount in atoms

    Raises:
        InvalidAmountError: Malformed, non-finite, non-positive or above MAX_ATOMS
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise InvalidAmountError(f"Invalid amount: {amount!r}") from e

    if not value.is_finite():
        raise InvalidAmountError(f"Invalid amount: {amount!r}")

    atoms = int((value * ATOMS_PER_COIN).to_integral_value(rounding=ROUND_HALF_UP))
    if atoms <= 0:
        raise InvalidAmountError(f"Amount must be positive, got {amount}")
    if atoms > MAX_ATOMS:
        raise InvalidAmountError(f"Amount {amount} exceeds the maximum of {MAX_ATOMS} atoms")
    return atoms


def format_atoms(atoms: int) -> str:
    """Format atoms as a coin amount, e.g. 123450000 -> '1.2345 DCR'."""
    coins = Decimal(atoms) / ATOMS_PER_COIN
    text = f"{coins:.8f}".rstrip("0").rstrip(".")
    return f"{text} DCR"
