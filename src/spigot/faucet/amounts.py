"""Conversion between user-facing coin amounts and integer minimal units."""

from decimal import Decimal, InvalidOperation

from web3 import Web3


class AmountError(ValueError):
    """The amount input cannot be turned into a positive payout."""


def to_units(value: Decimal) -> int:
    """Convert a coin amount to wei.

    Fractions below one wei are truncated.

    Raises
    ------
    AmountError
        If the value is not finite or is out of range.
    """
    if not value.is_finite():
        raise AmountError(f"Amount is not a finite number: {value}")
    try:
        return int(Web3.to_wei(value, "ether"))
    except ValueError as e:
        raise AmountError(f"Amount out of range: {value}") from e


def parse_amount(text: str) -> int:
    """Parse a decimal coin amount string into a positive number of wei.

    Parameters
    ----------
    text : str
        Amount as typed by the requester, e.g. ``"2.5"``.

    Returns
    -------
    int
        Amount in wei, always > 0.

    Raises
    ------
    AmountError
        If the text is not a number or does not amount to at least one wei.
    """
    try:
        value = Decimal(text.strip())
    except InvalidOperation:
        raise AmountError(f"Invalid amount: {text!r}") from None

    if not value.is_finite():
        raise AmountError(f"Invalid amount: {text!r}")
    if value <= 0:
        raise AmountError("Amount must be greater than 0")

    units = to_units(value)
    if units <= 0:
        raise AmountError("Amount must be greater than 0")
    return units


def format_amount(units: int) -> str:
    """Render wei as a plain coin amount string without trailing zeros."""
    text = format(Decimal(Web3.from_wei(units, "ether")), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def to_coins(units: int) -> float:
    """Coin value for metrics, where float precision is acceptable."""
    return float(Web3.from_wei(units, "ether"))
