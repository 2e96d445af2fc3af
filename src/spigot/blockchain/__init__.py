"""Blockchain integration for Spigot."""

from .address import Address, AddressDecodeError, AddressValidator
from .client import ChainClient
from .networks import ChainMismatchError, NetworkInfo
from .sender import ChainWalletSender, WalletSender

__all__ = [
    "Address",
    "AddressDecodeError",
    "AddressValidator",
    "ChainClient",
    "ChainMismatchError",
    "ChainWalletSender",
    "NetworkInfo",
    "WalletSender",
]
