"""Core Spigot components."""

from .wallet import LocalKeyWallet, WalletProvider, load_wallet

__all__ = [
    "LocalKeyWallet",
    "WalletProvider",
    "load_wallet",
]
