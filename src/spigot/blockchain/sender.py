"""Wallet sender interface consumed by the payout coordinator."""

import asyncio
from abc import ABC, abstractmethod

from .client import ChainClient


class WalletSender(ABC):
    """Remote wallet able to report a spendable balance and send funds.

    Retry and backoff are the implementation's concern; callers invoke each
    method at most once per operation.
    """

    @abstractmethod
    async def get_spendable_balance(self, account: str) -> int:
        """Spendable balance of ``account`` in minimal units."""
        ...

    @abstractmethod
    async def send_from_account(self, account: str, address: str, amount: int) -> str:
        """Send ``amount`` minimal units from ``account`` to ``address``.

        Returns
        -------
        str
            The transaction identifier.
        """
        ...


class ChainWalletSender(WalletSender):
    """Wallet sender backed by a :class:`ChainClient`.

    Web3 calls block, so they run in a worker thread.

    Parameters
    ----------
    client : ChainClient
        Client holding the single faucet account.
    """

    def __init__(self, client: ChainClient):
        self._client = client

    @property
    def account(self) -> str:
        """The only account this sender can spend from."""
        return self._client.wallet_address

    async def get_spendable_balance(self, account: str) -> int:
        return await asyncio.to_thread(self._client.get_balance, account)

    async def send_from_account(self, account: str, address: str, amount: int) -> str:
        if account.lower() != self.account.lower():
            raise ValueError(f"Cannot send from {account}: sender only holds {self.account}")
        return await asyncio.to_thread(self._client.transfer, address, amount)
