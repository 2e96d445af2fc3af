"""Faucet signing key management."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from eth_account import Account
from eth_account.datastructures import SignedTransaction
from eth_account.signers.local import LocalAccount
from pydantic import SecretStr

logger = logging.getLogger(__name__)


class WalletProvider(ABC):
    """Holder of the single faucet account that signs payouts."""

    @abstractmethod
    def get_account(self) -> LocalAccount:
        """Get the faucet account.

        Returns
        -------
        LocalAccount
            The account instance for transaction signing.
        """
        ...

    @property
    def address(self) -> str:
        """Checksummed faucet address."""
        return self.get_account().address

    def sign_transaction(self, tx: dict) -> SignedTransaction:
        """Sign a transaction dict with the faucet key.

        Parameters
        ----------
        tx : dict
            Transaction fields (to, value, gas, gasPrice, nonce, chainId).

        Returns
        -------
        SignedTransaction
            Signed transaction ready for ``send_raw_transaction``.
        """
        return self.get_account().sign_transaction(tx)


class LocalKeyWallet(WalletProvider):
    """Faucet key held in process memory.

    Parameters
    ----------
    private_key : SecretStr, optional
        The private key (from an environment variable).
    private_key_file : str, optional
        Path to a file containing the hex private key.

    Raises
    ------
    ValueError
        If neither private_key nor private_key_file is provided.
    FileNotFoundError
        If private_key_file does not exist.
    """

    def __init__(
        self,
        private_key: SecretStr | None = None,
        private_key_file: str | None = None,
    ):
        if private_key is not None:
            self._account = Account.from_key(private_key.get_secret_value())
        elif private_key_file is not None:
            key_path = Path(private_key_file).expanduser()
            if not key_path.exists():
                raise FileNotFoundError(f"Private key file not found: {private_key_file}")
            self._account = Account.from_key(key_path.read_text().strip())
        else:
            raise ValueError("Either private_key or private_key_file must be provided")

    def get_account(self) -> LocalAccount:
        return self._account


def load_wallet(
    private_key: SecretStr | None,
    private_key_file: str | None,
) -> LocalKeyWallet:
    """Build the faucet wallet from configuration.

    The inline key wins when both sources are set.

    Raises
    ------
    ValueError
        If no key source is configured.
    """
    if private_key and private_key_file:
        logger.warning(
            "Both SPIGOT_WALLET_PRIVATE_KEY and SPIGOT_WALLET_PRIVATE_KEY_FILE set; "
            "using SPIGOT_WALLET_PRIVATE_KEY"
        )
    if private_key:
        return LocalKeyWallet(private_key=private_key)
    if private_key_file:
        return LocalKeyWallet(private_key_file=private_key_file)
    raise ValueError(
        "No wallet configured. Set SPIGOT_WALLET_PRIVATE_KEY or SPIGOT_WALLET_PRIVATE_KEY_FILE"
    )
