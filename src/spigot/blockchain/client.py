"""Web3 client wrapper for faucet wallet operations."""

import logging

from web3 import Web3

from spigot.core.wallet import WalletProvider

logger = logging.getLogger(__name__)

# Gas for a plain value transfer to an externally owned account.
TRANSFER_GAS = 21000


class ChainClient:
    """Blocking wrapper around Web3 for the faucet's native-coin transfers.

    All amounts are integers in wei.

    Parameters
    ----------
    rpc_endpoint : str
        The JSON-RPC endpoint URL.
    wallet : WalletProvider
        The wallet provider for signing transactions.
    """

    def __init__(self, rpc_endpoint: str, wallet: WalletProvider):
        self._w3 = Web3(Web3.HTTPProvider(rpc_endpoint))
        self._wallet = wallet

    @property
    def connected(self) -> bool:
        """Check if connected to the RPC endpoint."""
        return self._w3.is_connected()

    @property
    def chain_id(self) -> int:
        """Chain ID reported by the connected node."""
        return self._w3.eth.chain_id

    @property
    def wallet_address(self) -> str:
        """Checksummed faucet wallet address."""
        return self._wallet.address

    def get_balance(self, address: str) -> int:
        """Get the native balance of an address.

        Parameters
        ----------
        address : str
            The address to query.

        Returns
        -------
        int
            Balance in wei.
        """
        checksum_address = Web3.to_checksum_address(address)
        return int(self._w3.eth.get_balance(checksum_address))

    def transfer(self, to: str, amount: int) -> str:
        """Sign and submit a native-coin transfer from the faucet wallet.

        The nonce comes from the pending pool so that serialized payouts sent
        before the previous one is mined do not reuse it.

        Parameters
        ----------
        to : str
            The recipient address.
        amount : int
            Amount to transfer in wei.

        Returns
        -------
        str
            The transaction hash.
        """
        checksum_to = Web3.to_checksum_address(to)

        tx = {
            "to": checksum_to,
            "value": amount,
            "gas": TRANSFER_GAS,
            "gasPrice": self._w3.eth.gas_price,
            "nonce": self._w3.eth.get_transaction_count(self._wallet.address, "pending"),
            "chainId": self._w3.eth.chain_id,
        }

        signed = self._wallet.sign_transaction(tx)
        tx_hash = Web3.to_hex(self._w3.eth.send_raw_transaction(signed.raw_transaction))

        logger.info(
            "Transfer submitted",
            extra={
                "tx_hash": tx_hash,
                "to": checksum_to,
                "amount_wei": amount,
            },
        )

        return tx_hash
