"""Network description for the faucet.

The active network is entirely configuration driven: a short name used as
the EIP-3770 address prefix, the chain ID discovered from the RPC endpoint,
and an optional block explorer.
"""

from dataclasses import dataclass


class ChainMismatchError(RuntimeError):
    """The RPC endpoint serves a different chain than configured."""


@dataclass(frozen=True)
class NetworkInfo:
    """The network the faucet pays out on.

    Attributes
    ----------
    name : str
        Short network name, matched case-insensitively against EIP-3770
        address prefixes (``testnet:0x...``).
    chain_id : int
        The chain ID (discovered from RPC).
    block_explorer_url : str | None
        Optional block explorer URL for transaction links.
    """

    name: str
    chain_id: int
    block_explorer_url: str | None = None

    @classmethod
    def discover(
        cls,
        name: str,
        reported_chain_id: int,
        expected_chain_id: int | None = None,
        block_explorer_url: str | None = None,
    ) -> "NetworkInfo":
        """Build network info from the chain ID reported by the node.

        Raises
        ------
        ChainMismatchError
            If an expected chain ID is configured and the node disagrees.
        """
        if expected_chain_id is not None and expected_chain_id != reported_chain_id:
            raise ChainMismatchError(
                f"RPC endpoint reports chain {reported_chain_id}, "
                f"expected {expected_chain_id} for network {name!r}"
            )
        return cls(
            name=name.lower(),
            chain_id=reported_chain_id,
            block_explorer_url=block_explorer_url,
        )

    def get_tx_url(self, tx_hash: str) -> str | None:
        """Block explorer URL for a transaction, if an explorer is configured."""
        if self.block_explorer_url:
            return f"{self.block_explorer_url.rstrip('/')}/tx/{tx_hash}"
        return None

    def get_address_url(self, address: str) -> str | None:
        """Block explorer URL for an address, if an explorer is configured."""
        if self.block_explorer_url:
            return f"{self.block_explorer_url.rstrip('/')}/address/{address}"
        return None
