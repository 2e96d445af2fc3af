"""Recipient address decoding and network checks.

Accepted input is a 0x-prefixed 20-byte hex address, optionally carrying an
EIP-3770 chain-specific prefix (``<short-name>:0x...``). Mixed-case input must
satisfy the EIP-55 checksum.
"""

import re
from dataclasses import dataclass

from web3 import Web3

from .networks import NetworkInfo

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
NETWORK_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9-]{1,32}$")


class AddressDecodeError(ValueError):
    """The input is not a well-formed address."""


@dataclass(frozen=True)
class Address:
    """A decoded recipient address.

    Attributes
    ----------
    value : str
        Checksummed hex address.
    network : str
        Lower-case short name of the network the address is meant for.
    """

    value: str
    network: str

    def __str__(self) -> str:
        return self.value


class AddressValidator:
    """Decodes recipient addresses and checks them against the active network."""

    def decode(self, text: str, network: NetworkInfo) -> Address:
        """Decode user input into an address.

        Untagged addresses are taken to be meant for ``network``.

        Parameters
        ----------
        text : str
            Raw address input.
        network : NetworkInfo
            The active network.

        Returns
        -------
        Address
            The decoded address.

        Raises
        ------
        AddressDecodeError
            If the input is empty, malformed, or fails its checksum.
        """
        text = (text or "").strip()
        if not text:
            raise AddressDecodeError("An address is required")

        prefix, sep, raw = text.rpartition(":")
        if sep and not NETWORK_PREFIX_PATTERN.match(prefix):
            raise AddressDecodeError(f"Invalid network prefix in address: {text}")

        if not ADDRESS_PATTERN.match(raw):
            raise AddressDecodeError(f"Invalid address format: {text}")
        digits = raw[2:]
        mixed_case = digits != digits.lower() and digits != digits.upper()
        if mixed_case and not Web3.is_checksum_address(raw):
            raise AddressDecodeError(f"Address checksum mismatch: {text}")

        return Address(
            value=Web3.to_checksum_address(raw),
            network=prefix.lower() if sep else network.name.lower(),
        )

    def belongs_to_network(self, address: Address, network: NetworkInfo) -> bool:
        """Check whether a decoded address is meant for ``network``."""
        return address.network == network.name.lower()
