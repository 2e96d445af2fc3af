"""Tests for network configuration module."""

import pytest

from spigot.blockchain.networks import ChainMismatchError, NetworkInfo


class TestNetworkInfo:
    """Tests for NetworkInfo dataclass."""

    def test_basic_creation(self):
        """NetworkInfo can be created with required fields."""
        network = NetworkInfo(name="testnet", chain_id=65100000)

        assert network.name == "testnet"
        assert network.chain_id == 65100000
        assert network.block_explorer_url is None

    def test_frozen(self):
        """NetworkInfo is immutable."""
        network = NetworkInfo(name="testnet", chain_id=1)

        with pytest.raises(AttributeError):
            network.chain_id = 2  # type: ignore[misc]

    def test_get_tx_url_with_explorer(self):
        """get_tx_url returns correct URL when explorer configured."""
        network = NetworkInfo(
            name="testnet",
            chain_id=65100000,
            block_explorer_url="https://explorer.example.com",
        )

        url = network.get_tx_url("0xabcd1234")

        assert url == "https://explorer.example.com/tx/0xabcd1234"

    def test_get_tx_url_without_explorer(self):
        """get_tx_url returns None when no explorer configured."""
        network = NetworkInfo(name="testnet", chain_id=65100000)

        assert network.get_tx_url("0xabcd1234") is None

    def test_get_tx_url_strips_trailing_slash(self):
        """get_tx_url handles trailing slash in explorer URL."""
        network = NetworkInfo(
            name="testnet",
            chain_id=65100000,
            block_explorer_url="https://explorer.example.com/",
        )

        url = network.get_tx_url("0xabcd1234")

        assert url == "https://explorer.example.com/tx/0xabcd1234"

    def test_get_address_url_with_explorer(self):
        """get_address_url returns correct URL when explorer configured."""
        network = NetworkInfo(
            name="testnet",
            chain_id=65100000,
            block_explorer_url="https://explorer.example.com",
        )
        address = "0x742d35Cc6634c0532925a3b844bC9e7595F8fE00"

        url = network.get_address_url(address)

        assert url == f"https://explorer.example.com/address/{address}"

    def test_get_address_url_without_explorer(self):
        """get_address_url returns None when no explorer configured."""
        network = NetworkInfo(name="testnet", chain_id=65100000)

        url = network.get_address_url("0x742d35Cc6634c0532925a3b844bC9e7595F8fE00")

        assert url is None


class TestNetworkDiscovery:
    """Tests for NetworkInfo.discover."""

    def test_uses_reported_chain_id(self):
        """Chain ID comes from the node when none is expected."""
        network = NetworkInfo.discover("Sepolia", 11155111)

        assert network.chain_id == 11155111
        assert network.name == "sepolia"

    def test_matching_expected_chain_id(self):
        """A matching expected chain ID is accepted."""
        network = NetworkInfo.discover(
            "testnet",
            5,
            expected_chain_id=5,
            block_explorer_url="https://explorer.example.com",
        )

        assert network.chain_id == 5
        assert network.block_explorer_url == "https://explorer.example.com"

    def test_mismatched_chain_id_raises(self):
        """A node on another chain is refused."""
        with pytest.raises(ChainMismatchError, match="reports chain 1, expected 5"):
            NetworkInfo.discover("testnet", 1, expected_chain_id=5)
