"""Tests for the chain client and wallet sender."""

from unittest.mock import MagicMock, patch

import pytest
from pydantic import SecretStr

from spigot.blockchain.client import TRANSFER_GAS, ChainClient
from spigot.blockchain.sender import ChainWalletSender, WalletSender
from spigot.core.wallet import LocalKeyWallet

# Test private key (DO NOT USE IN PRODUCTION - this is a well-known test key)
TEST_PRIVATE_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_ADDRESS = "0xFCAd0B19bB29D4674531d6f115237E16AfCE377c"
TEST_RECIPIENT = "0x742d35Cc6634c0532925a3b844bC9e7595F8fE00"


@pytest.fixture
def wallet():
    """Create a real wallet for testing."""
    return LocalKeyWallet(private_key=SecretStr(TEST_PRIVATE_KEY))


@pytest.fixture
def mock_web3():
    """Create a mock Web3 instance."""
    with patch("spigot.blockchain.client.Web3") as mock_w3_class:
        mock_w3 = MagicMock()
        mock_w3_class.return_value = mock_w3
        mock_w3_class.HTTPProvider = MagicMock()
        mock_w3_class.to_checksum_address = lambda x: x
        mock_w3_class.to_hex = lambda b: "0x" + bytes(b).hex()
        mock_w3.is_connected.return_value = True
        mock_w3.eth.chain_id = 65100000
        mock_w3.eth.gas_price = 1000000000
        mock_w3.eth.get_balance.return_value = 5 * 10**18
        mock_w3.eth.get_transaction_count.return_value = 7
        mock_w3.eth.send_raw_transaction.return_value = b"\xab" * 32
        yield mock_w3_class, mock_w3


class TestChainClient:
    """Tests for ChainClient."""

    def test_client_initialization(self, wallet, mock_web3):
        """Client initializes with RPC endpoint and wallet."""
        mock_w3_class, _ = mock_web3

        ChainClient("http://localhost:8545", wallet)

        mock_w3_class.HTTPProvider.assert_called_once_with("http://localhost:8545")

    def test_connected_property(self, wallet, mock_web3):
        """Connected property returns Web3 connection status."""
        _, mock_w3 = mock_web3

        client = ChainClient("http://localhost:8545", wallet)

        assert client.connected is True
        mock_w3.is_connected.return_value = False
        assert client.connected is False

    def test_chain_id_property(self, wallet, mock_web3):
        """Chain ID property returns network chain ID."""
        client = ChainClient("http://localhost:8545", wallet)

        assert client.chain_id == 65100000

    def test_wallet_address(self, wallet, mock_web3):
        """wallet_address is the faucet account."""
        client = ChainClient("http://localhost:8545", wallet)

        assert client.wallet_address == TEST_ADDRESS

    def test_get_balance_returns_wei(self, wallet, mock_web3):
        """get_balance returns an integer wei amount."""
        _, mock_w3 = mock_web3

        client = ChainClient("http://localhost:8545", wallet)
        balance = client.get_balance(TEST_ADDRESS)

        assert balance == 5 * 10**18
        mock_w3.eth.get_balance.assert_called_once_with(TEST_ADDRESS)

    def test_transfer_builds_signed_transaction(self, wallet, mock_web3):
        """transfer signs a plain value transfer and returns the hex hash."""
        _, mock_w3 = mock_web3

        client = ChainClient("http://localhost:8545", wallet)
        with patch.object(wallet, "sign_transaction") as mock_sign:
            mock_sign.return_value = MagicMock(raw_transaction=b"\x01\x02")
            tx_hash = client.transfer(TEST_RECIPIENT, 10**18)

        assert tx_hash == "0x" + "ab" * 32
        tx = mock_sign.call_args[0][0]
        assert tx["to"] == TEST_RECIPIENT
        assert tx["value"] == 10**18
        assert tx["gas"] == TRANSFER_GAS
        assert tx["nonce"] == 7
        assert tx["chainId"] == 65100000
        mock_w3.eth.send_raw_transaction.assert_called_once_with(b"\x01\x02")

    def test_transfer_uses_pending_nonce(self, wallet, mock_web3):
        """Nonce comes from the pending pool."""
        _, mock_w3 = mock_web3

        client = ChainClient("http://localhost:8545", wallet)
        client.transfer(TEST_RECIPIENT, 1)

        mock_w3.eth.get_transaction_count.assert_called_once_with(TEST_ADDRESS, "pending")

    def test_transfer_propagates_rpc_errors(self, wallet, mock_web3):
        """RPC failures reach the caller."""
        _, mock_w3 = mock_web3
        mock_w3.eth.send_raw_transaction.side_effect = ValueError("insufficient funds")

        client = ChainClient("http://localhost:8545", wallet)

        with pytest.raises(ValueError, match="insufficient funds"):
            client.transfer(TEST_RECIPIENT, 1)


class TestChainWalletSender:
    """Tests for ChainWalletSender."""

    @pytest.fixture
    def client(self):
        """Create a mock chain client."""
        client = MagicMock(spec=ChainClient)
        client.wallet_address = TEST_ADDRESS
        client.get_balance.return_value = 42
        client.transfer.return_value = "0xhash"
        return client

    def test_wallet_sender_is_abstract(self):
        """WalletSender cannot be instantiated directly."""
        with pytest.raises(TypeError):
            WalletSender()  # type: ignore

    def test_account(self, client):
        """Sender spends from the client's wallet."""
        assert ChainWalletSender(client).account == TEST_ADDRESS

    async def test_get_spendable_balance(self, client):
        """Balance is read through the client."""
        sender = ChainWalletSender(client)

        assert await sender.get_spendable_balance(TEST_ADDRESS) == 42
        client.get_balance.assert_called_once_with(TEST_ADDRESS)

    async def test_send_from_account(self, client):
        """Send goes through the client and returns its hash."""
        sender = ChainWalletSender(client)

        tx_hash = await sender.send_from_account(TEST_ADDRESS, TEST_RECIPIENT, 5)

        assert tx_hash == "0xhash"
        client.transfer.assert_called_once_with(TEST_RECIPIENT, 5)

    async def test_send_from_account_case_insensitive(self, client):
        """Account comparison ignores checksum casing."""
        sender = ChainWalletSender(client)

        await sender.send_from_account(TEST_ADDRESS.lower(), TEST_RECIPIENT, 5)

        client.transfer.assert_called_once()

    async def test_send_from_other_account_refused(self, client):
        """Sending from an account the sender does not hold is refused."""
        sender = ChainWalletSender(client)

        with pytest.raises(ValueError, match="Cannot send from"):
            await sender.send_from_account(TEST_RECIPIENT, TEST_ADDRESS, 5)

        client.transfer.assert_not_called()
