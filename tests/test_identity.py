"""Tests for HTTP client identity resolution."""

import ipaddress

import pytest

from spigot.web.identity import parse_trusted_proxies, resolve_client_identity


class TestParseTrustedProxies:
    """Tests for parse_trusted_proxies."""

    def test_addresses_and_networks(self):
        """Single addresses and CIDR ranges are both accepted."""
        networks = parse_trusted_proxies(["127.0.0.1", "10.0.0.0/8", "::1"])

        assert networks == [
            ipaddress.ip_network("127.0.0.1/32"),
            ipaddress.ip_network("10.0.0.0/8"),
            ipaddress.ip_network("::1/128"),
        ]

    def test_host_bits_allowed(self):
        """Networks with host bits set are normalised."""
        assert parse_trusted_proxies(["192.168.1.7/24"]) == [
            ipaddress.ip_network("192.168.1.0/24")
        ]

    def test_blank_entries_skipped(self):
        """Blank entries are ignored."""
        assert parse_trusted_proxies(["", "  "]) == []

    def test_invalid_entry(self):
        """Garbage entries are rejected."""
        with pytest.raises(ValueError, match="Invalid trusted proxy entry"):
            parse_trusted_proxies(["proxy.internal"])


class TestResolveClientIdentity:
    """Tests for resolve_client_identity."""

    @pytest.fixture
    def trusted(self):
        return parse_trusted_proxies(["10.0.0.0/8"])

    def test_peer_without_header(self, trusted):
        """The peer address is used when no header is present."""
        assert resolve_client_identity("203.0.113.5", None, trusted) == "203.0.113.5"

    def test_header_from_trusted_proxy(self, trusted):
        """A trusted proxy's header names the client."""
        assert resolve_client_identity("10.1.2.3", "198.51.100.7", trusted) == "198.51.100.7"

    def test_header_from_untrusted_peer_ignored(self, trusted):
        """An untrusted peer cannot pick its own identity."""
        assert resolve_client_identity("203.0.113.5", "198.51.100.7", trusted) == "203.0.113.5"

    def test_header_ignored_without_trusted_proxies(self):
        """With no trusted proxies configured the header is never used."""
        assert resolve_client_identity("10.1.2.3", "198.51.100.7", []) == "10.1.2.3"

    def test_forwarded_list_uses_first_entry(self, trusted):
        """The first entry of a forwarded list is the original client."""
        header = "198.51.100.7, 10.0.0.2"

        assert resolve_client_identity("10.1.2.3", header, trusted) == "198.51.100.7"

    def test_blank_header_falls_back_to_peer(self, trusted):
        """A blank first entry falls back to the peer."""
        assert resolve_client_identity("10.1.2.3", " , 10.0.0.2", trusted) == "10.1.2.3"

    def test_unknown_peer(self, trusted):
        """No peer and no usable header yields 'unknown'."""
        assert resolve_client_identity(None, None, trusted) == "unknown"
        assert resolve_client_identity(None, "198.51.100.7", trusted) == "unknown"

    def test_unparsable_peer_not_trusted(self, trusted):
        """A peer that is not an IP address is never trusted."""
        assert resolve_client_identity("localhost", "198.51.100.7", trusted) == "localhost"
