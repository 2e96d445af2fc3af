"""HTTP surface for Spigot."""

from .identity import parse_trusted_proxies, resolve_client_identity
from .server import FaucetServer

__all__ = ["FaucetServer", "parse_trusted_proxies", "resolve_client_identity"]
