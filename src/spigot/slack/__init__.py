"""Slack integration for the Spigot faucet."""

from .adapter import PlatformAdapter, SlackAdapter
from .commands import register_commands
from .formatter import MessageFormatter

__all__ = ["MessageFormatter", "PlatformAdapter", "SlackAdapter", "register_commands"]
