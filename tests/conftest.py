"""Pytest configuration and fixtures for Spigot tests."""

import os

import pytest


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear Spigot-related environment variables before each test."""
    env_prefixes = ("SPIGOT_", "SLACK_")
    for key in list(os.environ.keys()):
        if key.startswith(env_prefixes):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch, tmp_path):
    """Run each test outside the repository so a local .env is never read."""
    monkeypatch.chdir(tmp_path)
