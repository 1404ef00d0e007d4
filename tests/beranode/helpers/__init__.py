"""Test helpers shared across the beranode test suite."""

from .fake_tools import FakeToolRunner, fake_hex

WALLET_ADDRESS = "0x" + "ab" * 20
"""Operator wallet used by the shared fixtures."""

WALLET_PRIVATE_KEY = "0x" + "cd" * 32

__all__ = ["FakeToolRunner", "WALLET_ADDRESS", "WALLET_PRIVATE_KEY", "fake_hex"]
