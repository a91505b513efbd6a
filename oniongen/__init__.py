"""Tor v3 .onion vanity address generator."""

__version__ = "1.0.0"
