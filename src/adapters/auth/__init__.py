"""Authentication module adapters."""

from .http import HttpTokenIssuer, UnconfiguredTokenIssuer

__all__ = ["HttpTokenIssuer", "UnconfiguredTokenIssuer"]
