"""Signer identity: key loading and local transaction signing."""
