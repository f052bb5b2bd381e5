"""Relying Party building blocks for WebAuthn: ceremony options, session data and response checks."""

__version__ = "0.1.0"