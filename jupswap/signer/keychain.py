"""Keychain: turns the configured base58 secret into a signing identity.

The secret is passed in explicitly. This module never reads os.environ;
the CLI is the only place that knows where the secret comes from.

CRITICAL INVARIANTS:
  - The secret is NEVER logged, printed, or included in an error message
  - The decoded keypair is NEVER written anywhere
"""

from __future__ import annotations

import base58
from solders.keypair import Keypair

# ed25519 secret (32) + public key (32), the Solana CLI / Phantom export format
KEYPAIR_LENGTH = 64


class KeychainError(Exception):
    """Error loading the signing identity. Never contains key material."""


class MissingSecretError(KeychainError):
    """No secret configured. Fatal."""


class DecodeError(KeychainError):
    """Secret is not valid base58 or not a valid Solana keypair."""


def load_keypair(secret: str | None) -> Keypair:
    """Decode a base58 secret into a Keypair.

    Raises:
        MissingSecretError: secret is None or blank.
        DecodeError: secret is not base58, has the wrong length, or its
            public half does not match the derived public key.
    """
    if secret is None or not secret.strip():
        raise MissingSecretError("No private key configured")

    try:
        key_bytes = base58.b58decode(secret.strip())
    except ValueError:
        raise DecodeError("Private key is not valid base58") from None

    if len(key_bytes) != KEYPAIR_LENGTH:
        raise DecodeError(
            f"Private key decodes to {len(key_bytes)} bytes, expected {KEYPAIR_LENGTH}"
        )

    try:
        return Keypair.from_bytes(key_bytes)
    except ValueError:
        raise DecodeError("Private key bytes are not a valid ed25519 keypair") from None
    finally:
        key_bytes = b""  # noqa: F841


def public_key(keypair: Keypair) -> str:
    """Base58 public key. Not secret material, safe to log."""
    return str(keypair.pubkey())
