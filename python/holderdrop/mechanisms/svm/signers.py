"""Signing credentials for Solana (SVM) distributions."""

import json

import base58
from solders.keypair import Keypair  # type: ignore
from solders.pubkey import Pubkey  # type: ignore

from ...errors import InputError

KEYPAIR_LENGTH = 64


class KeypairSigner:
    """Signer backed by a single ed25519 keypair.

    The secret never appears in error messages or ``repr``.
    """

    def __init__(self, keypair: Keypair):
        self._keypair = keypair

    @property
    def keypair(self) -> Keypair:
        return self._keypair

    @property
    def pubkey(self) -> Pubkey:
        return self._keypair.pubkey()

    @property
    def address(self) -> str:
        """Base58 public key."""
        return str(self._keypair.pubkey())

    def __repr__(self) -> str:
        return f"KeypairSigner(address={self.address!r})"

    @classmethod
    def from_base58(cls, secret: str) -> "KeypairSigner":
        """Create a signer from a base58 encoded 64-byte secret key.

        Raises:
            InputError: If the secret cannot be decoded.
        """
        if not isinstance(secret, str) or not secret.strip():
            raise InputError("Private key is empty")
        try:
            raw = base58.b58decode(secret.strip())
        except ValueError:
            raise InputError("Invalid private key format: not base58") from None
        return cls.from_bytes(raw)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "KeypairSigner":
        """Create a signer from raw 64-byte keypair bytes."""
        if len(raw) != KEYPAIR_LENGTH:
            raise InputError(
                f"Invalid private key length: expected {KEYPAIR_LENGTH} bytes, got {len(raw)}"
            )
        try:
            keypair = Keypair.from_bytes(raw)
        except ValueError:
            raise InputError("Invalid private key: public half does not match secret") from None
        return cls(keypair)

    @classmethod
    def from_json_array(cls, text: str) -> "KeypairSigner":
        """Create a signer from a Solana CLI keypair file body (JSON int array)."""
        try:
            values = json.loads(text)
            raw = bytes(values)
        except (json.JSONDecodeError, TypeError, ValueError):
            raise InputError("Invalid keypair file: expected a JSON array of bytes") from None
        return cls.from_bytes(raw)


def decode_signer(secret: str) -> KeypairSigner:
    """Decode user-supplied credentials in either base58 or JSON array form."""
    secret = (secret or "").strip()
    if secret.startswith("["):
        return KeypairSigner.from_json_array(secret)
    return KeypairSigner.from_base58(secret)
