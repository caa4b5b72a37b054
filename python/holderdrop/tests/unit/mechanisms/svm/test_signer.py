"""Tests for SVM signer implementations."""

import json

import pytest
from solders.keypair import Keypair

from holderdrop.errors import InputError
from holderdrop.mechanisms.svm.signers import KeypairSigner, decode_signer


class TestKeypairSigner:
    """Test KeypairSigner."""

    def test_should_create_signer_from_keypair(self):
        """Should create signer from keypair."""
        keypair = Keypair()
        signer = KeypairSigner(keypair)

        assert signer.address is not None
        assert len(signer.address) >= 32  # Base58 address

    def test_address_should_return_base58_public_key(self):
        """address property should return base58 public key."""
        keypair = Keypair()
        signer = KeypairSigner(keypair)

        assert signer.address == str(keypair.pubkey())
        assert signer.pubkey == keypair.pubkey()

    def test_keypair_should_return_underlying_keypair(self):
        """keypair property should return the underlying keypair."""
        keypair = Keypair()
        signer = KeypairSigner(keypair)

        assert signer.keypair is keypair

    def test_repr_should_not_leak_secret(self):
        """repr shows the public address only."""
        keypair = Keypair()
        signer = KeypairSigner(keypair)

        assert str(keypair) not in repr(signer)
        assert signer.address in repr(signer)

    def test_from_base58_should_create_signer_from_base58_key(self):
        """from_base58 should create signer from base58 encoded key."""
        keypair = Keypair()
        base58_key = str(keypair)

        signer = KeypairSigner.from_base58(base58_key)

        # Addresses should match
        assert signer.address == str(keypair.pubkey())

    def test_from_bytes_should_create_signer_from_bytes(self):
        """from_bytes should create signer from key bytes."""
        keypair = Keypair()
        key_bytes = bytes(keypair)

        signer = KeypairSigner.from_bytes(key_bytes)

        # Addresses should match
        assert signer.address == str(keypair.pubkey())

    def test_from_json_array_should_read_cli_keypair_file(self):
        """from_json_array should accept the solana-keygen file format."""
        keypair = Keypair()
        body = json.dumps(list(bytes(keypair)))

        signer = KeypairSigner.from_json_array(body)

        assert signer.address == str(keypair.pubkey())


class TestInvalidCredentials:
    """Test that malformed secrets raise InputError without echoing them."""

    @pytest.mark.parametrize("secret", ["", "   "])
    def test_empty(self, secret):
        with pytest.raises(InputError, match="empty"):
            KeypairSigner.from_base58(secret)

    def test_not_base58(self):
        with pytest.raises(InputError, match="not base58") as exc_info:
            KeypairSigner.from_base58("0OIl-secret")

        assert "0OIl-secret" not in str(exc_info.value)

    def test_wrong_length(self):
        with pytest.raises(InputError, match="expected 64 bytes, got 32"):
            KeypairSigner.from_bytes(bytes(32))

    def test_bad_json(self):
        with pytest.raises(InputError, match="JSON array"):
            KeypairSigner.from_json_array("[1, 2,")

    def test_json_out_of_byte_range(self):
        with pytest.raises(InputError, match="JSON array"):
            KeypairSigner.from_json_array("[256]")


class TestDecodeSigner:
    def test_base58(self):
        keypair = Keypair()

        assert decode_signer(f"  {keypair}\n").address == str(keypair.pubkey())

    def test_json_array(self):
        keypair = Keypair()

        assert decode_signer(json.dumps(list(bytes(keypair)))).address == str(keypair.pubkey())
