"""
claimpool/core/crypto.py

Cryptographic layer.

Two unrelated key types live here:

    ConsentSigner       secp256k1 holder key. Signs the EIP-191 personal
                        message wrapping a pool's 32-byte terms fingerprint.
                        Recovery goes through eth_account, the same path a
                        wallet signature takes on the host chain.

    AuditKeyManager     Ed25519 key of the operator that signs audit log
                        records. Has nothing to do with redemption rights.

Verification helpers are static and never raise: a malformed signature is
simply not valid.
"""

import base64
from pathlib import Path
from typing import Optional, Union

from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
    load_pem_private_key,
)
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import to_checksum_address

ECDSA_SIGNATURE_LENGTH = 65


# ── Holder consent keys ───────────────────────────────────────

class ConsentSigner:
    """
    A holder's secp256k1 key.

        ConsentSigner.generate()                  → new random key
        ConsentSigner.from_key(hex_or_bytes)      → existing key
        signer.address                            → checksum address
        signer.sign_terms(terms_hash)             → 65-byte signature
        ConsentSigner.recover(terms_hash, sig)    → address or None
    """

    def __init__(self, private_key: Union[str, bytes]) -> None:
        self._account = Account.from_key(private_key)

    @classmethod
    def generate(cls) -> "ConsentSigner":
        return cls(Account.create().key)

    @classmethod
    def from_key(cls, private_key: Union[str, bytes]) -> "ConsentSigner":
        return cls(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    def sign_terms(self, terms_hash: bytes) -> bytes:
        """Sign the EIP-191 personal message wrapping terms_hash."""
        signed = self._account.sign_message(encode_defunct(primitive=terms_hash))
        return bytes(signed.signature)

    @staticmethod
    def recover(terms_hash: bytes, signature: bytes) -> Optional[str]:
        """
        Recover the checksum address that signed terms_hash.

        Returns None for ANY failure: wrong length, bad v, point not on curve.
        """
        if not isinstance(signature, (bytes, bytearray)):
            return None
        if len(signature) != ECDSA_SIGNATURE_LENGTH:
            return None
        try:
            recovered = Account.recover_message(
                encode_defunct(primitive=terms_hash),
                signature=bytes(signature),
            )
        except Exception:
            return None
        return to_checksum_address(recovered)

    @staticmethod
    def verify_detached(terms_hash: bytes, signature: bytes, address: str) -> bool:
        recovered = ConsentSigner.recover(terms_hash, signature)
        if recovered is None:
            return False
        try:
            return recovered == to_checksum_address(address)
        except ValueError:
            return False

    def __repr__(self) -> str:
        return f"ConsentSigner(address={self.address})"


# ── Audit log keys ────────────────────────────────────────────

class AuditKeyManager:
    """
    Ed25519 key used to sign audit event log records.

        AuditKeyManager.generate()                        → new random key
        AuditKeyManager.from_file(path)                   → load PEM private key
        AuditKeyManager.verify_detached(data, sig, hex)   → @staticmethod

        key.public_key_hex          (@property) → 64-char lowercase hex
        key.sign(data: bytes)                   → base64url str (no padding)
        key.save(path)                          → write PEM private key
    """

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key:    Ed25519PrivateKey = private_key
        self._public_key:     Ed25519PublicKey  = private_key.public_key()
        self._public_key_hex: str = (
            self._public_key
            .public_bytes(Encoding.Raw, PublicFormat.Raw)
            .hex()
        )

    @classmethod
    def generate(cls) -> "AuditKeyManager":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_file(cls, path: Path) -> "AuditKeyManager":
        """
        Load an Ed25519 private key from a PEM file.
        Raises FileNotFoundError if path does not exist.
        Raises ValueError if the file is not a valid Ed25519 PEM key.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Key file not found: {path}")
        try:
            private_key = load_pem_private_key(path.read_bytes(), password=None)
        except Exception as exc:
            raise ValueError(
                f"Failed to load Ed25519 key from {path}: {exc}"
            ) from exc
        if not isinstance(private_key, Ed25519PrivateKey):
            raise ValueError(
                f"Key file {path} does not contain an Ed25519 private key"
            )
        return cls(private_key)

    @classmethod
    def load_or_create(cls, path: Path) -> "AuditKeyManager":
        path = Path(path)
        if path.exists():
            return cls.from_file(path)
        key = cls.generate()
        key.save(path)
        return key

    @property
    def public_key_hex(self) -> str:
        """64-character lowercase hex of the raw public key. A property, not a method."""
        return self._public_key_hex

    def sign(self, data: bytes) -> str:
        raw_sig = self._private_key.sign(data)
        return base64.urlsafe_b64encode(raw_sig).rstrip(b"=").decode("ascii")

    @staticmethod
    def verify_detached(
        data:           bytes,
        signature_b64:  str,
        public_key_hex: str,
    ) -> bool:
        """
        Verify an Ed25519 signature using only a public key hex string.

        Returns False for ANY failure. Never raises.
        """
        try:
            if not isinstance(public_key_hex, str) or len(public_key_hex) != 64:
                return False

            pub = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key_hex))

            # Re-add base64url padding if stripped
            padding    = 4 - len(signature_b64) % 4
            padded_sig = signature_b64 + "=" * (padding % 4)
            raw_sig    = base64.urlsafe_b64decode(padded_sig)

            if len(raw_sig) != 64:
                return False

            pub.verify(raw_sig, data)
            return True

        except Exception:
            return False

    def save(self, path: Path) -> None:
        """Write the private key as PEM. Creates parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        pem = self._private_key.private_bytes(
            encoding=             Encoding.PEM,
            format=               PrivateFormat.PKCS8,
            encryption_algorithm= NoEncryption(),
        )
        path.write_bytes(pem)

    def __repr__(self) -> str:
        return f"AuditKeyManager(public_key_hex={self._public_key_hex[:16]}...)"
