"""
claimpool/consent/gate.py

Consent gate: proves a holder agreed to a pool's fixed terms before
self-service redemption.

Two consent encodings exist, one per pool:

    SIGNATURE          65-byte ECDSA signature over the terms fingerprint
                       recoverable to the holder, or, for contract holders,
                       whatever the holder's ERC-1271 entry point accepts
                       (empty bytes when the wallet pre-approved the hash).

    ACCEPTANCE_TOKEN   keccak(holder_address || terms_hash). A pre-hashed
                       token bound to one holder; useless to anyone else.

Validation order for SIGNATURE follows the host chain convention: try
direct recovery first, and only if that fails and the holder is a deployed
contract, delegate to the contract.
"""

import hmac
from typing import Protocol

from eth_utils import keccak, to_bytes

from claimpool.chain.host import HostLedger, checksum
from claimpool.core.crypto import ConsentSigner
from claimpool.core.exceptions import (
    InvalidAcceptanceToken,
    InvalidSignature,
    ValidationError,
)
from claimpool.core.models import ERC1271_MAGIC_VALUE, TERMS_HASH_LENGTH


class ConsentScheme:
    SIGNATURE        = "signature"
    ACCEPTANCE_TOKEN = "acceptance_token"


_VALID_SCHEMES = {ConsentScheme.SIGNATURE, ConsentScheme.ACCEPTANCE_TOKEN}


def acceptance_token(holder: str, terms_hash: bytes) -> bytes:
    """The only acceptance token `holder` can redeem with."""
    return keccak(to_bytes(hexstr=checksum(holder)) + bytes(terms_hash))


# ── Validators ────────────────────────────────────────────────

class SignatureValidator(Protocol):
    def validate(self, holder: str, message_hash: bytes, signature: bytes) -> bool: ...


class EcdsaValidator:
    """Direct cryptographic recovery."""

    def validate(self, holder: str, message_hash: bytes, signature: bytes) -> bool:
        return ConsentSigner.verify_detached(message_hash, signature, holder)


class ContractValidator:
    """Delegated call into the holder contract's ERC-1271 entry point."""

    def __init__(self, host: HostLedger) -> None:
        self.host = host

    def validate(self, holder: str, message_hash: bytes, signature: bytes) -> bool:
        contract = self.host.contract_at(holder)
        entry = getattr(contract, "is_valid_signature", None)
        if entry is None:
            return False
        try:
            result = entry(message_hash, signature)
        except Exception:
            # A reverting validator is a rejection, not a pool failure.
            return False
        return result == ERC1271_MAGIC_VALUE


# ── Gate ──────────────────────────────────────────────────────

class ConsentGate:

    def __init__(
        self,
        host:       HostLedger,
        terms_hash: bytes,
        scheme:     str = ConsentScheme.SIGNATURE,
    ) -> None:
        if scheme not in _VALID_SCHEMES:
            raise ValidationError(
                f"Unknown consent scheme '{scheme}'",
                {"valid": sorted(_VALID_SCHEMES)},
            )
        terms_hash = bytes(terms_hash)
        if len(terms_hash) != TERMS_HASH_LENGTH:
            raise ValidationError(
                f"terms_hash must be {TERMS_HASH_LENGTH} bytes",
                {"length": len(terms_hash)},
            )
        self.host       = host
        self.terms_hash = terms_hash
        self.scheme     = scheme
        self._ecdsa:    SignatureValidator = EcdsaValidator()
        self._contract: SignatureValidator = ContractValidator(host)

    def check_consent(self, holder: str, signature: bytes) -> bool:
        """
        True if `signature` proves holder's consent to the terms.
        Raises InvalidSignature otherwise.
        """
        signature = bytes(signature or b"")
        if self._ecdsa.validate(holder, self.terms_hash, signature):
            return True
        if self.host.is_contract(holder) and self._contract.validate(
            holder, self.terms_hash, signature
        ):
            return True
        raise InvalidSignature(holder, signature)

    def check_acceptance_token(self, holder: str, token: bytes) -> bool:
        token = bytes(token or b"")
        expected = acceptance_token(holder, self.terms_hash)
        if not hmac.compare_digest(expected, token):
            raise InvalidAcceptanceToken(holder, token)
        return True

    def require(self, holder: str, proof: bytes) -> None:
        """Check `proof` under this pool's scheme."""
        if self.scheme == ConsentScheme.SIGNATURE:
            self.check_consent(holder, proof)
        else:
            self.check_acceptance_token(holder, proof)
