"""
ClaimPool consent gate.

A holder must prove agreement to the pool's terms fingerprint before
self-service redemption. Administrator proxy redemptions bypass the gate.
"""

from claimpool.consent.gate import (
    ConsentGate,
    ConsentScheme,
    ContractValidator,
    EcdsaValidator,
    SignatureValidator,
    acceptance_token,
)

__all__ = [
    "ConsentGate",
    "ConsentScheme",
    "ContractValidator",
    "EcdsaValidator",
    "SignatureValidator",
    "acceptance_token",
]
