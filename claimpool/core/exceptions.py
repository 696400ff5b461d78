"""
ClaimPool Exception Hierarchy

All exceptions inherit from ClaimPoolError for easy catching.
Every failure is raised inside HostLedger.atomic(), so by the time a caller
sees one of these the transaction has already been rolled back.
"""


class ClaimPoolError(Exception):
    """Base exception for all ClaimPool errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(ClaimPoolError):
    """Raised when call arguments or construction parameters are invalid"""
    pass


class ConfigError(ClaimPoolError):
    """Raised when a pool configuration file cannot be used"""
    pass


class AccessDenied(ClaimPoolError):
    """Raised when an administrator-only entry point is called by someone else"""
    pass


class OwnershipError(AccessDenied):
    """Raised when the two-step ownership handshake is driven out of order"""
    pass


class InvalidConsent(ClaimPoolError):
    """Raised when a holder has not proven agreement to the pool terms"""
    pass


class InvalidSignature(InvalidConsent):
    """Raised when a consent signature does not validate for the holder"""

    def __init__(self, holder: str, signature: bytes):
        super().__init__(
            "Invalid consent signature",
            {"holder": holder, "signature": "0x" + bytes(signature).hex()},
        )
        self.holder = holder
        self.signature = bytes(signature)


class InvalidAcceptanceToken(InvalidConsent):
    """Raised when an acceptance token is not bound to the holder and terms"""

    def __init__(self, holder: str, token: bytes):
        super().__init__(
            "Invalid acceptance token",
            {"holder": holder, "token": "0x" + bytes(token).hex()},
        )
        self.holder = holder
        self.token = bytes(token)


class InsufficientFunds(ClaimPoolError):
    """Raised when a transfer exceeds the sender's balance"""
    pass


class InsufficientAllowance(InsufficientFunds):
    """Raised when transfer_from exceeds the spender's allowance"""
    pass


class ReentrancyError(ClaimPoolError):
    """Raised when a guarded entry point is re-entered mid-call"""
    pass


class UnsupportedOperation(ClaimPoolError):
    """Raised when an operation does not exist for this pool variant"""
    pass


class EventLogError(ClaimPoolError):
    """Raised when the audit event log cannot be written or is corrupt"""
    pass
