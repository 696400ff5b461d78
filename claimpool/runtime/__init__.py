"""
ClaimPool runtime — configured pools wired to their audit log.
"""

from claimpool.runtime.context import RuntimeContext

__all__ = ["RuntimeContext"]
