"""
claimpool/core/canonical.py

Byte encoding of audit records for hashing and signing (RFC 8785 / JCS).

JCS writes every number as an IEEE double. Token amounts live far above
2**53, so event payloads carry them as decimal strings and this module
refuses any integer a double cannot hold exactly. A silently rounded
amount would hash fine and still be wrong.
"""

import hashlib
from typing import Any, Mapping

try:
    import jcs
except ImportError as exc:
    raise ImportError(
        "claimpool needs the 'jcs' package to encode audit records.\n"
        "Install with: pip install jcs\n"
        f"Import failed with: {exc}"
    ) from exc

MAX_SAFE_INTEGER = 2 ** 53 - 1


def _check_numbers(value: Any, path: str) -> None:
    if isinstance(value, bool):
        return
    if isinstance(value, int):
        if abs(value) > MAX_SAFE_INTEGER:
            raise ValueError(f"{path}: integer {value} is not exact in JSON; pass it as a string")
    elif isinstance(value, float):
        raise ValueError(f"{path}: floats are not allowed in audit records")
    elif isinstance(value, Mapping):
        for key, item in value.items():
            _check_numbers(item, f"{path}.{key}")
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _check_numbers(item, f"{path}[{index}]")


def canonical_bytes(record: Mapping[str, Any]) -> bytes:
    """The exact bytes an audit signature covers."""
    _check_numbers(record, "record")
    return jcs.canonicalize(dict(record))


def chain_digest(record: Mapping[str, Any]) -> str:
    """Lowercase hex SHA-256 of canonical_bytes(record); the next record's causal_hash."""
    return hashlib.sha256(canonical_bytes(record)).hexdigest()
