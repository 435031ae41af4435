"""Optional BLAKE3 support. When blake3 is not installed, helpers return None."""

from __future__ import annotations

from typing import Any, Optional

_blake3_module = None

def _get_blake3():
    global _blake3_module
    if _blake3_module is None:
        try:
            import blake3 as b
            _blake3_module = b
        except ImportError:
            _blake3_module = False
    return _blake3_module if _blake3_module else None


def hexdigest(data: bytes) -> Optional[str]:
    """Return BLAKE3-256 hex digest of data, or None if blake3 is not installed."""
    b3 = _get_blake3()
    if b3 is None:
        return None
    return b3.blake3(data).hexdigest()


def hasher() -> Optional[Any]:
    """Return a fresh incremental BLAKE3 hasher, or None if blake3 is not installed."""
    b3 = _get_blake3()
    if b3 is None:
        return None
    return b3.blake3()
