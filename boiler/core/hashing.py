"""Content hashing used to fingerprint derived assets."""

import hashlib


def fingerprint(content: bytes) -> str:
    """Return the SHA-256 hex digest of some content.

    Args:
        content: Bytes to hash (may be empty)

    Returns:
        str: 64 character lowercase hex digest
    """
    return hashlib.sha256(content).hexdigest()
