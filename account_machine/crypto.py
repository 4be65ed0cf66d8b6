"""
Password digest used by the registration endpoint
"""

import hashlib


def digest_md5(text: str) -> str:
    """Return the MD5 digest of ``text`` as 32 lowercase hex characters.

    The registration API expects passwords hashed this way. MD5 gives no
    security here; the output only has to match the reference algorithm.
    """
    if not isinstance(text, str):
        raise TypeError(f"digest_md5 expects str, got {type(text).__name__}")
    return hashlib.md5(text.encode("utf-8")).hexdigest()
