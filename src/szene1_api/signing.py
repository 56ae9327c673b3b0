"""Request signatures and credential hashing.

The service authenticates every request with an ``authsecret`` derived from
the called section and method plus the application's key and secret. MD5 is
what the service verifies against; it is kept for wire compatibility only.
"""

import hashlib


def _md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()  # noqa: S324


def sign(section: str, method: str, api_key: str, api_secret: str) -> str:
    """Compute the auth secret for one request.

    The four inputs are concatenated in order without a delimiter and hashed,
    so the result depends only on the concatenated text.

    Args:
        section: API section, e.g. ``"user"``.
        method: API method within the section, e.g. ``"login"``.
        api_key: Application API key.
        api_secret: Application API secret.

    Returns:
        Lowercase hex MD5 digest.
    """
    return _md5_hex(section + method + api_key + api_secret)


def hash_password(password: str) -> str:
    """Hash a plaintext password the way ``user/login`` expects it."""
    return _md5_hex(password)
