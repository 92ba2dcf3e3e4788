# copilot_server/core/security.py
"""Password hashing (salted, slow, one-way) via passlib."""
from passlib.context import CryptContext

_pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Constant-time check of `password` against a stored hash.

    Never raises: blank input or an unrecognised / corrupt hash is a mismatch.
    """
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except (ValueError, TypeError):
        return False
