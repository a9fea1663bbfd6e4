import hashlib
import secrets
from typing import Optional


def hash_password(password: str, salt: Optional[str] = None) -> str:
    if salt is None:
        salt = secrets.token_hex(16)
    digest = hashlib.sha256((salt + password).encode()).hexdigest()
    return f"{salt}${digest}"


def verify_password(password: str, stored_hash: Optional[str]) -> bool:
    if not stored_hash:
        return False
    try:
        salt, _digest = stored_hash.split("$")
    except ValueError:
        return False
    return secrets.compare_digest(hash_password(password, salt), stored_hash)


def new_session_token() -> str:
    return secrets.token_urlsafe(32)
