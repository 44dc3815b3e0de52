"""
Hashing capabilities used by the credential store
Handlers depend on hash/verify only, so the primitives can be swapped
"""

import hashlib
import hmac
import secrets

from passlib.context import CryptContext


class PasswordHasher:
    """Salted, slow hashing for passwords (bcrypt, random salt per record)"""

    def __init__(self, rounds: int = 12):
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, plain: str) -> str:
        return self.pwd_context.hash(plain)

    def verify(self, plain: str, digest: str) -> bool:
        if not plain or not digest:
            return False
        try:
            return self.pwd_context.verify(plain, digest)
        except ValueError:
            # Stored value is not a recognised hash
            return False


class TokenHasher:
    """Fast deterministic hashing for high-entropy one-time tokens"""

    def hash(self, plain: str) -> str:
        return hashlib.sha256(plain.encode("utf-8")).hexdigest()

    def verify(self, plain: str, digest: str) -> bool:
        if not plain or not digest:
            return False
        return hmac.compare_digest(self.hash(plain), digest)


def generate_token(nbytes: int = 32) -> str:
    """Random hex token for reset and verification links"""
    return secrets.token_hex(nbytes)
