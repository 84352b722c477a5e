"""Credential hashing and verification (bcrypt)"""

import bcrypt

DEFAULT_ROUNDS = 12


def hash_secret(secret: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a secret using bcrypt"""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(secret.encode("utf-8"), salt).decode("utf-8")


def verify_secret(secret: str, secret_hash: str) -> bool:
    """Verify a secret against its stored hash"""
    try:
        return bcrypt.checkpw(secret.encode("utf-8"), secret_hash.encode("utf-8"))
    except (ValueError, TypeError):
        # Stored value is not a bcrypt hash
        return False
