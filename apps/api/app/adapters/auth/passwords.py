"""bcrypt password hashing."""

import bcrypt

from app.adapters.auth.base import PasswordHasher


class BcryptPasswordHasher(PasswordHasher):
    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash_password(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def verify_password(self, plaintext: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Malformed or foreign hash formats never match.
            return False


__all__ = ["BcryptPasswordHasher"]
