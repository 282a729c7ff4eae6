"""One-time codes for delivery confirmation and password resets."""
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import bcrypt

from ..utils.clock import utcnow


def generate_code() -> str:
    """Six-digit numeric code, never starting with 0."""
    return str(100000 + secrets.randbelow(900000))


def hash_code(code: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(code.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def code_matches(code, hashed) -> bool:
    if not code or not hashed:
        return False
    try:
        return bcrypt.checkpw(str(code).strip().encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


@dataclass
class IssuedOtp:
    code: str
    hashed: str
    expires_at: datetime


class OtpGenerator:
    def __init__(self, ttl_minutes: int = 10, clock=utcnow, rounds: int = 10):
        self.ttl = timedelta(minutes=ttl_minutes)
        self.clock = clock
        self.rounds = rounds

    def issue(self) -> IssuedOtp:
        code = generate_code()
        return IssuedOtp(code=code, hashed=hash_code(code, self.rounds), expires_at=self.clock() + self.ttl)

    def is_expired(self, expires_at) -> bool:
        return expires_at is None or self.clock() > expires_at

    @staticmethod
    def matches(code, hashed) -> bool:
        return code_matches(code, hashed)
