# app/core/session_token.py
from __future__ import annotations
import hmac, hashlib, base64, binascii
from dataclasses import dataclass
from typing import Optional
from app.core.settings import settings

ROLES = ("member", "admin", "superuser")


@dataclass(frozen=True)
class SessionUser:
    user_id: int
    role: str = "member"

    @property
    def is_admin(self) -> bool:
        return self.role in ("admin", "superuser")

    @property
    def is_superuser(self) -> bool:
        return self.role == "superuser"


def _secret() -> bytes:
    secret = (settings.SESSION_SECRET or "").encode()
    if not secret:
        raise RuntimeError("SESSION_SECRET not configured")
    return secret


def _sign(payload: bytes) -> bytes:
    return hmac.new(_secret(), payload, hashlib.sha256).digest()


def make_token(user_id: int, role: str = "member") -> str:
    if role not in ROLES:
        raise ValueError(f"unknown role: {role}")
    payload = f"{user_id}:{role}".encode()
    raw = payload + b"." + _sign(payload)
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def parse_token(token: str) -> Optional[SessionUser]:
    """The signed user, or None for anything malformed or tampered with."""
    if not token:
        return None
    try:
        pad = "=" * (-len(token) % 4)
        raw = base64.urlsafe_b64decode(token + pad)
    except (binascii.Error, ValueError):
        return None

    # payload never contains b".", the signature may
    payload, sep, sig = raw.partition(b".")
    if not sep or not hmac.compare_digest(sig, _sign(payload)):
        return None

    try:
        user_part, role = payload.decode().split(":", 1)
        user_id = int(user_part)
    except (UnicodeDecodeError, ValueError):
        return None
    if role not in ROLES:
        return None
    return SessionUser(user_id=user_id, role=role)
