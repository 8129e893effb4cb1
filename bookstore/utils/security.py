import hmac
import secrets
from datetime import datetime
from typing import Optional

from bookstore.models.user import User

SECURITY_TOKEN_BYTES = 32


def mint_security_token() -> str:
    """Bearer credential for a digital rental: 64 hex chars from the OS CSPRNG."""
    return secrets.token_hex(SECURITY_TOKEN_BYTES)


def tokens_match(expected: str, presented: Optional[str]) -> bool:
    if not presented:
        return False
    return hmac.compare_digest(expected.encode(), presented.encode())


def watermark_payload(
    user: User,
    license_id: int,
    issued_at: datetime,
    device_fingerprint: Optional[str] = None,
) -> dict:
    """Metadata embedded into served content to trace redistribution."""
    return {
        "user_id": user.id,
        "user_name": user.display_name,
        "license_id": license_id,
        "issued_at": issued_at.isoformat(),
        "device_fingerprint": device_fingerprint or "unknown",
    }
