"""Verification of Bearer session tokens.

Tokens are issued by the identity service; this API only checks them and reads
the acting user out of the claims.
"""

from dataclasses import dataclass
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt

from config import settings


SESSION_TOKEN_TYPE = "vidnest_session"


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    handle: Optional[str] = None


def decode_session_token(token: str) -> SessionClaims:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise ValueError("Session token has expired.") from exc
    except JWTError as exc:
        raise ValueError("Invalid session token.") from exc

    if payload.get("type") != SESSION_TOKEN_TYPE:
        raise ValueError("Invalid session token type.")
    user_id = str(payload.get("sub") or "").strip()
    if not user_id:
        raise ValueError("Session token missing subject.")
    return SessionClaims(user_id=user_id, handle=payload.get("handle") or None)
