"""Viewer identity dependencies.

Write endpoints depend on ``get_auth_context``; read endpoints use
``get_viewer_context``, which lets anonymous requests through as ``None``.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from services.session_token import decode_session_token


auth_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    user_id: str
    handle: Optional[str] = None


def _context_from_credentials(credentials: HTTPAuthorizationCredentials) -> AuthContext:
    if credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing Bearer session token.")
    try:
        claims = decode_session_token(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return AuthContext(user_id=claims.user_id, handle=claims.handle)


async def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
) -> AuthContext:
    if not credentials:
        raise HTTPException(status_code=401, detail="Missing Bearer session token.")
    return _context_from_credentials(credentials)


async def get_viewer_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
) -> Optional[AuthContext]:
    """Anonymous when no token is sent; a token that is sent must still be valid."""
    if not credentials:
        return None
    return _context_from_credentials(credentials)


def viewer_id_of(context: Optional[AuthContext]) -> Optional[str]:
    return context.user_id if context else None
