"""
Supabase JWT authentication.

The mobile app signs users in with Supabase Auth and sends the session's
access token as a Bearer header. Tokens are checked locally against the
project's JWT secret, so no request is made to Supabase.

Usage:
    from core.auth import require_auth, AuthenticatedUser

    @router.get("/api/wardrobe/items")
    def list_items(user: AuthenticatedUser = Depends(require_auth)):
        ...
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.settings import get_settings
from core.logging import bind_context


JWT_ALGORITHMS = ["HS256"]
JWT_AUDIENCE = "authenticated"

bearer_scheme = HTTPBearer(
    scheme_name="Supabase JWT",
    description="Access token from the app's Supabase Auth session.",
    auto_error=False,
)


@dataclass
class AuthenticatedUser:
    """The signed-in user. ``id`` owns every row and Storage folder they touch."""
    id: str
    email: Optional[str] = None
    role: str = "authenticated"
    is_anonymous: bool = False


class _Unauthorized(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


def verify_jwt(token: str) -> Dict[str, Any]:
    """
    Decode a Supabase access token.

    Raises:
        HTTPException: 401 for a bad signature, an expired token or the wrong audience
    """
    try:
        return jwt.decode(
            token,
            get_settings().supabase_jwt_secret,
            algorithms=JWT_ALGORITHMS,
            audience=JWT_AUDIENCE,
            options={"require": ["sub", "exp", "aud"]},
        )
    except jwt.ExpiredSignatureError:
        raise _Unauthorized("Token has expired")
    except jwt.InvalidAudienceError:
        raise _Unauthorized("Invalid token audience")
    except jwt.InvalidTokenError as e:
        raise _Unauthorized(f"Invalid token: {e}")


def user_from_claims(claims: Dict[str, Any]) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=claims["sub"],
        email=claims.get("email"),
        role=claims.get("role", JWT_AUDIENCE),
        is_anonymous=bool(claims.get("is_anonymous", False)),
    )


async def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """FastAPI dependency: the verified user, or 401."""
    if credentials is None or not credentials.credentials:
        raise _Unauthorized("Authorization header required")

    user = user_from_claims(verify_jwt(credentials.credentials))
    bind_context(user_id=user.id)
    return user
