"""Authentication utilities for the LocalPro backend."""

from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from localpro.models import Actor, UserRole

from .config import Settings, get_settings
from .logging_config import log_auth_event

# Cookie name for httpOnly auth
AUTH_COOKIE_NAME = "localpro_auth"

# Make bearer optional to allow cookie fallback
security = HTTPBearer(auto_error=False)


def create_access_token(
    user_id: str,
    settings: Settings,
    role: str = UserRole.CLIENT.value,
    name: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token for a user."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)

    to_encode = {
        "sub": user_id,
        "role": role,
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "type": "access",
    }
    if name:
        to_encode["name"] = name
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthContext:
    """Identity carried by the access token."""

    def __init__(self, user_id: str, role: str = UserRole.CLIENT.value, name: str | None = None):
        self.user_id = user_id
        self.role = role
        self.name = name

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def actor(self) -> Actor:
        return Actor(id=self.user_id, name=self.name or "", role=self.role)


def _token_from_request(
    credentials: HTTPAuthorizationCredentials | None, request: Request
) -> str | None:
    # Authorization header first, then the httpOnly cookie
    if credentials:
        return credentials.credentials
    return request.cookies.get(AUTH_COOKIE_NAME)


def _context_from_token(token: str, settings: Settings) -> AuthContext:
    payload = decode_token(token, settings)
    user_id = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        log_auth_event("token", user_id, False, "invalid payload")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )
    role = payload.get("role") or UserRole.CLIENT.value
    if role not in {r.value for r in UserRole}:
        log_auth_event("token", user_id, False, f"unknown role {role}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthContext(user_id=user_id, role=role, name=payload.get("name"))


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: Request,
) -> AuthContext:
    """Get the authenticated user from the bearer token or auth cookie."""
    token = _token_from_request(credentials, request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated - provide Authorization header or auth cookie",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _context_from_token(token, settings)


async def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: Request,
) -> AuthContext | None:
    """Like get_current_user, but anonymous requests get None."""
    token = _token_from_request(credentials, request)
    if not token:
        return None
    return _context_from_token(token, settings)


async def require_admin(
    auth: Annotated[AuthContext, Depends(get_current_user)],
) -> AuthContext:
    if not auth.is_admin:
        log_auth_event("admin", auth.user_id, False, "not an admin")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return auth


# Type aliases for dependency injection
CurrentUser = Annotated[AuthContext, Depends(get_current_user)]
AdminUser = Annotated[AuthContext, Depends(require_admin)]
