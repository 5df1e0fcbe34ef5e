# app/core/security.py
from fastapi import Depends, Request
from fastapi.security.utils import get_authorization_scheme_param

from app.core.errors import AuthError, PermissionDenied
from app.core.session_token import SessionUser, parse_token
from app.core.settings import settings


def _token_from_request(request: Request) -> str:
    scheme, param = get_authorization_scheme_param(request.headers.get("authorization"))
    if scheme.lower() == "bearer" and param:
        return param
    return request.cookies.get(settings.SESSION_COOKIE_NAME, "")


async def require_user(request: Request) -> SessionUser:
    """
    Reads the signed session from the `Authorization: Bearer` header or the
    session cookie.
    """
    user = parse_token(_token_from_request(request))
    if user is None:
        raise AuthError("Authentication required")
    return user


async def require_admin(user: SessionUser = Depends(require_user)) -> SessionUser:
    if not user.is_admin:
        raise PermissionDenied("Admin access required")
    return user


async def require_superuser(user: SessionUser = Depends(require_user)) -> SessionUser:
    if not user.is_superuser:
        raise PermissionDenied("Superuser access required")
    return user
