"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

get_auth_service() returns the AuthService built in the app lifespan.
require_session() verifies the Authorization: Bearer <token> header and
returns the SessionClaims; it raises the same AuthError kinds as the
/auth/check endpoint, which api/main.py renders as the standard error envelope.

Use as a FastAPI dependency:
    @router.get("/protected")
    async def route(claims: SessionClaims = Depends(require_session)): ...

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Depends/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.models import SessionClaims
from auth.service import AuthService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def require_session(request: Request, service: AuthService = Depends(get_auth_service)) -> SessionClaims:
    """Require a valid session token. Raises an AuthError subclass otherwise."""
    return service.verify_authorization(request.headers.get("Authorization"))
