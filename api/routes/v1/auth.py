"""
api/routes/v1/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/v1/auth/register   -- create an account; 201 with token
  POST /api/v1/auth/login      -- email/password login; 200 with token
  GET  /api/v1/auth/check      -- verify the Bearer token; 200 {"ok": true}
  GET  /api/v1/auth/session    -- verified claims of the Bearer token

Errors are raised by AuthService as AuthError subclasses and rendered by the
exception handler in api/main.py -- routes never build error bodies themselves.

Security:
  [C1] AuthService.login() provides timing equalization -- use it, never inline
       get_by_email() + verify().
  [M5] Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from api.models import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    SessionResponse,
    SessionUser,
    TokenCheckResponse,
)
from auth.dependencies import get_auth_service, require_session
from auth.models import SessionClaims
from auth.service import AuthService

# Auth policy:
# - POST /api/v1/auth/register: public
# - POST /api/v1/auth/login:    public
# - GET  /api/v1/auth/check:    Bearer token checked in the handler
# - GET  /api/v1/auth/session:  requires a valid token (require_session)
router = APIRouter()


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
async def register(
    response: Response,
    body: Optional[RegisterRequest] = None,
    service: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    """Register a new account and return it with a session token.

    A missing body is treated like a body with every field missing.
    """
    body = body or RegisterRequest()
    session = await service.register(body.username, body.email, body.password)
    response.headers["Cache-Control"] = "no-store"  # [M5]
    return RegisterResponse(registered_user=SessionUser.from_session(session))


@router.post("/auth/login", response_model=LoginResponse)
async def login(
    response: Response,
    body: Optional[LoginRequest] = None,
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Authenticate with email and password; return the account with a session token.

    An unknown email and a wrong password produce the identical
    InvalidEmailOrPassword response.
    """
    body = body or LoginRequest()
    session = await service.login(body.email, body.password)
    response.headers["Cache-Control"] = "no-store"  # [M5]
    return LoginResponse(logged_user=SessionUser.from_session(session))


@router.get("/auth/check", response_model=TokenCheckResponse)
async def check_token(request: Request, service: AuthService = Depends(get_auth_service)) -> TokenCheckResponse:
    """Verify the Authorization: Bearer token. Claims are not returned."""
    service.verify_authorization(request.headers.get("Authorization"))
    return TokenCheckResponse(ok=True)


@router.get("/auth/session", response_model=SessionResponse)
async def session_info(claims: SessionClaims = Depends(require_session)) -> SessionResponse:
    """Return the verified claims of the presented token."""
    return SessionResponse(email=claims.email, issued_at=claims.issued_at, expires_at=claims.expires_at)
