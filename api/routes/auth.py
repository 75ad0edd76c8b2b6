"""
api/routes/auth.py -- Registration, login and current-identity endpoints.

Routes:
  POST /api/auth/register  -- create an identity; returns token + user (201)
  POST /api/auth/login     -- password login; returns token + user (200)
  GET  /api/auth/me        -- current identity (requires bearer token)

Security:
  POST /login is rate-limited to 10 requests/minute per client address and
      POST /register to 5/minute (brute-force and signup-spam mitigation).
  authenticate_user() provides timing equalization -- use it, never inline
      get_by_email() + verify_password().
  Unknown email and wrong password return the identical InvalidCredentials
      response, so login cannot be used to probe which emails are registered.
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.limiter import limiter
from api.models import AuthResponse, LoginRequest, MeResponse, RegisterRequest, UserResponse
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import UserStore
from auth.tokens import authenticate_user, create_access_token, hash_password
from core.errors import Conflict, InvalidCredentials

logger = logging.getLogger("recordvault.api.auth")

# Auth policy:
# - POST /api/auth/register: public -- creates the identity
# - POST /api/auth/login:    public -- login endpoint must be unauthenticated
# - GET  /api/auth/me:       requires auth (get_current_user)
router = APIRouter()


def _token_response(request: Request, user: User, message: str, status_code: int) -> JSONResponse:
    settings = request.app.state.settings
    token = create_access_token(user.id, settings.secret_key, expire_seconds=settings.token_expire_seconds)
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(message=message, token=token, user=UserResponse.from_user(user)).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
@limiter.limit("5/minute")  # innermost, so the router registers the limited function
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an identity with role "user" and log it in.

    The get_by_email() pre-check handles the common duplicate case; the
    IntegrityError branch covers two concurrent registrations for the same
    email, where only the UNIQUE constraint can pick a winner.
    """
    settings = request.app.state.settings
    user_store: UserStore = request.app.state.user_store

    if user_store.get_by_email(body.email) is not None:
        raise Conflict("User already exists")

    new_user = User(
        name=body.name,
        email=body.email,
        hashed_password=hash_password(body.password, rounds=settings.bcrypt_rounds),
    )
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise Conflict("User already exists") from exc

    created = user_store.get_by_id(user_id)
    logger.info("Registered user_id=%s", user_id)
    return _token_response(request, created, "User created successfully", 201)


@router.post("/auth/login", response_model=AuthResponse)
@limiter.limit("10/minute")
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password and issue a fresh token."""
    settings = request.app.state.settings
    user_store: UserStore = request.app.state.user_store

    user = authenticate_user(user_store, body.email, body.password, rounds=settings.bcrypt_rounds)
    if user is None:
        raise InvalidCredentials("Invalid credentials")

    logger.info("Login succeeded for user_id=%s", user.id)
    return _token_response(request, user, "Login successful", 200)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return the identity resolved by get_current_user for this request."""
    return MeResponse(user=UserResponse.from_user(current_user))
