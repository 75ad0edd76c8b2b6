"""
auth/dependencies.py -- FastAPI Depends() helper that establishes identity.

get_current_user() is the "requires identity" capability. Routers compose it
either per route (Depends(get_current_user) as a parameter) or for a whole
router (APIRouter(dependencies=[Depends(get_current_user)])). It:

  1. Reads the Authorization: Bearer <token> header.
  2. Verifies the token with the app's signing key.
  3. Re-resolves the identity from the store -- on every request, with no
     caching, so a deleted identity stops working immediately.
  4. Stores the User on request.state.user and returns it.

Every failure raises core.errors.Unauthenticated (401). The three token
sub-causes (malformed, bad signature, expired) share one client message and
are told apart only in the log.

Layer rule: no imports from api/ or records/. Imports from fastapi are allowed
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenError, decode_access_token
from core.errors import Unauthenticated

logger = logging.getLogger("recordvault.auth")

_BEARER_PREFIX = "Bearer "


def _extract_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(_BEARER_PREFIX):
        return None
    return auth_header[len(_BEARER_PREFIX) :].strip() or None


def get_current_user(request: Request) -> User:
    """Require a valid bearer token. Raises Unauthenticated (HTTP 401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    token = _extract_bearer_token(request)
    if token is None:
        raise Unauthenticated("Access token required")

    settings = request.app.state.settings
    try:
        user_id = decode_access_token(token, settings.secret_key)
    except TokenError as exc:
        logger.info("Rejected bearer token on %s: %s (%s)", request.url.path, type(exc).__name__, exc)
        raise Unauthenticated("Invalid or expired token") from exc

    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(user_id)
    if user is None:
        logger.info("Bearer token for unknown user_id=%s on %s", user_id, request.url.path)
        raise Unauthenticated("Invalid token")

    request.state.user = user
    return user
