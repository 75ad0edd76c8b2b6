"""
auth/tokens.py -- Password hashing, JWT issuance/verification, and login.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (the identity id as a string),
       iat and exp. Nothing else -- role and name are re-read from the store on
       every request, so a token never carries stale authorization data.
       Verification raises one of three TokenError subclasses so the cause can
       be logged; the HTTP layer collapses them into a single 401.

  Passwords: bcrypt used directly (no passlib wrapper). The salt is generated
       per hash and embedded in the output, so there is no separate salt
       column. The cost factor comes from Settings.bcrypt_rounds and is never
       request-controlled. _dummy_hash() enables timing equalization in
       authenticate_user() so response time does not reveal whether an email
       is registered.

  Secrets: the signing key is passed in by the caller (from app.state.settings)
       rather than read from a module-level global, so tests and multiple app
       instances can use different keys side by side.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import TYPE_CHECKING

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("recordvault.auth")

_ALGORITHM = "HS256"

DEFAULT_BCRYPT_ROUNDS = 12
DEFAULT_TOKEN_EXPIRE_SECONDS = 24 * 3600


# ---------------------------------------------------------------------------
# Token errors
# ---------------------------------------------------------------------------


class TokenError(Exception):
    """Base class for every reason a bearer token can be rejected."""


class TokenMalformed(TokenError):
    """The token cannot be parsed, or carries no usable subject."""


class TokenInvalidSignature(TokenError):
    """The signature does not match the server secret (or uses a foreign alg)."""


class TokenExpired(TokenError):
    """The token was valid but its exp claim is in the past."""


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes of input (newer releases refuse
    longer input outright). The register schema rejects passwords over that
    limit before this function is reached.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Malformed hashes and over-long inputs make bcrypt raise ValueError; both
    count as a mismatch.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    """Hash used to burn the same bcrypt time for unknown emails.

    Cached per cost factor: the dummy must use the same rounds as real hashes
    or the timing difference would come straight back.
    """
    return hash_password("recordvault_timing_dummy", rounds=rounds)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(
    user_id: int,
    secret_key: str,
    expire_seconds: int = DEFAULT_TOKEN_EXPIRE_SECONDS,
    issued_at: datetime | None = None,
) -> str:
    """Encode a signed JWT asserting "this bearer is user_id until exp".

    Args:
        user_id:        Numeric identity ID; stored as the string sub claim.
        secret_key:     HS256 signing key (Settings.secret_key).
        expire_seconds: Lifetime measured from issued_at. Default 24 hours.
        issued_at:      Issue time. Defaults to now; tests pass a past time
                        to mint already-expired tokens.
    """
    iat = issued_at or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": iat,
        "exp": iat + timedelta(seconds=expire_seconds),
    }
    return jwt.encode(payload, secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str, secret_key: str) -> int:
    """Verify a JWT and return the identity ID it was issued for.

    Raises:
        TokenMalformed:        token is not a parseable JWT, or sub is missing
                               or not an integer id.
        TokenInvalidSignature: signature check failed.
        TokenExpired:          signature is fine but exp has passed.
    """
    # Parse first without verifying so garbage is told apart from forgeries.
    try:
        jwt.get_unverified_header(token)
        jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise TokenMalformed(str(exc)) from exc

    try:
        payload = jwt.decode(token, secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpired(str(exc)) from exc
    except JWTError as exc:
        raise TokenInvalidSignature(str(exc)) from exc

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise TokenMalformed("token has no usable sub claim") from exc


# ---------------------------------------------------------------------------
# Login authentication (timing-equalized)
# ---------------------------------------------------------------------------


def authenticate_user(
    store: UserStore,
    email: str,
    password: str,
    rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against _dummy_hash (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure. The caller must report
    both failures identically.
    """
    user = store.get_by_email(email)
    if user is None:
        # Do NOT return before running bcrypt.
        verify_password(password, _dummy_hash(rounds))
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
