"""
Authentication & authorization.

Password hashing, signed bearer tokens, registration/login flows and the
FastAPI dependencies that resolve the caller and gate admin-only routes.
"""

import base64
import hashlib
import hmac
import json
import logging
import time

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool
from werkzeug.security import check_password_hash, generate_password_hash

import schemas
from config import SECRET_KEY, TOKEN_EXPIRY_MINUTES
from crud.user import create_user, email_exists, find_user_by_username, username_exists
from database import get_db
from errors import Conflict, InvalidCredentials
from models import Role, User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# ─────────────────────── PASSWORDS ───────────────────────
def hash_password(plain: str) -> str:
    return generate_password_hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return check_password_hash(hashed, plain)


# ─────────────────────── TOKENS ───────────────────────
def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _unb64(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _sign(message: str, secret: str) -> str:
    return _b64(hmac.new(secret.encode(), message.encode(), hashlib.sha256).digest())


def create_token(user_id: int, username: str, role: Role, secret: str = SECRET_KEY,
                 expires_in: int = TOKEN_EXPIRY_MINUTES * 60) -> str:
    """Create an HS256-signed JWT carrying the user id, name and role."""
    header = _b64(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
    payload = _b64(json.dumps({
        "sub": user_id,
        "name": username,
        "role": Role(role).value,
        "exp": int(time.time()) + expires_in,
    }).encode())
    return f"{header}.{payload}.{_sign(f'{header}.{payload}', secret)}"


def decode_token(token: str, secret: str = SECRET_KEY) -> dict | None:
    """Verify and decode the token. Returns None if malformed, tampered with or expired."""
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header, payload, sig = parts
    expected = _sign(f"{header}.{payload}", secret)
    if not hmac.compare_digest(sig.encode(), expected.encode()):
        return None
    try:
        data = json.loads(_unb64(payload))
    except ValueError:
        return None
    if not isinstance(data, dict) or data.get("exp", 0) < time.time():
        return None
    return data


def token_response(user: User) -> schemas.TokenResponse:
    return schemas.TokenResponse(
        token=create_token(user.id, user.username, user.role),
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
    )


# ─────────────────────── FLOWS ───────────────────────
async def register_user(db: AsyncSession, data: schemas.RegisterRequest) -> schemas.TokenResponse:
    """Create a customer account and log it in."""
    if await username_exists(db, data.username):
        raise Conflict("Username is already taken!")
    if await email_exists(db, data.email):
        raise Conflict("Email is already in use!")

    pw_hash = await run_in_threadpool(hash_password, data.password)
    user = await create_user(
        db, data.username, data.email, pw_hash, role=Role.CUSTOMER,
        first_name=data.first_name, last_name=data.last_name,
        address=data.address, phone=data.phone,
    )
    logger.info("Registered user %s (id %s)", user.username, user.id)
    return token_response(user)


async def authenticate(db: AsyncSession, username: str, password: str) -> schemas.TokenResponse:
    user = await find_user_by_username(db, username)
    if user is None or not await run_in_threadpool(verify_password, password, user.password_hash):
        logger.warning("Failed login for %r", username)
        raise InvalidCredentials()
    return token_response(user)


# ─────────────────────── DEPENDENCIES ───────────────────────
def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status.HTTP_401_UNAUTHORIZED, detail, headers={"WWW-Authenticate": "Bearer"})


async def current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the caller from the bearer token; 401 if there is none or it is invalid."""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    data = decode_token(credentials.credentials)
    if data is None:
        raise _unauthorized("Invalid or expired token")
    user_id = data.get("sub")
    user = await db.get(User, user_id) if isinstance(user_id, int) else None
    if user is None:
        raise _unauthorized("User no longer exists")
    return user


async def require_admin(user: User = Depends(current_user)) -> User:
    if user.role != Role.ADMIN:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Admin access required")
    return user
