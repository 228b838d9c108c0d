# smartauto/deps.py
import os
from collections.abc import AsyncGenerator
from typing import Any, Dict

import httpx
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from . import crud
from .db import get_db
from .errors import InvalidToken
from .relay_client import RelayClient
from .session import AuthContext, Identity

ALGORITHM = "HS256"
RELAY_TIMEOUT_SECONDS = float(os.getenv("RELAY_TIMEOUT_SECONDS", "15"))

security = HTTPBearer(auto_error=False)


def secret_key() -> str:
    return os.getenv("JWT_SECRET_KEY", "change_me_long_secret")


def relay_url() -> str:
    return os.getenv("RELAY_URL") or f"http://localhost:{os.getenv('PORT', '8000')}/webhook-proxy"


async def resolve_claims(db: AsyncSession, token: str) -> Dict[str, Any]:
    """Resolve a bearer token to its claims, or raise InvalidToken."""
    try:
        payload = jwt.decode(token, secret_key(), algorithms=[ALGORITHM])
    except JWTError as e:
        raise InvalidToken() from e
    if not payload.get("sub"):
        raise InvalidToken()
    jti = payload.get("jti")
    if jti and await crud.is_token_revoked(db, jti):
        raise InvalidToken("Token revoked")
    return payload


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    if credentials is None:
        return AuthContext()
    try:
        claims = await resolve_claims(db, credentials.credentials)
    except InvalidToken:
        return AuthContext()
    return AuthContext.from_claims(credentials.credentials, claims)


def get_user_from_token(ctx: AuthContext = Depends(get_auth_context)) -> Identity:
    if not ctx.authenticated:
        raise HTTPException(status_code=401, detail="Missing auth token")
    return ctx.identity


async def require_owner(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing auth token")
    try:
        claims = await resolve_claims(db, credentials.credentials)
    except InvalidToken as e:
        raise HTTPException(status_code=401, detail=e.message)
    if claims.get("role") != "owner":
        raise HTTPException(status_code=403, detail="Owner access required")
    return AuthContext.from_claims(credentials.credentials, claims)


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(timeout=RELAY_TIMEOUT_SECONDS) as client:
        yield client


async def get_relay_client(
    ctx: AuthContext = Depends(get_auth_context),
) -> AsyncGenerator[RelayClient, None]:
    async with httpx.AsyncClient(timeout=RELAY_TIMEOUT_SECONDS) as http:
        yield RelayClient(http, relay_url(), ctx.token)
