# smartauto/auth.py
import logging
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from jose import jwt
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import ALGORITHM, get_auth_context, secret_key
from .session import AuthContext
from . import crud

logger = logging.getLogger(__name__)

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

router = APIRouter(prefix="", tags=["auth"])

class SignupIn(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)

class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"

class LoginIn(BaseModel):
    email: EmailStr
    password: str

def create_access_token(data: dict, expires_delta: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_delta)
    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, secret_key(), algorithm=ALGORITHM)

def token_for(user, role: Optional[str] = None) -> str:
    claims = {"sub": user.user_id, "email": user.email}
    if role:
        claims["role"] = role
    return create_access_token(claims)

async def authenticate(db: AsyncSession, email: str, password: str):
    user = await crud.get_user_by_email(db, email)
    if not user or not crud.verify_password(password, user.password_hash):
        return None
    return user

async def sign_out(db: AsyncSession, ctx: AuthContext):
    jti = ctx.claims.get("jti")
    if jti:
        await crud.revoke_token(db, jti)
    ctx.sign_out()

@router.post("/signup", response_model=TokenOut)
async def signup(payload: SignupIn, db: AsyncSession = Depends(get_db)):
    existing = await crud.get_user_by_email(db, payload.email)
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    user = await crud.create_user(db, payload.name.strip(), payload.email, payload.password)
    logger.info("[AUTH] signup %s", user.user_id)
    return {"access_token": token_for(user), "token_type": "bearer"}

@router.post("/login", response_model=TokenOut)
async def login(payload: LoginIn, db: AsyncSession = Depends(get_db)):
    user = await authenticate(db, payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return {"access_token": token_for(user), "token_type": "bearer"}

@router.post("/logout")
async def logout(ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    if not ctx.authenticated:
        raise HTTPException(status_code=401, detail="Missing auth token")
    user_id = ctx.identity.user_id
    await sign_out(db, ctx)
    logger.info("[AUTH] signed out %s", user_id)
    return {"ok": True}

@router.get("/me")
async def me(ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    if not ctx.authenticated:
        raise HTTPException(status_code=401, detail="Missing auth token")
    user = await crud.get_user_by_id(db, ctx.identity.user_id)
    return {
        "user_id": ctx.identity.user_id,
        "email": ctx.identity.email,
        "name": user.name if user else None,
    }
