from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.api.deps import get_current_user
from taskflow.auth.security import create_access_token, get_password_hash, verify_password
from taskflow.db import commit_or_conflict, get_db
from taskflow.errors import ConflictError, UnauthorizedError
from taskflow.models.user import User
from taskflow.schemas.auth import LoginRequest, TokenResponse
from taskflow.schemas.user import UserCreate, UserOut


logger = logging.getLogger(__name__)

router = APIRouter()

EMAIL_TAKEN = "User with this email already exists"


def _user_out(user: User) -> UserOut:
    return UserOut(id=user.id, email=user.email, name=user.name, created_at=user.created_at)


@router.post("/signup", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def signup(payload: UserCreate, db: AsyncSession = Depends(get_db)) -> UserOut:
    email = payload.email.strip().lower()
    existing = (await db.execute(select(User.id).where(User.email == email))).scalar_one_or_none()
    if existing is not None:
        raise ConflictError(EMAIL_TAKEN)

    name = payload.name.strip() if payload.name else None
    user = User(email=email, password_hash=get_password_hash(payload.password), name=name or None)
    db.add(user)
    await commit_or_conflict(db, EMAIL_TAKEN)
    await db.refresh(user)
    logger.info("User %s signed up", user.id)
    return _user_out(user)


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    email = payload.email.strip().lower()
    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if user is None or not verify_password(payload.password, user.password_hash):
        raise UnauthorizedError("Invalid credentials")
    return TokenResponse(access_token=create_access_token(user_id=user.id, email=user.email))


@router.get("/me", response_model=UserOut)
async def me(user=Depends(get_current_user)) -> UserOut:
    return _user_out(user)
