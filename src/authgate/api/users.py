"""User API routes.

Learn: the whole router is mounted behind get_current_user (see
api/__init__.py), so every read here is "any authenticated identity".
Writes pass the identity on to the service, which applies the
owner-only rule.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.api.errors import raise_for_outcome
from authgate.auth.dependencies import CurrentIdentity, get_current_user
from authgate.db.engine import get_db
from authgate.db.models import User
from authgate.schemas.auth import UserRead
from authgate.schemas.user import UserUpdate
from authgate.services.user_service import UserService

router = APIRouter(prefix="/users")


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


async def _get_or_404(user_id: uuid.UUID, svc: UserService) -> User:
    user = await svc.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("", response_model=list[UserRead])
async def search_users(
    name: str = Query("", max_length=255),
    svc: UserService = Depends(_svc),
):
    return await svc.search(name)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(user_id: uuid.UUID, svc: UserService = Depends(_svc)):
    return await _get_or_404(user_id, svc)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    """Rename a user. Owner only."""
    user = await _get_or_404(user_id, svc)
    outcome = await svc.rename(user, body.name, identity)
    raise_for_outcome(outcome)
    return outcome.value


@router.delete("/{user_id}")
async def delete_user(
    user_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    """Delete a user. Owner only."""
    user = await _get_or_404(user_id, svc)
    outcome = await svc.delete(user, identity)
    raise_for_outcome(outcome)
    return {"deleted": True}
