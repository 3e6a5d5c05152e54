# crud/user.py - identity store
from typing import Optional

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from errors import NotFound
from models import Role, User


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound(f"User not found with id: {user_id}")
    return user


async def find_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def find_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def username_exists(db: AsyncSession, username: str) -> bool:
    return bool(await db.scalar(select(exists().where(User.username == username))))


async def email_exists(db: AsyncSession, email: str) -> bool:
    return bool(await db.scalar(select(exists().where(User.email == email))))


async def create_user(db: AsyncSession, username: str, email: str, password_hash: str,
                      role: Role = Role.CUSTOMER, **profile) -> User:
    user = User(username=username, email=email, password_hash=password_hash, role=role, **profile)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user
