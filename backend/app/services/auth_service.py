"""
Authentication service handling user registration and login.
"""

from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Conflict, Forbidden, Unauthenticated
from app.core.logging import get_logger
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User, UserRole
from app.schemas.user import UserCreate, UserLogin

logger = get_logger(__name__)


async def register_user(
    db: AsyncSession,
    user_data: UserCreate,
    role: UserRole = UserRole.USER,
) -> User:
    """
    Register a new account with a hashed password.
    Raises Conflict if the email or username already exists.
    """
    result = await db.execute(
        select(User).where(or_(User.email == user_data.email, User.username == user_data.username))
    )
    existing: Optional[User] = result.scalars().first()
    if existing is not None:
        if existing.email == user_data.email:
            logger.warning("registration_failed", reason="email_exists", email=user_data.email)
            raise Conflict("Email already registered")
        logger.warning("registration_failed", reason="username_exists", username=user_data.username)
        raise Conflict("Username already taken")

    user = User(
        email=user_data.email,
        username=user_data.username,
        hashed_password=hash_password(user_data.password),
        role=role.value,
    )
    db.add(user)
    try:
        await db.flush()
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise Conflict("Email or username already registered") from e
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id, email=user.email, role=user.role)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> tuple[str, User]:
    """
    Check credentials and issue an access token.
    Raises Unauthenticated on bad credentials, Forbidden on a deactivated account.
    """
    result = await db.execute(select(User).where(User.email == login_data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise Unauthenticated("Invalid email or password")

    if not user.is_active:
        raise Forbidden("Account is deactivated")

    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    logger.info("user_logged_in", user_id=user.id)
    return token, user
