#!/usr/bin/env python3
"""
Create an admin account, or promote an existing one.

Usage:
  python scripts/create_admin.py --email admin@example.com --username admin --password 'S3cret-pass'

Self-registration only ever creates role "user"; this is the way in for admins.
"""

import argparse
import asyncio
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select  # noqa: E402

from app.core.logging import get_logger, setup_logging  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.db.session import AsyncSessionLocal, engine  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402
from app.schemas.user import UserCreate  # noqa: E402
from app.services.auth_service import register_user  # noqa: E402

logger = get_logger("create_admin")


async def create_admin(email: str, username: str, password: str) -> User:
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is not None:
            user.role = UserRole.ADMIN.value
            user.hashed_password = hash_password(password)
            user.is_active = True
            await db.commit()
            logger.info("admin_promoted", user_id=user.id, email=email)
            return user

        user_data = UserCreate(email=email, username=username, password=password)
        user = await register_user(db, user_data, role=UserRole.ADMIN)
        logger.info("admin_created", user_id=user.id, email=email)
        return user


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--email", required=True)
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", required=True)
    args = parser.parse_args()

    setup_logging()

    async def run() -> None:
        try:
            await create_admin(args.email, args.username, args.password)
        finally:
            await engine.dispose()

    asyncio.run(run())


if __name__ == "__main__":
    main()
