"""
Seed script: creates a default business, its admin user and a default
attendance policy.

Usage (inside container):
    python -m emenu.db.seed
"""

import asyncio
import logging
from datetime import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from emenu.core.security import hash_password
from emenu.db.models import AttendancePolicy, Business, User
from emenu.db.session import AsyncSessionLocal

logger = logging.getLogger(__name__)

DEFAULT_BUSINESS_NAME = "Default Restaurant"


async def create_business(session: AsyncSession) -> Business:
    result = await session.execute(select(Business).where(Business.name == DEFAULT_BUSINESS_NAME))
    business = result.scalar_one_or_none()
    if business:
        logger.info("Business '%s' already exists, skipping.", DEFAULT_BUSINESS_NAME)
        return business

    business = Business(name=DEFAULT_BUSINESS_NAME)
    session.add(business)
    await session.flush()
    logger.info("Created business: id=%s", business.id)
    return business


async def create_admin(session: AsyncSession, business: Business) -> User:
    result = await session.execute(select(User).where(User.username == "admin"))
    admin = result.scalar_one_or_none()
    if admin:
        logger.info("Admin user already exists, skipping.")
        return admin

    admin = User(
        username="admin",
        password_hash=hash_password("admin123"),
        role="admin",
        full_name="System Administrator",
        business_id=business.id,
        is_active=True,
    )
    session.add(admin)
    await session.flush()
    logger.info("Created admin user: id=%s", admin.id)
    return admin


async def create_default_policy(session: AsyncSession, business: Business) -> AttendancePolicy:
    result = await session.execute(
        select(AttendancePolicy).where(AttendancePolicy.business_id == business.id)
    )
    policy = result.scalars().first()
    if policy:
        logger.info("Business already has an attendance policy, skipping.")
        return policy

    policy = AttendancePolicy(
        business_id=business.id,
        name="Standard shift",
        shift_start=time(9, 0),
        shift_end=time(18, 0),
        late_threshold_minutes=15,
        half_day_threshold_minutes=240,
        break_start=time(12, 0),
        break_end=time(13, 0),
        require_location_check=False,
        is_active=True,
    )
    session.add(policy)
    await session.flush()
    logger.info("Created default attendance policy: id=%s", policy.id)
    return policy


async def main() -> None:
    async with AsyncSessionLocal() as session:
        async with session.begin():
            business = await create_business(session)
            await create_admin(session, business)
            await create_default_policy(session, business)
    logger.info("Seed complete.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main())
