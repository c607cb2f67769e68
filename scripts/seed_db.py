"""Seed database with initial reference data (discount codes)."""

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from linkhub.config import settings
from linkhub.models.base import Base
from linkhub.models.discount_code import DiscountCodeRecord


DISCOUNT_CODES = [
    {"code": "PRO20", "percent_off": 20},
    {"code": "WELCOME10", "percent_off": 10},
]


async def seed():
    """Create tables and seed the discount code list."""
    engine = create_async_engine(settings.database_url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession)

    async with session_factory() as session:
        for code_data in DISCOUNT_CODES:
            existing = await session.execute(
                select(DiscountCodeRecord).where(DiscountCodeRecord.code == code_data["code"])
            )
            if existing.scalar_one_or_none():
                print(f"  = Code: {code_data['code']} (exists)")
                continue
            session.add(DiscountCodeRecord(**code_data, is_active=True))
            print(f"  + Code: {code_data['code']} ({code_data['percent_off']}%)")

        await session.commit()

    await engine.dispose()
    print("\nSeed completed!")


if __name__ == "__main__":
    asyncio.run(seed())
