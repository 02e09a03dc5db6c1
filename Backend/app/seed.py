import logging

from sqlalchemy import select

from .core.config import get_settings
from .models import MerchantStore


settings = get_settings()
logger = logging.getLogger(__name__)


async def seed_initial_data(session):
    """Make sure the default merchant store exists so unscoped requests resolve."""
    result = await session.execute(
        select(MerchantStore).where(MerchantStore.code == settings.default_store_code)
    )
    store = result.scalar_one_or_none()

    if not store:
        store = MerchantStore(
            code=settings.default_store_code,
            name=settings.default_store_name,
            default_language=settings.default_language,
            supported_languages=settings.default_language,
        )
        session.add(store)
        logger.info(f"Seeded default store '{settings.default_store_code}'")

    await session.commit()
