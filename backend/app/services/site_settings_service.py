from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.config import settings
from app.models.site_settings import SiteSettings


async def get_site_settings(db: AsyncSession) -> SiteSettings:
    """Return the settings row, creating it from config defaults on first use"""
    result = await db.execute(select(SiteSettings).order_by(SiteSettings.created_at).limit(1))
    row: Optional[SiteSettings] = result.scalar_one_or_none()
    if row is None:
        row = SiteSettings(
            site_name=settings.APP_NAME,
            contact_email=settings.DEFAULT_CONTACT_EMAIL,
            maintenance_mode=False,
            signup_enabled=True,
        )
        db.add(row)
        await db.flush()
    return row
