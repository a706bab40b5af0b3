"""Runtime settings lookup."""

from sqlalchemy.ext.asyncio import AsyncSession

from advisy.models import SystemSetting


async def get_setting(db: AsyncSession, key: str, default=None):
    """Get a system setting value."""
    setting = await db.get(SystemSetting, key)
    if setting:
        return setting.get_value()
    return default
