from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from portflow.models import StorageSlot


class LocalStorage:
    """
    Named-slot key-value store holding plain JSON text.
    Every write replaces the whole value of its slot.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_slot(self, key: str) -> StorageSlot | None:
        result = await self.db.execute(
            select(StorageSlot)
            .where(StorageSlot.key == key)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_item(self, key: str) -> str | None:
        slot = await self._get_slot(key)
        return slot.value if slot else None

    async def set_item(self, key: str, value: str) -> None:
        slot = await self._get_slot(key)
        if slot:
            slot.value = value
        else:
            self.db.add(StorageSlot(key=key, value=value))
        await self.db.commit()

    async def remove_item(self, key: str) -> None:
        slot = await self._get_slot(key)
        if slot:
            await self.db.delete(slot)
            await self.db.commit()
