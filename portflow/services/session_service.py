import json
import logging
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from portflow.core.config import settings
from portflow.schemas.session import User
from portflow.services.local_storage import LocalStorage

logger = logging.getLogger(__name__)


class SessionService:
    """
    Operator session kept in the session slot.
    There is no credential check; a stored user is a logged-in user.
    """

    def __init__(self, db: AsyncSession, slot: str = settings.SESSION_SLOT):
        self.storage = LocalStorage(db)
        self.slot = slot

    async def current_user(self) -> User | None:
        raw = await self.storage.get_item(self.slot)
        if raw is None:
            return None
        try:
            return User.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Stored session is unreadable, treating as logged out: %s", e)
            return None

    async def login(self, email: str, company_name: str) -> User:
        user = User(email=email, company_name=company_name)
        await self.storage.set_item(self.slot, user.model_dump_json(by_alias=True))
        logger.info("Operator %s logged in for %s", user.email, user.company_name)
        return user

    async def logout(self) -> None:
        await self.storage.remove_item(self.slot)
