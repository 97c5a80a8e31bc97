from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models.types import is_storable_id
from backend.models.user import User


class UserRepository:
    """Read access to the externally managed users table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user_id: int) -> User | None:
        if not is_storable_id(user_id):
            return None
        return await self.session.get(User, user_id)

    async def find_provider(self, user_id: int) -> User | None:
        if not is_storable_id(user_id):
            return None
        result = await self.session.execute(
            select(User).where(User.id == user_id, User.provider.is_(True))
        )
        return result.scalar_one_or_none()
