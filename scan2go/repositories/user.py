"""User account repository."""

from sqlalchemy import select

from scan2go.domain.user import User
from scan2go.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    async def get_by_email(self, email: str) -> User | None:
        result = await self._session.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalars().first()
