from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from oauthlogin.core.postgres import Base

T = TypeVar("T", bound=Base)


class PostgresRepository(Generic[T]):
    def __init__(self, model: type[T], session: AsyncSession):
        self.model = model
        self.session = session

    async def create(self, obj_in: dict[str, Any]) -> T:
        db_obj = self.model(**obj_in)
        self.session.add(db_obj)
        await self.session.flush()
        await self.session.refresh(db_obj)
        return db_obj

    async def save(self, db_obj: T) -> T:
        self.session.add(db_obj)
        await self.session.flush()
        return db_obj

    async def commit(self) -> None:
        await self.session.commit()
