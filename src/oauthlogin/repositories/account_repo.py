import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from oauthlogin.core.exceptions import AccountNameTakenError
from oauthlogin.core.security import security
from oauthlogin.models.account import AccountORM
from oauthlogin.repositories.postgres_repo import PostgresRepository

logger = logging.getLogger(__name__)


class AccountRepository(PostgresRepository[AccountORM]):
    def __init__(self, session: AsyncSession):
        super().__init__(AccountORM, session)

    async def find_by_exact_name(self, name: str) -> AccountORM | None:
        query = select(self.model).where(self.model.name == name)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def create_account(
        self,
        name: str,
        email: str | None = None,
        display_name: str | None = None,
    ) -> AccountORM:
        """
        Insert a new account. A provided email is stored as confirmed.

        Raises:
            AccountNameTakenError: The name was inserted concurrently; the
                unit of work has been rolled back
        """
        try:
            account = await self.create(
                {
                    "name": name,
                    "email": email,
                    "is_email_verified": bool(email),
                    "display_name": display_name,
                }
            )
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"[oauthlogin] Account name '{name}' was created concurrently")
            raise AccountNameTakenError(name) from e
        logger.info(f"[oauthlogin] Created account '{account.name}' ({account.id})")
        return account

    async def issue_auth_token(self, account: AccountORM) -> str:
        account.auth_token = security.generate_auth_token()
        await self.save(account)
        return account.auth_token

    async def record_login(self, account: AccountORM) -> None:
        account.last_login_at = datetime.now(UTC)
        await self.save(account)
