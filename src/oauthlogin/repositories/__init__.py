from .account_repo import AccountRepository
from .postgres_repo import PostgresRepository

__all__ = ["AccountRepository", "PostgresRepository"]
