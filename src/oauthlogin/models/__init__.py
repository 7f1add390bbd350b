from .account import AccountORM

__all__ = ["AccountORM"]
