# models/account.py

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from oauthlogin.core.postgres import Base

ACCOUNT_NAME_MAX_LENGTH = 100


class AccountORM(Base):
    """
    A local account that OAuth logins bind to.

    Accounts are keyed by their exact, already-sanitized name. They are
    created on first login when automatic creation is enabled and are
    never deleted by the login flow.
    """

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(
        String(ACCOUNT_NAME_MAX_LENGTH), unique=True, index=True, nullable=False
    )

    # Profile
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Opaque token identifying the account's authenticated sessions
    auth_token: Mapped[str | None] = mapped_column(String(64), nullable=True)

    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Account name={self.name} id={self.id}>"
