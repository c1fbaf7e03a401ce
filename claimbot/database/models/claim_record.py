"""
ClaimRecord model: audit row written with every successful claim.

Written in the same transaction as the Code mutation. Immutable. The table
does not restrict how many records a user has; the claim quota does.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from claimbot.core.database.base import Base, IdMixin


class ClaimRecord(IdMixin, Base):
    __tablename__ = "user_claims"

    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(255), nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<ClaimRecord(id={self.id}, user_id={self.user_id!r}, code={self.code!r})>"
