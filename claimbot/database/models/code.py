"""
Code model: one redeemable one-time code.

A row is created by the bulk import and mutated exactly once, by the
atomic claim, from unclaimed to claimed. Rows are never deleted and never
un-claimed.

Invariant (also enforced by `ck_codes_claim_consistency`):
- is_claimed is False -> claimed_by and claimed_at are NULL
- is_claimed is True  -> claimed_by and claimed_at are both set
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, String, false
from sqlalchemy.orm import Mapped, mapped_column

from claimbot.core.database.base import Base, IdMixin


class Code(IdMixin, Base):
    __tablename__ = "codes"
    __table_args__ = (
        CheckConstraint(
            "(is_claimed AND claimed_by IS NOT NULL AND claimed_at IS NOT NULL) OR "
            "(NOT is_claimed AND claimed_by IS NULL AND claimed_at IS NULL)",
            name="ck_codes_claim_consistency",
        ),
        Index("ix_codes_is_claimed_id", "is_claimed", "id"),
    )

    code: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    is_claimed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    claimed_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    claimed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Code(id={self.id}, code={self.code!r}, is_claimed={self.is_claimed})>"
