"""
Declarative base shared by every ORM model.

Models import `Base` from here so `DatabaseService.create_schema()` sees
all tables through a single `MetaData`.
"""

from sqlalchemy import Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class IdMixin:
    """Autoincrement integer primary key."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
