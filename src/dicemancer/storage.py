"""Macro persistence, one row per (group, name)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint, create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from .errors import MacroError


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Macro(Base):
    __tablename__ = "macros"
    __table_args__ = (UniqueConstraint("group_id", "name", name="uq_macros_group_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    expression: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class MacroStore:
    """CRUD over the macros table; every lookup is scoped to a group."""

    def __init__(self, database_url: str) -> None:
        self.engine = create_engine(database_url)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)

    def find(self, group: str, name: str) -> Optional[Macro]:
        with self.session_factory() as session:
            stmt = select(Macro).where(Macro.group_id == group, Macro.name == name)
            return session.execute(stmt).scalar_one_or_none()

    def create(self, group: str, name: str, expression: str) -> Macro:
        macro = Macro(group_id=group, name=name, expression=expression)
        with self.session_factory() as session:
            session.add(macro)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise MacroError("MACRO_EXISTS", f"A macro with the name '{name}' already exists.") from e
            session.refresh(macro)
        logger.info("Created macro %s for group %s", name, group)
        return macro

    def update(self, group: str, name: str, expression: str) -> Macro:
        with self.session_factory() as session:
            stmt = select(Macro).where(Macro.group_id == group, Macro.name == name)
            macro = session.execute(stmt).scalar_one_or_none()
            if macro is None:
                raise MacroError("MACRO_NOT_FOUND", f"No macro with the name '{name}' was found.")
            macro.expression = expression
            session.commit()
            session.refresh(macro)
        logger.info("Updated macro %s for group %s", name, group)
        return macro

    def delete(self, group: str, name: str) -> Macro:
        with self.session_factory() as session:
            stmt = select(Macro).where(Macro.group_id == group, Macro.name == name)
            macro = session.execute(stmt).scalar_one_or_none()
            if macro is None:
                raise MacroError("MACRO_NOT_FOUND", f"No macro with the name '{name}' was found.")
            session.delete(macro)
            session.commit()
        logger.info("Deleted macro %s for group %s", name, group)
        return macro

    def list_by_group(self, group: str) -> List[Macro]:
        with self.session_factory() as session:
            stmt = select(Macro).where(Macro.group_id == group).order_by(Macro.name)
            return list(session.execute(stmt).scalars())

    def list_by_name(self, name: str) -> List[Macro]:
        with self.session_factory() as session:
            stmt = select(Macro).where(Macro.name == name).order_by(Macro.group_id)
            return list(session.execute(stmt).scalars())
