# modules/common/store.py
"""
Table store for the six portfolio collections.

Every call is one unit of work: it either commits and returns plain dict
rows, or rolls the session back and raises StoreError. Callers never see
ORM objects, so a record read here can be handed to templates, forms and
threads without a live session.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from models import TABLES, Profile, Project, Skill

logger = logging.getLogger(__name__)


# Default read order per collection: (column, descending)
ORDERING = {
    "profile": (None, False),
    "skills": ("name", False),
    "education": ("start_date", True),
    "experience": ("start_date", True),
    "projects": ("created_at", True),
    "certificates": ("issue_date", True),
}


class StoreError(Exception):
    """A table-store call failed; nothing was written."""


class RecordNotFound(StoreError):
    pass


class TableStore:
    def __init__(self, db):
        self.db = db

    # ---------------------------
    # Helpers
    # ---------------------------
    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise StoreError(f"Unknown table: {table}") from None

    def _rollback(self) -> None:
        try:
            self.db.session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")

    # ---------------------------
    # Reads
    # ---------------------------
    def select(self, table: str, order: Optional[str] = None, desc: bool = False) -> List[Dict[str, Any]]:
        model = self._model(table)
        stmt = select(model)
        if order:
            col = getattr(model, order)
            stmt = stmt.order_by(col.desc() if desc else col.asc())
        try:
            rows = self.db.session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            self._rollback()
            raise StoreError(f"select from {table} failed: {e}") from e
        return [r.to_dict() for r in rows]

    def list(self, table: str) -> List[Dict[str, Any]]:
        """Select a whole collection in its documented order."""
        order, desc = ORDERING.get(table, (None, False))
        return self.select(table, order=order, desc=desc)

    def select_single(self, table: str) -> Optional[Dict[str, Any]]:
        model = self._model(table)
        try:
            row = self.db.session.execute(select(model).limit(1)).scalars().first()
        except SQLAlchemyError as e:
            self._rollback()
            raise StoreError(f"select from {table} failed: {e}") from e
        return row.to_dict() if row else None

    def portfolio_stats(self) -> Dict[str, int]:
        """Project count, skill count and years of experience in one query."""
        stmt = select(
            select(func.count(Project.id)).scalar_subquery().label("total_projects"),
            select(func.count(Skill.id)).scalar_subquery().label("total_skills"),
            select(Profile.years_of_experience).limit(1).scalar_subquery().label("years_experience"),
        )
        try:
            row = self.db.session.execute(stmt).one()
        except SQLAlchemyError as e:
            self._rollback()
            raise StoreError(f"portfolio stats failed: {e}") from e
        return {
            "total_projects": int(row.total_projects or 0),
            "total_skills": int(row.total_skills or 0),
            "years_experience": int(row.years_experience or 0),
        }

    # ---------------------------
    # Writes
    # ---------------------------
    def insert(self, table: str, values: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(table)
        row = model()
        row.apply(values)
        try:
            self.db.session.add(row)
            self.db.session.commit()
        except SQLAlchemyError as e:
            self._rollback()
            raise StoreError(f"insert into {table} failed: {e}") from e
        logger.info("Inserted %s %s", table, row.id)
        return row.to_dict()

    def update(self, table: str, record_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(table)
        try:
            row = self.db.session.get(model, record_id)
            if row is None:
                raise RecordNotFound(f"{table} {record_id} not found")
            row.apply(values)
            self.db.session.commit()
        except SQLAlchemyError as e:
            self._rollback()
            raise StoreError(f"update of {table} {record_id} failed: {e}") from e
        logger.info("Updated %s %s", table, record_id)
        return row.to_dict()

    def delete(self, table: str, record_id: str) -> int:
        """Delete by id; returns the number of rows removed (0 or 1)."""
        model = self._model(table)
        try:
            row = self.db.session.get(model, record_id)
            if row is None:
                return 0
            self.db.session.delete(row)
            self.db.session.commit()
        except SQLAlchemyError as e:
            self._rollback()
            raise StoreError(f"delete from {table} {record_id} failed: {e}") from e
        logger.info("Deleted %s %s", table, record_id)
        return 1
