"""Remote table gateway for one catalog.

Batch path:
- apply(plan) -> ApplyResult: one batched delete by title, then one batched
  upsert keyed on title. The two statements commit independently; a failed
  delete is recorded and the upsert still runs.

Interactive path:
- list_all / get / create / update / delete for single rows.

SQLAlchemy errors never leave this module raw: they are translated to
RemoteUnreachable, ConstraintViolation or RemoteError.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Sequence
from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from schemas.catalog import CatalogRecord
from services.catalogs import Catalog
from services.errors import RemoteError, RemoteUnreachable, ConstraintViolation, RecordNotFound
from services.reconcile import ReconciliationPlan

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def translate_error(e: SQLAlchemyError) -> RemoteError:
    detail = str(getattr(e, "orig", None) or e)
    if isinstance(e, IntegrityError):
        return ConstraintViolation(detail)
    if isinstance(e, (OperationalError, InterfaceError)):
        return RemoteUnreachable(detail)
    return RemoteError(detail)


@dataclass
class ApplyResult:
    deleted: int = 0
    upserted: int = 0
    errors: List[RemoteError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class CatalogStore:
    def __init__(self, db: Session, catalog: Catalog):
        self.db = db
        self.catalog = catalog
        self.model = catalog.model

    # -- batch path -----------------------------------------------------

    def existing_titles(self) -> set[str]:
        try:
            return set(self.db.scalars(select(self.model.title)).all())
        except SQLAlchemyError as e:
            raise translate_error(e) from e

    def apply(self, plan: ReconciliationPlan) -> ApplyResult:
        result = ApplyResult()
        if plan.to_delete:
            try:
                res = self.db.execute(delete(self.model).where(self.model.title.in_(sorted(plan.to_delete))))
                self.db.commit()
                result.deleted = res.rowcount or 0
            except SQLAlchemyError as e:
                self.db.rollback()
                err = translate_error(e)
                logger.error("Deleting %d rows from %s failed: %s", len(plan.to_delete), self.catalog.table, err)
                result.errors.append(err)
        if plan.to_upsert:
            try:
                self.db.execute(self._upsert_statement(plan.to_upsert))
                self.db.commit()
                result.upserted = len(plan.to_upsert)
            except RemoteError as err:
                logger.error("Upsert into %s unavailable: %s", self.catalog.table, err)
                result.errors.append(err)
            except SQLAlchemyError as e:
                self.db.rollback()
                err = translate_error(e)
                logger.error("Upserting %d rows into %s failed: %s", len(plan.to_upsert), self.catalog.table, err)
                result.errors.append(err)
        return result

    def _upsert_statement(self, records: Sequence[CatalogRecord]):
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise RemoteError(f"Upsert is not supported on dialect {dialect!r}")
        now = datetime.utcnow()
        values = [{**r.to_row(), "created_at": now} for r in records]
        stmt = insert(self.model).values(values)
        # On title collision overwrite every non-key column, including created_at
        updates = {col: stmt.excluded[col] for col in values[0] if col != "title"}
        return stmt.on_conflict_do_update(index_elements=[self.model.title], set_=updates)

    # -- interactive path -----------------------------------------------

    def list_all(self) -> list[CatalogRecord]:
        try:
            rows = self.db.scalars(select(self.model).order_by(self.model.created_at.desc(), self.model.id.desc())).all()
        except SQLAlchemyError as e:
            raise translate_error(e) from e
        return [self.catalog.out_cls.model_validate(r) for r in rows]

    def _get_row(self, record_id: int):
        try:
            row = self.db.get(self.model, record_id)
        except SQLAlchemyError as e:
            raise translate_error(e) from e
        if row is None:
            raise RecordNotFound(self.catalog.table, record_id)
        return row

    def get(self, record_id: int) -> CatalogRecord:
        return self.catalog.out_cls.model_validate(self._get_row(record_id))

    def create(self, record: CatalogRecord) -> CatalogRecord:
        row = self.model(**record.to_row())
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_error(e) from e
        return self.catalog.out_cls.model_validate(row)

    def update(self, record_id: int, record: CatalogRecord) -> CatalogRecord:
        row = self._get_row(record_id)
        for col, value in record.to_row().items():
            setattr(row, col, value)
        try:
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_error(e) from e
        return self.catalog.out_cls.model_validate(row)

    def delete(self, record_id: int) -> CatalogRecord:
        row = self._get_row(record_id)
        removed = self.catalog.out_cls.model_validate(row)
        try:
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_error(e) from e
        return removed
