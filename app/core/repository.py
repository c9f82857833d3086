"""
Repository
==========

Generic record store over one SQLModel table.

Every write is a single SQL statement (INSERT / conditional UPDATE /
DELETE) so concurrent requests never observe a half-applied change, and a
write against a deleted id touches zero rows instead of resurrecting it.

Operations:
    get(id)                         -> record | None
    find_many(*where, order_by, limit)
    find_projected(fields, *where, order_by, limit) -> list[dict]
    insert_one(record)              -> record
    update_one(id, patch, *where)   -> record | None
    update_many(where, patch)       -> UpdateResult(matched, modified)
    delete_one(id, *where)          -> bool

SQLAlchemy failures are logged with detail and re-raised as ``Unexpected``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlmodel import SQLModel

from app.core.database import Store
from app.core.errors import Unexpected

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)
T = TypeVar("T")


@dataclass(frozen=True)
class UpdateResult:
    matched: int
    modified: int


class Repository(Generic[ModelT]):
    """Atomic single-record and bulk operations for one table model."""

    def __init__(self, store: Store, model: Type[ModelT]) -> None:
        self.store = store
        self.model = model

    @property
    def _table(self):
        return self.model.__table__  # type: ignore[attr-defined]

    def _guard(self, op: str, fn: Callable[[], T]) -> T:
        try:
            return self.store.retrying(fn)
        except OperationalError as exc:
            logger.error(
                "Store unavailable during %s on %s: %s", op, self._table.name, exc, exc_info=True
            )
            raise Unexpected(code="CMT-DB-001", detail=f"{op} failed", context={"table": self._table.name}) from exc
        except SQLAlchemyError as exc:
            logger.error(
                "Store error during %s on %s: %s", op, self._table.name, exc, exc_info=True
            )
            raise Unexpected(detail=f"{op} failed", context={"table": self._table.name}) from exc

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    def get(self, record_id: str) -> Optional[ModelT]:
        def _op():
            with self.store.session() as session:
                return session.get(self.model, record_id)

        return self._guard("get", _op)

    def find_many(
        self,
        *where: Any,
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
    ) -> List[ModelT]:
        stmt = select(self.model).where(*where)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        def _op():
            with self.store.session() as session:
                return list(session.scalars(stmt).all())

        return self._guard("find_many", _op)

    def find_projected(
        self,
        fields: Sequence[str],
        *where: Any,
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Like find_many but loads only ``fields``; returns plain dicts."""
        columns = [self._table.c[name] for name in fields]
        stmt = select(*columns).where(*where)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        def _op():
            with self.store.engine.connect() as conn:
                return [dict(row) for row in conn.execute(stmt).mappings().all()]

        return self._guard("find_projected", _op)

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------

    def insert_one(self, record: ModelT) -> ModelT:
        def _op():
            with self.store.session() as session:
                session.add(record)
                session.commit()
                session.refresh(record)
                return record

        return self._guard("insert_one", _op)

    def update_one(self, record_id: str, patch: Dict[str, Any], *where: Any) -> Optional[ModelT]:
        """Apply ``patch`` to one row iff it exists (and matches ``where``).

        Returns the updated record, or None when no row matched.
        """
        stmt = (
            update(self.model)
            .where(self._table.c.id == record_id, *where)
            .values(**patch)
        )

        def _op():
            with self.store.engine.begin() as conn:
                return conn.execute(stmt).rowcount

        if self._guard("update_one", _op) == 0:
            return None
        return self.get(record_id)

    def update_many(
        self,
        where: Sequence[Any],
        patch: Dict[str, Any],
        also_set: Optional[Dict[str, Any]] = None,
    ) -> UpdateResult:
        """Bulk-apply ``patch`` to every row matching ``where``.

        ``matched`` counts rows satisfying ``where``; ``modified`` counts rows
        whose ``patch`` columns actually changed. ``also_set`` values (e.g.
        ``updated_at``) are written alongside but do not count as changes.
        """
        changed = or_(*[self._table.c[k].is_distinct_from(v) for k, v in patch.items()])
        count_stmt = select(func.count()).select_from(self._table).where(*where)
        update_stmt = (
            update(self.model)
            .where(*where, changed)
            .values(**patch, **(also_set or {}))
        )

        def _op():
            with self.store.engine.begin() as conn:
                matched = conn.execute(count_stmt).scalar_one()
                modified = conn.execute(update_stmt).rowcount
                return UpdateResult(matched=matched, modified=modified)

        return self._guard("update_many", _op)

    def delete_one(self, record_id: str, *where: Any) -> bool:
        stmt = delete(self.model).where(self._table.c.id == record_id, *where)

        def _op():
            with self.store.engine.begin() as conn:
                return conn.execute(stmt).rowcount > 0

        return self._guard("delete_one", _op)
