"""Entity store for permission, role and user records.

Every call runs in its own ``AsyncSession`` so concurrent callers never
share session state. Returned records are detached with all columns
loaded (unless ``select`` narrows them), or plain dicts when ``lean``.
"""

from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence

from sqlalchemy import delete, func, select as sa_select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import load_only

from rolegraph.core.exceptions import ValidationError
from rolegraph.core.logger import get_logger
from rolegraph.db.models import ModelSet
from rolegraph.db.session import create_sessionmaker


logger = get_logger("store")

_MULTI = (list, tuple, set, frozenset)


class PermissionGroup(NamedTuple):
    """One ``(name, operation)`` group with a representative id."""
    id: str
    name: str
    operation: str


class EntityStore:
    """Async persistence for the three entity kinds."""

    def __init__(
        self,
        engine: AsyncEngine,
        models: ModelSet,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        self.engine = engine
        self.models = models
        self._session_factory = session_factory or create_sessionmaker(engine)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(self.models.metadata.create_all)

    async def drop_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(self.models.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    # ------------------------------------------------------------------
    # Query building
    # ------------------------------------------------------------------

    def _model(self, kind: str):
        return self.models.for_kind(kind)

    def _columns(self, model) -> Dict[str, Any]:
        return {column.key: getattr(model, column.key) for column in model.__table__.columns}

    def _where(self, kind: str, filter: Optional[Dict[str, Any]]) -> list:
        """Turn an equality map into WHERE clauses.

        A list, tuple or set value means ``IN``; ``None`` means ``IS NULL``.
        """
        columns = self._columns(self._model(kind))
        clauses = []
        for key, value in (filter or {}).items():
            if key not in columns:
                raise ValidationError(f"Unknown {kind} field in filter: {key}", field=key)
            column = columns[key]
            if isinstance(value, _MULTI):
                clauses.append(column.in_(list(value)))
            elif value is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == value)
        return clauses

    def _select(self, kind: str, filter: Optional[Dict[str, Any]], fields: Optional[Sequence[str]]):
        model = self._model(kind)
        stmt = sa_select(model).where(*self._where(kind, filter))
        if fields:
            columns = self._columns(model)
            unknown = [f for f in fields if f not in columns]
            if unknown:
                raise ValidationError(f"Unknown {kind} field in select: {', '.join(unknown)}")
            stmt = stmt.options(load_only(*(columns[f] for f in fields)))
        return stmt

    @staticmethod
    def _shape(record, fields: Optional[Sequence[str]], lean: bool):
        if record is None or not lean:
            return record
        return record.to_dict(fields)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_one(
        self,
        kind: str,
        filter: Optional[Dict[str, Any]] = None,
        *,
        select: Optional[Sequence[str]] = None,
        lean: bool = False,
    ):
        """Return the first record matching ``filter`` or ``None``."""
        stmt = self._select(kind, filter, select).limit(1)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            record = result.scalars().first()
        return self._shape(record, select, lean)

    async def find(
        self,
        kind: str,
        filter: Optional[Dict[str, Any]] = None,
        *,
        select: Optional[Sequence[str]] = None,
        lean: bool = False,
    ) -> list:
        """Return every record matching ``filter``."""
        stmt = self._select(kind, filter, select)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            records = list(result.scalars().all())
        return [self._shape(record, select, lean) for record in records]

    async def populate(self, kind: str, ids: Iterable[str], **options) -> list:
        """Expand a list of ids into records, keeping the order of ``ids``.

        Dangling ids (records deleted since they were referenced) are skipped.
        """
        ids = list(dict.fromkeys(ids))
        if not ids:
            return []
        records = await self.find(kind, {"id": ids}, **options)
        by_id = {_record_id(record): record for record in records}
        return [by_id[record_id] for record_id in ids if record_id in by_id]

    # ------------------------------------------------------------------
    # Aggregations used by the identifier resolver
    # ------------------------------------------------------------------

    async def role_ids_by_names(self, names: Sequence[str]) -> List[str]:
        """Ids of the roles whose name is in ``names``."""
        Role = self.models.role
        stmt = sa_select(Role.id).where(Role.name.in_(list(names)))
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def permission_groups(self, names: Iterable[str]) -> List[PermissionGroup]:
        """Group permissions named in ``names`` by ``(name, operation)``.

        Each group is projected to one representative id.
        """
        Permission = self.models.permission
        stmt = (
            sa_select(func.min(Permission.id), Permission.name, Permission.operation)
            .where(Permission.name.in_(list(names)))
            .group_by(Permission.name, Permission.operation)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [PermissionGroup(*row) for row in result.all()]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, kind: str, values: Dict[str, Any]):
        model = self._model(kind)
        record = model(**values)
        async with self._session_factory() as session:
            async with session.begin():
                session.add(record)
        return record

    async def upsert_by_match(self, kind: str, match: Dict[str, Any], values: Dict[str, Any]):
        """Return the record matching ``match``, inserting ``values`` if none exists.

        Key fields carry unique constraints, so when two callers race to
        insert the same record the loser's insert fails and it returns the
        winner's record instead of creating a duplicate.
        """
        existing = await self.find_one(kind, match)
        if existing is not None:
            return existing
        try:
            return await self.insert(kind, values)
        except IntegrityError:
            existing = await self.find_one(kind, match)
            if existing is None:
                raise
            logger.debug(f"Concurrent insert of {kind} {match}; using existing record")
            return existing

    async def save(self, record):
        """Persist changes made to a detached record."""
        async with self._session_factory() as session:
            async with session.begin():
                session.add(record)
        return record

    async def remove(self, kind: str, filter: Dict[str, Any]) -> int:
        """Delete every record matching ``filter`` and return the count."""
        model = self._model(kind)
        stmt = delete(model).where(*self._where(kind, filter))
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)
        return result.rowcount or 0


def _record_id(record) -> str:
    return record["id"] if isinstance(record, dict) else record.id
