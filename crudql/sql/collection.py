from __future__ import annotations

import base64
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, inspect as sa_inspect, select
from sqlalchemy import update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.sqltypes import Boolean, DateTime, Float, Integer, Numeric

from ..collection import ListOptions
from ..core.naming import camel_to_snake, snake_to_camel

__all__ = [
    'OPERATOR_REGISTRY',
    'register_operator',
    'coerce_filter_value',
    'get_db_session',
    'encode_cursor',
    'decode_cursor',
    'page_window',
    'SQLAlchemyCollection',
    'sqlalchemy_data_factory',
]

_logger = logging.getLogger("crudql.sql")

# Filter operations keyed by DataSourceFilterOperation value (extensible)
OPERATOR_REGISTRY: Dict[str, Callable[[Any, Any], Any]] = {
    'LT': lambda col, v: col < v,
    'LTE': lambda col, v: col <= v,
    'EQ': lambda col, v: col == v,
    'GTE': lambda col, v: col >= v,
    'GT': lambda col, v: col > v,
    'CONTAINS': lambda col, v: col.contains(v),
}

_CURSOR_PREFIX = 'offset:'


def register_operator(name: str, fn: Callable[[Any, Any], Any]):
    OPERATOR_REGISTRY[name] = fn


def coerce_filter_value(col, val):
    """Convert a string filter value to the Python type of ``col``.

    Values that do not convert are returned unchanged and left to the database.
    """
    ctype = getattr(col, 'type', None)
    if ctype is None or not isinstance(val, str):
        return val
    try:
        if isinstance(ctype, DateTime):
            dv = datetime.fromisoformat(val.replace('Z', '+00:00'))
            if getattr(ctype, 'timezone', False) is False and dv.tzinfo is not None:
                dv = dv.replace(tzinfo=None)
            return dv
        if isinstance(ctype, Integer):
            return int(val)
        if isinstance(ctype, (Float, Numeric)):
            return float(val)
        if isinstance(ctype, Boolean):
            lv = val.strip().lower()
            if lv in ('true', 't', '1', 'yes', 'y'):
                return True
            if lv in ('false', 'f', '0', 'no', 'n'):
                return False
    except ValueError:
        return val
    return val


def get_db_session(ctx: Any) -> Any | None:
    """Extract an AsyncSession-like object from a request context.

    Tries the keys/attributes ``db_session``, ``db``, ``session`` and
    ``async_session`` in order, on mappings and plain objects.
    """
    if ctx is None:
        return None
    candidates = ('db_session', 'db', 'session', 'async_session')
    if isinstance(ctx, Mapping):
        for k in candidates:
            if ctx.get(k) is not None:
                return ctx[k]
        return None
    for k in candidates:
        v = getattr(ctx, k, None)
        if v is not None:
            return v
    return None


def encode_cursor(offset: int) -> str:
    return base64.urlsafe_b64encode(f"{_CURSOR_PREFIX}{offset}".encode('ascii')).decode('ascii')


def decode_cursor(cursor: str) -> int:
    try:
        raw = base64.urlsafe_b64decode(cursor.encode('ascii')).decode('ascii')
    except (ValueError, UnicodeError) as exc:
        raise ValueError(f"Invalid cursor {cursor!r}") from exc
    if not raw.startswith(_CURSOR_PREFIX) or not raw[len(_CURSOR_PREFIX):].isdigit():
        raise ValueError(f"Invalid cursor {cursor!r}")
    return int(raw[len(_CURSOR_PREFIX):])


def page_window(
    total: int,
    *,
    before: Optional[str] = None,
    after: Optional[str] = None,
    first: Optional[int] = None,
    last: Optional[int] = None,
) -> Tuple[int, int]:
    """Return the ``[start, end)`` offsets selected by cursor-pair pagination."""
    start, end = 0, total
    if after is not None:
        start = max(start, decode_cursor(after) + 1)
    if before is not None:
        end = min(end, decode_cursor(before))
    if first is not None:
        end = min(end, start + first)
    if last is not None:
        start = max(start, end - last)
    return start, max(start, end)


class SQLAlchemyCollection:
    """Collection over one mapped model, using an ``AsyncSession``.

    Records are returned as dicts keyed by attribute name, with a camelCase
    alias for snake_case attributes. Incoming field names are matched against
    attribute names directly or after camelCase -> snake_case conversion.
    Writes flush and commit the session.
    """

    def __init__(self, session: AsyncSession, model: Any, id_field: str = 'id'):
        self.session = session
        self.model = model
        self._columns = {attr.key: attr.columns[0] for attr in sa_inspect(model).column_attrs}
        self.id_key = self._key(id_field)
        self.id_column = self._columns[self.id_key]

    @property
    def name(self) -> str:
        return getattr(self.model, '__name__', str(self.model))

    def _key(self, name: str) -> str:
        if name in self._columns:
            return name
        snake = camel_to_snake(name)
        if snake in self._columns:
            return snake
        raise ValueError(f"Unknown field {name!r} for {self.name}")

    def _values(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return {self._key(k): v for k, v in data.items()}

    def _coerce_id(self, id: Any) -> Any:
        return coerce_filter_value(self.id_column, id)

    def _to_record(self, instance: Any) -> Dict[str, Any]:
        record: Dict[str, Any] = {}
        for key in self._columns:
            value = getattr(instance, key)
            record[key] = value
            alias = snake_to_camel(key)
            if alias != key:
                record[alias] = value
        return record

    async def find(self, id: Any) -> Optional[Dict[str, Any]]:
        instance = await self.session.get(self.model, self._coerce_id(id))
        return self._to_record(instance) if instance is not None else None

    async def list(self, options: ListOptions) -> Dict[str, Any]:
        stmt = select(self.model)
        for spec in options.filter or ():
            col = self._columns[self._key(spec['field'])]
            op_name = str(getattr(spec['op'], 'value', spec['op'])).upper()
            op = OPERATOR_REGISTRY.get(op_name)
            if op is None:
                raise ValueError(f"Unknown filter operation {op_name!r}")
            stmt = stmt.where(op(col, coerce_filter_value(col, spec['value'])))
        total = await self.session.scalar(select(func.count()).select_from(stmt.subquery()))
        for spec in options.order or ():
            col = self._columns[self._key(spec['field'])]
            stmt = stmt.order_by(col.desc() if spec.get('desc') else col.asc())
        # Stable tie-breaker so offset cursors stay valid between pages
        stmt = stmt.order_by(self.id_column.asc())

        start, end = page_window(
            total or 0,
            before=options.before,
            after=options.after if options.after is not None else options.cursor,
            first=options.first if options.first is not None else options.limit,
            last=options.last,
        )
        rows = (await self.session.execute(stmt.offset(start).limit(end - start))).scalars().all()
        _logger.debug("list %s window=[%d, %d) total=%s", self.name, start, end, total)
        return {
            'edges': [
                {'node': self._to_record(row), 'cursor': encode_cursor(start + index)}
                for index, row in enumerate(rows)
            ],
            'pageInfo': {'hasNextPage': end < (total or 0), 'hasPreviousPage': start > 0},
        }

    async def create(self, id: Any, data: Mapping[str, Any]) -> Any:
        values = self._values(data)
        if id is not None:
            values[self.id_key] = self._coerce_id(id)
        elif not isinstance(self.id_column.type, Integer):
            values[self.id_key] = uuid.uuid4().hex
        instance = self.model(**values)
        self.session.add(instance)
        await self.session.flush()
        record_id = getattr(instance, self.id_key)
        await self.session.commit()
        return record_id

    async def update(self, id: Any, data: Mapping[str, Any]) -> bool:
        values = self._values(data)
        if not values:
            return await self.find(id) is not None
        result = await self.session.execute(
            sa_update(self.model).where(self.id_column == self._coerce_id(id)).values(**values)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def upsert(self, id: Any, data: Mapping[str, Any]) -> bool:
        values = self._values(data)
        instance = await self.session.get(self.model, self._coerce_id(id))
        if instance is None:
            values[self.id_key] = self._coerce_id(id)
            self.session.add(self.model(**values))
        else:
            for key, value in values.items():
                setattr(instance, key, value)
        await self.session.flush()
        await self.session.commit()
        return True

    async def delete(self, id: Any) -> bool:
        result = await self.session.execute(
            sa_delete(self.model).where(self.id_column == self._coerce_id(id))
        )
        await self.session.commit()
        return result.rowcount > 0


def sqlalchemy_data_factory(models: Mapping[str, Any], session: Optional[AsyncSession] = None):
    """Data factory mapping root type names to mapped models.

    Without an explicit ``session`` the session is taken from the context the
    factory is called with, which requires ``request_scoped=True`` (or a
    build-time ``context``).
    """

    def factory(*, id: str, name: str, type: Any = None, schema: Any = None, context: Any = None):
        active = session if session is not None else get_db_session(context)
        if active is None:
            raise ValueError("No db_session in context")
        return SQLAlchemyCollection(active, models[name], id_field=id)

    return factory
