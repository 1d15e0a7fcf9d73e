"""Data-access contract consumed by the generated resolvers.

A collection is whatever the data factory returns for a root type. Methods may
be plain functions or coroutines; resolvers await the result when needed.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Dict, List, Optional, Protocol, Union, runtime_checkable

__all__ = ['ListOptions', 'Collection', 'DataFactory']

MaybeAwaitable = Union[Any, Awaitable[Any]]


@dataclass
class ListOptions:
    """Arguments of a ``list`` call after pagination normalization.

    filter: ordered ``{field, op, value}`` dicts, combined with AND.
    order: ``{field, desc}`` dicts, earliest entry is the primary sort key.
    before/after/first/last: cursor-pair pagination; ``first``/``last`` are
        already clamped, ``None`` means unspecified.
    cursor/limit: legacy single-cursor pagination, same clamping for limit.
    """

    filter: Optional[List[Dict[str, Any]]] = None
    order: Optional[List[Dict[str, Any]]] = None
    before: Optional[str] = None
    after: Optional[str] = None
    first: Optional[int] = None
    last: Optional[int] = None
    cursor: Optional[str] = None
    limit: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@runtime_checkable
class Collection(Protocol):
    def find(self, id: Any) -> MaybeAwaitable: ...

    def list(self, options: ListOptions) -> MaybeAwaitable: ...

    def create(self, id: Any, data: Dict[str, Any]) -> MaybeAwaitable: ...

    def update(self, id: Any, data: Dict[str, Any]) -> MaybeAwaitable: ...

    def upsert(self, id: Any, data: Dict[str, Any]) -> MaybeAwaitable: ...

    def delete(self, id: Any) -> MaybeAwaitable: ...


class DataFactory(Protocol):
    """``factory(id=..., name=..., type=..., schema=..., context=...) -> Collection``."""

    def __call__(self, *, id: str, name: str, type: Any, schema: Any, context: Any) -> MaybeAwaitable: ...
