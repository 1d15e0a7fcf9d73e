"""Build options for crudql schemas."""
from __future__ import annotations

import time
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, Optional

from .core.introspect import IdFieldSelector

__all__ = ['DEFAULT_MAX_PAGE_SIZE', 'SchemaOptions', 'epoch_millis']

DEFAULT_MAX_PAGE_SIZE = 100


def epoch_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class SchemaOptions:
    """Options that shape the generated schema and its resolvers.

    namespace: suffix appended to the shared DataSource* primitive names so
        several generated schemas can be merged into one document.
    timestamps: add created/modified fields and stamp them in mutations.
    id_field_selector: replaces the default "first non-null ID field" policy;
        receives the object type definition node and returns a field name.
    parse_options: keyword arguments forwarded to ``graphql.parse``.
    request_scoped: acquire the collection per resolver call, passing the
        request context to the data factory, instead of once at build time.
    max_page_size: upper bound applied to first/last/limit.
    clock: returns the current time used for timestamps (epoch millis).
    """

    namespace: str = ''
    timestamps: bool = False
    id_field_selector: Optional[IdFieldSelector] = None
    parse_options: Dict[str, Any] = field(default_factory=dict)
    request_scoped: bool = False
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE
    clock: Callable[[], float] = epoch_millis

    def with_overrides(self, **overrides: Any) -> 'SchemaOptions':
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown schema options: {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
