"""Shared pagination/filter/order primitives injected into every schema.

The primitives are declared as strawberry types, printed with strawberry's
printer and handed back as a graphql-core document so they merge like any
other fragment. An optional namespace suffix keeps the names distinct when
several generated schemas share one process-wide document.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Optional, Tuple

import strawberry
from graphql import parse
from graphql.language import DocumentNode
from strawberry.printer import print_schema

__all__ = ['FILTER_OPERATIONS', 'PrimitiveNames', 'common_document']

FILTER_OPERATIONS: Tuple[str, ...] = ('LT', 'LTE', 'EQ', 'GTE', 'GT', 'CONTAINS')


@dataclass(frozen=True)
class PrimitiveNames:
    namespace: str = ''

    @property
    def filter_operation(self) -> str:
        return f"DataSourceFilterOperation{self.namespace}"

    @property
    def order_input(self) -> str:
        return f"DataSourceOrderInput{self.namespace}"

    @property
    def filter_input(self) -> str:
        return f"DataSourceFilterInput{self.namespace}"

    @property
    def page_info(self) -> str:
        return f"DataSourcePageInfo{self.namespace}"

    def all(self) -> Tuple[str, str, str, str]:
        return (self.filter_operation, self.order_input, self.filter_input, self.page_info)


def _runtime_class(name: str, annotations: dict, **attrs):
    cls = type(name, (), {'__annotations__': annotations, **attrs})
    cls.__module__ = __name__
    return cls


@lru_cache(maxsize=None)
def common_document(namespace: str = '') -> DocumentNode:
    names = PrimitiveNames(namespace)

    operation = strawberry.enum(
        Enum(names.filter_operation, [(op, op) for op in FILTER_OPERATIONS]),  # type: ignore[misc]
        name=names.filter_operation,
        description="Comparison applied by a list filter.",
    )
    order_input = strawberry.input(
        _runtime_class(
            names.order_input,
            {'field': str, 'desc': Optional[bool]},
            field=strawberry.field(description="Name of the field to order by."),
            desc=strawberry.field(description="Sort descending when true."),
        ),
        name=names.order_input,
    )
    filter_input = strawberry.input(
        _runtime_class(
            names.filter_input,
            {'field': str, 'op': operation, 'value': str},
            field=strawberry.field(description="Name of the field to compare."),
            value=strawberry.field(description="Value compared against, serialized as a string."),
        ),
        name=names.filter_input,
    )
    page_info = strawberry.type(
        _runtime_class(
            names.page_info,
            {'has_next_page': Optional[bool], 'has_previous_page': Optional[bool]},
        ),
        name=names.page_info,
    )

    # A schema needs a query root; it only exists to reach the page info type.
    query = strawberry.type(_runtime_class('Query', {'page_info': Optional[page_info]}, page_info=None))
    schema = strawberry.Schema(query=query, types=[operation, order_input, filter_input])

    wanted = set(names.all())
    printed = parse(print_schema(schema))
    return DocumentNode(definitions=tuple(
        definition for definition in printed.definitions
        if getattr(definition, 'name', None) is not None and definition.name.value in wanted
    ))
