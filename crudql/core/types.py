"""Closed set of type references used by the introspector and synthesizer.

graphql-core represents field types as nested ``NamedTypeNode`` /
``ListTypeNode`` / ``NonNullTypeNode`` instances that carry no information
about what the named type *is*. ``TypeRef`` resolves that once against the
working document so callers can dispatch on scalar/object/enum without
looking the name up again.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from graphql.language import (
    DocumentNode,
    EnumTypeDefinitionNode,
    InputObjectTypeDefinitionNode,
    InterfaceTypeDefinitionNode,
    ListTypeNode,
    NamedTypeNode,
    NonNullTypeNode,
    ObjectTypeDefinitionNode,
    ScalarTypeDefinitionNode,
    TypeNode,
    UnionTypeDefinitionNode,
)

__all__ = [
    'BUILTIN_SCALARS',
    'ScalarRef',
    'ObjectRef',
    'EnumRef',
    'ListRef',
    'NonNullRef',
    'NamedRef',
    'TypeRef',
    'TypeKinds',
    'from_node',
    'render',
    'named',
    'nullable',
    'non_null',
    'rename',
    'is_non_null_id',
]

BUILTIN_SCALARS = frozenset({'Int', 'Float', 'String', 'Boolean', 'ID'})


@dataclass(frozen=True)
class ScalarRef:
    name: str


@dataclass(frozen=True)
class ObjectRef:
    name: str


@dataclass(frozen=True)
class EnumRef:
    name: str


@dataclass(frozen=True)
class ListRef:
    of: 'TypeRef'


@dataclass(frozen=True)
class NonNullRef:
    of: 'TypeRef'


NamedRef = Union[ScalarRef, ObjectRef, EnumRef]
TypeRef = Union[ScalarRef, ObjectRef, EnumRef, ListRef, NonNullRef]

_DEFINITION_KINDS = (
    (ObjectTypeDefinitionNode, 'object'),
    (InterfaceTypeDefinitionNode, 'interface'),
    (UnionTypeDefinitionNode, 'union'),
    (EnumTypeDefinitionNode, 'enum'),
    (InputObjectTypeDefinitionNode, 'input'),
    (ScalarTypeDefinitionNode, 'scalar'),
)


class TypeKinds:
    """Name -> kind lookup ('scalar', 'object', 'interface', 'union', 'enum', 'input')."""

    def __init__(self, kinds: Optional[Dict[str, str]] = None):
        self._kinds: Dict[str, str] = {name: 'scalar' for name in BUILTIN_SCALARS}
        self._kinds.update(kinds or {})

    @classmethod
    def from_document(cls, document: DocumentNode) -> 'TypeKinds':
        kinds: Dict[str, str] = {}
        for definition in document.definitions:
            for node_cls, kind in _DEFINITION_KINDS:
                if isinstance(definition, node_cls):
                    kinds[definition.name.value] = kind
                    break
        return cls(kinds)

    def kind_of(self, name: str) -> str:
        # Undeclared names are left for the schema builder to reject.
        return self._kinds.get(name, 'scalar')

    def ref(self, name: str) -> NamedRef:
        kind = self.kind_of(name)
        if kind in ('object', 'interface', 'union'):
            return ObjectRef(name)
        if kind == 'enum':
            return EnumRef(name)
        return ScalarRef(name)


def from_node(node: TypeNode, kinds: TypeKinds) -> TypeRef:
    if isinstance(node, NonNullTypeNode):
        return NonNullRef(from_node(node.type, kinds))
    if isinstance(node, ListTypeNode):
        return ListRef(from_node(node.type, kinds))
    if isinstance(node, NamedTypeNode):
        return kinds.ref(node.name.value)
    raise TypeError(f"Unsupported type node: {node!r}")


def render(ref: TypeRef) -> str:
    """SDL spelling of a type reference, e.g. ``[Widget!]!``."""
    if isinstance(ref, NonNullRef):
        return f"{render(ref.of)}!"
    if isinstance(ref, ListRef):
        return f"[{render(ref.of)}]"
    return ref.name


def named(ref: TypeRef) -> NamedRef:
    while isinstance(ref, (NonNullRef, ListRef)):
        ref = ref.of
    return ref


def nullable(ref: TypeRef) -> TypeRef:
    return ref.of if isinstance(ref, NonNullRef) else ref


def non_null(ref: TypeRef) -> TypeRef:
    return ref if isinstance(ref, NonNullRef) else NonNullRef(ref)


def rename(ref: TypeRef, fn: Callable[[NamedRef], NamedRef]) -> TypeRef:
    """Rebuild ``ref`` with the innermost named type replaced by ``fn(named)``.

    The list/non-null wrapper shape is preserved.
    """
    if isinstance(ref, NonNullRef):
        return NonNullRef(rename(ref.of, fn))
    if isinstance(ref, ListRef):
        return ListRef(rename(ref.of, fn))
    return fn(ref)


def is_non_null_id(ref: TypeRef) -> bool:
    return isinstance(ref, NonNullRef) and ref.of == ScalarRef('ID')
