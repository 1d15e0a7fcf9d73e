"""Locate the identifier field and the data fields of a root type."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from graphql.language import FieldDefinitionNode, ObjectTypeDefinitionNode

from ..errors import NoIdentifierFieldError
from .types import TypeKinds, TypeRef, from_node, is_non_null_id

__all__ = ['FieldDescriptor', 'TypeDescriptor', 'first_non_null_id_field', 'describe']

IdFieldSelector = Callable[[ObjectTypeDefinitionNode], str]


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    type: TypeRef


@dataclass(frozen=True)
class TypeDescriptor:
    type_name: str
    id_field_name: str
    id_field_type: TypeRef
    fields: Tuple[FieldDescriptor, ...]


def first_non_null_id_field(type_def: ObjectTypeDefinitionNode) -> Optional[str]:
    """Name of the first field declared as ``ID!``, or ``None``."""
    kinds = TypeKinds()
    for field in type_def.fields or ():
        if is_non_null_id(from_node(field.type, kinds)):
            return field.name.value
    return None


def _field(type_def: ObjectTypeDefinitionNode, name: str) -> Optional[FieldDefinitionNode]:
    return next((f for f in type_def.fields or () if f.name.value == name), None)


def describe(
    type_def: ObjectTypeDefinitionNode,
    kinds: TypeKinds,
    id_field_selector: Optional[IdFieldSelector] = None,
) -> TypeDescriptor:
    """Build the ``TypeDescriptor`` for ``type_def``.

    The identifier is the first ``ID!`` field unless ``id_field_selector`` is
    given, in which case its answer is used as is.
    """
    type_name = type_def.name.value
    if id_field_selector is not None:
        id_name = id_field_selector(type_def)
    else:
        id_name = first_non_null_id_field(type_def)
        if id_name is None:
            raise NoIdentifierFieldError(type_name)
    id_field = _field(type_def, id_name)
    if id_field is None:
        raise NoIdentifierFieldError(type_name, id_name)
    fields = tuple(
        FieldDescriptor(f.name.value, from_node(f.type, kinds))
        for f in type_def.fields or ()
        if f.name.value != id_name
    )
    return TypeDescriptor(
        type_name=type_name,
        id_field_name=id_name,
        id_field_type=from_node(id_field.type, kinds),
        fields=fields,
    )
