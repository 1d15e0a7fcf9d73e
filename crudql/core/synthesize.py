"""Derive the CRUD auxiliary types for a root object type.

For a root type ``T`` the synthesizer produces ``TInput``, ``TUpdateInput``,
``TEdge``, ``TConnection``, ``TQuery``, ``TMutation`` and one entry point field
on each of the query and mutation root types (``Query`` and ``Mutation`` unless
a ``schema { ... }`` definition names others). Object-typed fields are turned into
nested input types recursively. Input types the consumer already declared are
never generated, and the set of declared names is computed once up front and
passed in read-only.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Set, Tuple

from graphql import parse
from graphql.language import (
    DocumentNode,
    FieldDefinitionNode,
    InterfaceTypeDefinitionNode,
    ObjectTypeDefinitionNode,
    SchemaDefinitionNode,
)

from ..errors import InvalidDocumentError
from .common import PrimitiveNames
from .introspect import FieldDescriptor, TypeDescriptor
from .naming import lower_camel
from .types import (
    NamedRef,
    ObjectRef,
    TypeKinds,
    TypeRef,
    from_node,
    named,
    non_null,
    nullable,
    render,
    rename,
)

if TYPE_CHECKING:  # pragma: no cover
    from ..config import SchemaOptions

__all__ = ['TIMESTAMP_FIELDS', 'declared_names', 'root_operation_names', 'Synthesizer']

_logger = logging.getLogger("crudql.synthesize")

TIMESTAMP_FIELDS = ('created', 'modified')

_ARG_DESC_BEFORE = "Return items before this cursor."
_ARG_DESC_AFTER = "Return items after this cursor."
_ARG_DESC_FIRST = "Number of items from the start of the window (at most {limit})."
_ARG_DESC_LAST = "Number of items from the end of the window (at most {limit})."
_ARG_DESC_ORDER = "Ordering specs; later entries break ties of earlier ones."
_ARG_DESC_FILTER = "Filters combined with AND, e.g. {field: \\\"name\\\", op: EQ, value: \\\"x\\\"}."


def declared_names(document: DocumentNode) -> FrozenSet[str]:
    """Names of every named declaration in ``document``."""
    return frozenset(
        definition.name.value
        for definition in document.definitions
        if getattr(definition, 'name', None) is not None
    )


def root_operation_names(document: DocumentNode) -> Tuple[str, str]:
    """Names of the query and mutation root types.

    A ``schema { ... }`` definition in ``document`` wins; operations it does not
    name fall back to ``Query`` and ``Mutation``.
    """
    names = {'query': 'Query', 'mutation': 'Mutation'}
    for definition in document.definitions:
        if isinstance(definition, SchemaDefinitionNode):
            for operation_type in definition.operation_types:
                names[operation_type.operation.value] = operation_type.type.name.value
    return names['query'], names['mutation']


class Synthesizer:
    """Generates one fragment per root type from a merged working document.

    ``declared`` is the set of names the consumer already declared; it is
    never modified. Input types generated for one root type are remembered so
    a later root type referencing the same nested object reuses them.
    """

    def __init__(
        self,
        document: DocumentNode,
        options: SchemaOptions,
        *,
        declared: Optional[FrozenSet[str]] = None,
        descriptors: Optional[Mapping[str, TypeDescriptor]] = None,
    ):
        self.options = options
        self.kinds = TypeKinds.from_document(document)
        self.declared = declared if declared is not None else declared_names(document)
        self.descriptors: Mapping[str, TypeDescriptor] = descriptors or {}
        self.names = PrimitiveNames(options.namespace)
        self.query_name, self.mutation_name = root_operation_names(document)
        self._definitions: Dict[str, Any] = {
            d.name.value: d
            for d in document.definitions
            if isinstance(d, (ObjectTypeDefinitionNode, InterfaceTypeDefinitionNode))
        }
        self._generated: Set[str] = set()
        self._in_progress: Set[str] = set()

    # ---------- Input types ----------
    def _nested_fields(self, type_name: str) -> Optional[Tuple[FieldDescriptor, ...]]:
        descriptor = self.descriptors.get(type_name)
        if descriptor is not None:
            return self._root_input_fields(descriptor)
        definition = self._definitions.get(type_name)
        if definition is None:
            return None
        return tuple(FieldDescriptor(f.name.value, from_node(f.type, self.kinds)) for f in definition.fields or ())

    def _input_field_type(self, field: FieldDescriptor, update: bool, out: List[str]) -> Optional[TypeRef]:
        ref = field.type
        base = named(ref)
        if isinstance(base, ObjectRef):
            nested = self._nested_fields(base.name)
            if nested is None:
                _logger.debug("field %s of type %s has no input equivalent; skipped", field.name, base.name)
                return None
            input_name = self._input_type(base.name, nested, update, out)

            def _to_input(_: NamedRef) -> NamedRef:
                return ObjectRef(input_name)

            ref = rename(ref, _to_input)
        return nullable(ref) if update else ref

    def _input_type(self, type_name: str, fields: Sequence[FieldDescriptor], update: bool, out: List[str]) -> str:
        input_name = f"{type_name}UpdateInput" if update else f"{type_name}Input"
        if input_name in self.declared:
            _logger.debug("input type %s declared by consumer; synthesis skipped", input_name)
            return input_name
        if input_name in self._generated or input_name in self._in_progress:
            return input_name
        self._in_progress.add(input_name)
        try:
            lines = []
            for field in fields:
                ref = self._input_field_type(field, update, out)
                if ref is not None:
                    lines.append(f"  {field.name}: {render(ref)}")
        finally:
            self._in_progress.discard(input_name)
        if not lines:
            raise InvalidDocumentError(
                f'Input type "{input_name}" derived from "{type_name}" has no fields; '
                f'declare "{input_name}" or give "{type_name}" a non-identifier field'
            )
        out.append(_block('input', input_name, lines))
        self._generated.add(input_name)
        return input_name

    def _root_input_fields(self, descriptor: TypeDescriptor) -> Tuple[FieldDescriptor, ...]:
        if not self.options.timestamps:
            return descriptor.fields
        return tuple(f for f in descriptor.fields if f.name not in TIMESTAMP_FIELDS)

    # ---------- Object types ----------
    def _list_types(self, type_name: str) -> List[str]:
        return [
            _block('type', f"{type_name}Edge", [
                f"  node: {type_name}!",
                "  cursor: ID!",
            ]),
            _block('type', f"{type_name}Connection", [
                f"  edges: [{type_name}Edge!]!",
                f"  pageInfo: {self.names.page_info}!",
            ]),
        ]

    def _query_type(self, descriptor: TypeDescriptor) -> str:
        type_name = descriptor.type_name
        id_arg = f"{descriptor.id_field_name}: {render(descriptor.id_field_type)}"
        limit = self.options.max_page_size
        return _block('type', f"{type_name}Query", [
            f"  find({id_arg}): {type_name}",
            "  list(",
            f'    "{_ARG_DESC_BEFORE}"',
            "    before: ID",
            f'    "{_ARG_DESC_AFTER}"',
            "    after: ID",
            f'    "{_ARG_DESC_FIRST.format(limit=limit)}"',
            "    first: Int",
            f'    "{_ARG_DESC_LAST.format(limit=limit)}"',
            "    last: Int",
            f'    "{_ARG_DESC_ORDER}"',
            f"    order: [{self.names.order_input}!]",
            f'    "{_ARG_DESC_FILTER}"',
            f"    filter: [{self.names.filter_input}!]",
            f"  ): {type_name}Connection",
        ])

    def _mutation_type(self, descriptor: TypeDescriptor) -> str:
        type_name = descriptor.type_name
        id_name = descriptor.id_field_name
        id_type = descriptor.id_field_type
        return _block('type', f"{type_name}Mutation", [
            f"  create({id_name}: {render(nullable(id_type))}, data: {type_name}Input!): {render(non_null(id_type))}",
            f"  update({id_name}: {render(id_type)}, data: {type_name}UpdateInput!): Boolean",
            f"  upsert({id_name}: {render(id_type)}, data: {type_name}Input!): Boolean",
            f"  delete({id_name}: {render(id_type)}): Boolean",
        ])

    def _entry_points(self, type_name: str) -> List[str]:
        field_name = lower_camel(type_name)
        return [
            _block('type', self.query_name, [f"  {field_name}: {type_name}Query"]),
            _block('type', self.mutation_name, [f"  {field_name}: {type_name}Mutation"]),
        ]

    def _with_timestamps(self, type_name: str) -> Optional[ObjectTypeDefinitionNode]:
        definition = self._definitions.get(type_name)
        if not isinstance(definition, ObjectTypeDefinitionNode):
            return None
        present = {f.name.value for f in definition.fields or ()}
        missing = [name for name in TIMESTAMP_FIELDS if name not in present]
        if not missing:
            return None
        extra: Tuple[FieldDefinitionNode, ...] = tuple(
            parse(_block('type', type_name, [f"  {name}: Float!" for name in missing])).definitions[0].fields
        )
        return ObjectTypeDefinitionNode(
            name=definition.name,
            description=definition.description,
            interfaces=definition.interfaces,
            directives=definition.directives,
            fields=tuple(definition.fields or ()) + extra,
        )

    def synthesize(self, descriptor: TypeDescriptor) -> DocumentNode:
        """Return the generated fragment for one root type."""
        type_name = descriptor.type_name
        parts: List[str] = []
        root_fields = self._root_input_fields(descriptor)
        self._input_type(type_name, root_fields, False, parts)
        self._input_type(type_name, root_fields, True, parts)
        parts.extend(self._list_types(type_name))
        parts.append(self._query_type(descriptor))
        parts.append(self._mutation_type(descriptor))
        parts.extend(self._entry_points(type_name))
        document = parse("\n\n".join(parts), **self.options.parse_options)
        if self.options.timestamps:
            augmented = self._with_timestamps(type_name)
            if augmented is not None:
                document = DocumentNode(definitions=tuple(document.definitions) + (augmented,))
        _logger.debug("synthesized %d declarations for %s", len(document.definitions), type_name)
        return document


def _block(keyword: str, name: str, lines: Sequence[str]) -> str:
    body = "\n".join(lines)
    return f"{keyword} {name} {{\n{body}\n}}"
