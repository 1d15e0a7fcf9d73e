"""Assemble an executable CRUD schema from type-system fragments.

Typical use::

    crud = await build_schema(
        '''
        type Widget {
            id: ID!
            name: String!
        }
        ''',
        ['Widget'],
        data=my_factory,
        timestamps=True,
    )
    result = await crud.execute('{ widget { find(id: "w1") { name } } }')
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from graphql import (
    ExecutionResult,
    GraphQLError,
    GraphQLSchema,
    build_ast_schema,
    graphql,
    print_ast,
    validate_schema,
)
from graphql.language import (
    DocumentNode,
    NamedTypeNode,
    NameNode,
    ObjectTypeDefinitionNode,
    OperationType,
    OperationTypeDefinitionNode,
    SchemaDefinitionNode,
)

from .collection import DataFactory
from .config import SchemaOptions
from .core.common import common_document
from .core.introspect import TypeDescriptor, describe
from .core.merge import MergePolicy, merge_documents
from .core.synthesize import Synthesizer, declared_names, root_operation_names
from .core.types import TypeKinds
from .errors import InvalidDocumentError
from .resolvers import ResolverMap, attach_resolvers, build_resolvers

__all__ = [
    'AssembledDocument',
    'CrudSchema',
    'build_document',
    'build_executable',
    'build_schema',
    'combine_schemas',
]

_logger = logging.getLogger("crudql")


@dataclass
class AssembledDocument:
    document: DocumentNode
    descriptors: Dict[str, TypeDescriptor]

    def sdl(self) -> str:
        return print_ast(self.document)


@dataclass
class CrudSchema:
    document: DocumentNode
    schema: GraphQLSchema
    resolvers: ResolverMap
    descriptors: Dict[str, TypeDescriptor] = field(default_factory=dict)

    def sdl(self) -> str:
        return print_ast(self.document)

    async def execute(
        self,
        source: str,
        variable_values: Optional[Dict[str, Any]] = None,
        context_value: Any = None,
        operation_name: Optional[str] = None,
    ) -> ExecutionResult:
        return await graphql(
            self.schema,
            source,
            variable_values=variable_values,
            context_value=context_value,
            operation_name=operation_name,
        )


def _options(options: Optional[SchemaOptions], overrides: Dict[str, Any]) -> SchemaOptions:
    return (options or SchemaOptions()).with_overrides(**overrides)


def _fragments(definitions: Any) -> List[Any]:
    if isinstance(definitions, (list, tuple)):
        return list(definitions)
    return [definitions]


def _root_strategies(*documents: DocumentNode) -> Dict[str, MergePolicy]:
    return {
        name: MergePolicy.FIELD_UNION
        for document in documents
        for name in root_operation_names(document)
    }


def _complete_schema_definition(document: DocumentNode) -> DocumentNode:
    """Name both root operations in an explicit ``schema { ... }`` definition.

    Entry points always land on a query and a mutation root type; a schema
    definition that leaves one out would hide it from the executable schema.
    """
    query_name, mutation_name = root_operation_names(document)
    wanted = ((OperationType.QUERY, query_name), (OperationType.MUTATION, mutation_name))
    definitions = list(document.definitions)
    for index, definition in enumerate(definitions):
        if not isinstance(definition, SchemaDefinitionNode):
            continue
        present = {op.operation for op in definition.operation_types}
        missing = tuple(
            OperationTypeDefinitionNode(operation=operation, type=NamedTypeNode(name=NameNode(value=name)))
            for operation, name in wanted
            if operation not in present
        )
        if missing:
            definitions[index] = SchemaDefinitionNode(
                description=definition.description,
                directives=definition.directives,
                operation_types=tuple(definition.operation_types) + missing,
            )
    return DocumentNode(definitions=tuple(definitions))


def build_document(
    definitions: Any,
    root_types: Sequence[str],
    options: Optional[SchemaOptions] = None,
    **overrides: Any,
) -> AssembledDocument:
    """Merge ``definitions`` and add the generated CRUD types for ``root_types``.

    Pure and synchronous: no collection is touched. Raises
    ``InvalidDocumentError`` for unparsable fragments or unknown root types and
    ``NoIdentifierFieldError`` for root types without an identifier.
    """
    options = _options(options, overrides)
    working = merge_documents(*_fragments(definitions), parse_options=options.parse_options)
    kinds = TypeKinds.from_document(working)
    object_types = {
        d.name.value: d for d in working.definitions if isinstance(d, ObjectTypeDefinitionNode)
    }

    descriptors: Dict[str, TypeDescriptor] = {}
    for name in dict.fromkeys(root_types):
        type_def = object_types.get(name)
        if type_def is None:
            raise InvalidDocumentError(f'Root type "{name}" is not declared as an object type')
        descriptors[name] = describe(type_def, kinds, options.id_field_selector)

    synthesizer = Synthesizer(working, options, declared=declared_names(working), descriptors=descriptors)
    generated = [synthesizer.synthesize(descriptor) for descriptor in descriptors.values()]
    document = merge_documents(
        common_document(options.namespace), working, *generated,
        strategies=_root_strategies(working),
    )
    document = _complete_schema_definition(document)
    return AssembledDocument(document=document, descriptors=descriptors)


def build_executable(document: DocumentNode) -> GraphQLSchema:
    """Build and validate a graphql-core schema from ``document``."""
    try:
        schema = build_ast_schema(document)
    except (TypeError, GraphQLError) as exc:
        raise InvalidDocumentError(str(exc)) from exc
    errors = validate_schema(schema)
    if errors:
        raise InvalidDocumentError("\n\n".join(error.message for error in errors))
    return schema


async def build_schema(
    definitions: Any,
    root_types: Sequence[str],
    data: DataFactory,
    options: Optional[SchemaOptions] = None,
    *,
    context: Any = None,
    **overrides: Any,
) -> CrudSchema:
    """Assemble the document, build the executable schema and bind resolvers.

    ``context`` is passed to the data factory when collections are acquired
    at build time; with ``request_scoped=True`` the factory receives each
    request's context instead.
    """
    options = _options(options, overrides)
    assembled = build_document(definitions, root_types, options)
    schema = build_executable(assembled.document)
    resolvers = await build_resolvers(
        data, schema, list(assembled.descriptors.values()), options, context=context,
    )
    attach_resolvers(schema, resolvers)
    _logger.info("built schema for root types %s", ", ".join(assembled.descriptors))
    return CrudSchema(
        document=assembled.document,
        schema=schema,
        resolvers=resolvers,
        descriptors=assembled.descriptors,
    )


def _merge_resolvers(resolver_maps: Iterable[ResolverMap]) -> ResolverMap:
    result: ResolverMap = {}
    for resolvers in resolver_maps:
        for type_name, fields in resolvers.items():
            result.setdefault(type_name, {}).update(fields)
    return result


def combine_schemas(*schemas: CrudSchema) -> CrudSchema:
    """Merge independently built schemas into one executable schema.

    The schemas should use distinct namespaces so their shared primitives do
    not override each other. Collections already acquired by each schema are
    kept as they are.
    """
    documents = [s.document for s in schemas]
    document = merge_documents(*documents, strategies=_root_strategies(*documents))
    executable = build_executable(document)
    resolvers = _merge_resolvers(s.resolvers for s in schemas)
    attach_resolvers(executable, resolvers)
    descriptors: Dict[str, TypeDescriptor] = {}
    for s in schemas:
        descriptors.update(s.descriptors)
    return CrudSchema(document=document, schema=executable, resolvers=resolvers, descriptors=descriptors)
