"""Bind generated query/mutation fields to data collections.

For every root type ``T`` the binding exposes ``Query.<t>`` and
``Mutation.<t>`` entry points resolving to an empty object, a ``TQuery``
resolver map with ``find``/``list`` and a ``TMutation`` map with
``create``/``update``/``upsert``/``delete``. All of them delegate to the
collection returned by the caller's data factory.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from graphql import GraphQLObjectType, GraphQLResolveInfo, GraphQLSchema

from .collection import Collection, DataFactory, ListOptions
from .config import SchemaOptions
from .core.introspect import TypeDescriptor
from .core.naming import lower_camel
from .errors import RecordNotFoundError

__all__ = [
    'ResolverMap',
    'CollectionSource',
    'clamp_page_size',
    'normalize_list_args',
    'build_query_resolver',
    'build_mutation_resolver',
    'build_resolvers',
    'attach_resolvers',
]

_logger = logging.getLogger("crudql.resolvers")

ResolverMap = Dict[str, Dict[str, Callable[..., Any]]]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def clamp_page_size(value: Optional[int], maximum: int) -> Optional[int]:
    """Positive sizes are capped at ``maximum``; anything else is unspecified."""
    if value is None or value <= 0:
        return None
    return min(value, maximum)


def normalize_list_args(args: Mapping[str, Any], maximum: int) -> ListOptions:
    return ListOptions(
        filter=args.get('filter'),
        order=args.get('order'),
        before=args.get('before'),
        after=args.get('after'),
        first=clamp_page_size(args.get('first'), maximum),
        last=clamp_page_size(args.get('last'), maximum),
        cursor=args.get('cursor'),
        limit=clamp_page_size(args.get('limit'), maximum),
    )


class CollectionSource:
    """Acquires the collection for one root type.

    In the default mode the factory is called once by ``open()`` and the
    handle is reused for every operation. With ``request_scoped`` the factory
    is called on every resolver invocation with the request context.
    """

    def __init__(
        self,
        data: DataFactory,
        descriptor: TypeDescriptor,
        schema: GraphQLSchema,
        *,
        request_scoped: bool = False,
        context: Any = None,
    ):
        self.data = data
        self.descriptor = descriptor
        self.schema = schema
        self.request_scoped = request_scoped
        self.context = context
        self._collection: Optional[Collection] = None

    async def _acquire(self, context: Any) -> Collection:
        name = self.descriptor.type_name
        return await _maybe_await(self.data(
            id=self.descriptor.id_field_name,
            name=name,
            type=self.schema.get_type(name),
            schema=self.schema,
            context=context,
        ))

    async def open(self) -> None:
        if not self.request_scoped:
            self._collection = await self._acquire(self.context)

    async def get(self, info: Optional[GraphQLResolveInfo]) -> Collection:
        if self._collection is not None:
            return self._collection
        return await self._acquire(info.context if info is not None else self.context)


def _entry_point(root: Any, info: GraphQLResolveInfo, **args: Any) -> Dict[str, Any]:
    # Fields of TQuery/TMutation do the work.
    return {}


def build_query_resolver(source: CollectionSource, options: SchemaOptions) -> Dict[str, Callable[..., Any]]:
    id_name = source.descriptor.id_field_name

    async def find(root: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        collection = await source.get(info)
        _logger.debug("find %s %s", source.descriptor.type_name, args.get(id_name))
        return await _maybe_await(collection.find(args.get(id_name)))

    async def list_(root: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        collection = await source.get(info)
        list_options = normalize_list_args(args, options.max_page_size)
        _logger.debug("list %s first=%s last=%s", source.descriptor.type_name, list_options.first, list_options.last)
        return await _maybe_await(collection.list(list_options))

    return {'find': find, 'list': list_}


def build_mutation_resolver(source: CollectionSource, options: SchemaOptions) -> Dict[str, Callable[..., Any]]:
    id_name = source.descriptor.id_field_name
    type_name = source.descriptor.type_name

    async def create(root: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        collection = await source.get(info)
        data = dict(args.get('data') or {})
        if options.timestamps:
            now = options.clock()
            data['created'] = now
            data['modified'] = now
        record_id = await _maybe_await(collection.create(args.get(id_name), data))
        _logger.debug("created %s %s", type_name, record_id)
        return record_id

    async def update(root: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        collection = await source.get(info)
        record_id = args.get(id_name)
        existing = await _maybe_await(collection.find(record_id))
        if existing is None:
            raise RecordNotFoundError(type_name, record_id)
        data = dict(args.get('data') or {})
        if options.timestamps:
            data['modified'] = options.clock()
        _logger.debug("updating %s %s", type_name, record_id)
        return await _maybe_await(collection.update(record_id, data))

    async def upsert(root: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        collection = await source.get(info)
        record_id = args.get(id_name)
        data = dict(args.get('data') or {})
        if options.timestamps:
            now = options.clock()
            existing = await _maybe_await(collection.find(record_id))
            if existing is None:
                data['created'] = now
            data['modified'] = now
        _logger.debug("upserting %s %s", type_name, record_id)
        return await _maybe_await(collection.upsert(record_id, data))

    async def delete(root: Any, info: GraphQLResolveInfo, **args: Any) -> Any:
        collection = await source.get(info)
        record_id = args.get(id_name)
        _logger.debug("deleting %s %s", type_name, record_id)
        return await _maybe_await(collection.delete(record_id))

    return {'create': create, 'update': update, 'upsert': upsert, 'delete': delete}


async def build_resolvers(
    data: DataFactory,
    schema: GraphQLSchema,
    descriptors: Sequence[TypeDescriptor],
    options: SchemaOptions,
    context: Any = None,
) -> ResolverMap:
    """Build the resolver map for ``descriptors``, one root type at a time in parallel.

    Each root type adds one field to the schema's query and mutation root types
    (keyed by its own lowerCamel name) and its own ``TQuery``/``TMutation``
    entries, so the concurrent builders never write the same key. Every
    factory call runs to completion before the first failure is raised.
    """
    query_name = schema.query_type.name if schema.query_type is not None else 'Query'
    mutation_name = schema.mutation_type.name if schema.mutation_type is not None else 'Mutation'
    result: ResolverMap = {query_name: {}, mutation_name: {}}

    async def process(descriptor: TypeDescriptor) -> None:
        source = CollectionSource(
            data, descriptor, schema,
            request_scoped=options.request_scoped,
            context=context,
        )
        await source.open()
        field_name = lower_camel(descriptor.type_name)
        result[query_name][field_name] = _entry_point
        result[mutation_name][field_name] = _entry_point
        result[f"{descriptor.type_name}Query"] = build_query_resolver(source, options)
        result[f"{descriptor.type_name}Mutation"] = build_mutation_resolver(source, options)

    outcomes = await asyncio.gather(*(process(d) for d in descriptors), return_exceptions=True)
    errors = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
    for error in errors[1:]:
        _logger.error("collection acquisition also failed: %r", error)
    if errors:
        raise errors[0]
    return result


def attach_resolvers(schema: GraphQLSchema, resolvers: ResolverMap) -> GraphQLSchema:
    """Set ``resolve`` on the schema fields named by ``resolvers``."""
    for type_name, fields in resolvers.items():
        gql_type = schema.get_type(type_name)
        if not isinstance(gql_type, GraphQLObjectType):
            raise KeyError(f"Type {type_name!r} is not an object type of the schema")
        for field_name, resolve in fields.items():
            gql_type.fields[field_name].resolve = resolve
    return schema
