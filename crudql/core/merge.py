"""Merge several type-system documents into one.

Documents are folded left to right; a later document wins on a name
collision. How a collision is resolved is looked up per declaration name in
``MERGE_STRATEGIES``: the root containers union their fields, everything else
is replaced wholesale.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from graphql.language import (
    DefinitionNode,
    DocumentNode,
    NameNode,
    ObjectTypeDefinitionNode,
    SchemaDefinitionNode,
    SchemaExtensionNode,
    TypeExtensionNode,
)

from ..errors import UnknownDuplicateNameError
from .loader import load_document

__all__ = [
    'MergePolicy',
    'MERGE_STRATEGIES',
    'register_merge_strategy',
    'policy_for',
    'name_of',
    'name_merge',
    'merge_documents',
]

_logger = logging.getLogger("crudql.merge")

SCHEMA_KEY = '__schema'


class MergePolicy(Enum):
    OVERRIDE = 'override'
    FIELD_UNION = 'field_union'


MERGE_STRATEGIES: Dict[str, MergePolicy] = {
    'Query': MergePolicy.FIELD_UNION,
    'Mutation': MergePolicy.FIELD_UNION,
    'Subscription': MergePolicy.FIELD_UNION,
}


def register_merge_strategy(name: str, policy: MergePolicy) -> None:
    MERGE_STRATEGIES[name] = policy


def policy_for(name: str) -> MergePolicy:
    return MERGE_STRATEGIES.get(name, MergePolicy.OVERRIDE)


def name_of(node: Any) -> str:
    name = getattr(node, 'name', None)
    if isinstance(name, NameNode) and name.value:
        return name.value
    raise UnknownDuplicateNameError(node)


def _declaration_key(node: DefinitionNode) -> Optional[str]:
    """Key used to detect collisions; ``None`` for nodes that are always appended."""
    if isinstance(node, (SchemaExtensionNode, TypeExtensionNode)):
        return None
    if isinstance(node, SchemaDefinitionNode):
        return SCHEMA_KEY
    return name_of(node)


def name_merge(nodes1: Optional[Sequence[Any]], nodes2: Optional[Sequence[Any]]) -> Optional[tuple]:
    """Overwrite items with the same name in ``nodes1`` with items from ``nodes2``
    and append the ones that do not exist yet."""
    if nodes1 is None and nodes2 is None:
        return None
    result: List[Any] = list(nodes1 or ())
    positions = {name_of(node): index for index, node in enumerate(result)}
    for node in nodes2 or ():
        name = name_of(node)
        index = positions.get(name)
        if index is None:
            positions[name] = len(result)
            result.append(node)
        else:
            result[index] = node
    return tuple(result)


def _override(earlier: DefinitionNode, later: DefinitionNode) -> DefinitionNode:
    _logger.debug("declaration %s overridden by later document", _declaration_key(later))
    return later


def _field_union(earlier: DefinitionNode, later: DefinitionNode) -> DefinitionNode:
    description = getattr(later, 'description', None) or getattr(earlier, 'description', None)
    return ObjectTypeDefinitionNode(
        name=earlier.name,
        description=description,
        directives=name_merge(getattr(earlier, 'directives', None), getattr(later, 'directives', None)) or (),
        interfaces=name_merge(getattr(earlier, 'interfaces', None), getattr(later, 'interfaces', None)) or (),
        fields=name_merge(getattr(earlier, 'fields', None), getattr(later, 'fields', None)) or (),
    )


_RESOLVERS: Dict[MergePolicy, Callable[[DefinitionNode, DefinitionNode], DefinitionNode]] = {
    MergePolicy.OVERRIDE: _override,
    MergePolicy.FIELD_UNION: _field_union,
}


def _merge_pair(
    result: List[DefinitionNode],
    positions: Dict[str, int],
    definitions: Iterable[DefinitionNode],
    strategies: Mapping[str, MergePolicy],
) -> None:
    for definition in definitions:
        key = _declaration_key(definition)
        if key is None:
            result.append(definition)
            continue
        index = positions.get(key)
        if index is None:
            positions[key] = len(result)
            result.append(definition)
            continue
        if key == SCHEMA_KEY:
            policy = MergePolicy.OVERRIDE
        else:
            policy = strategies.get(key) or policy_for(key)
        result[index] = _RESOLVERS[policy](result[index], definition)


def merge_documents(
    *documents: Any,
    parse_options: Optional[Dict[str, Any]] = None,
    strategies: Optional[Mapping[str, MergePolicy]] = None,
) -> DocumentNode:
    """Merge ``documents`` left to right into a single ``DocumentNode``.

    Each document may be SDL text, a ``DocumentNode`` (or anything
    ``load_document`` accepts) or ``None``, which is skipped. The fold starts
    from the first non-empty document so its root container fields are kept
    as they are. ``strategies`` adds per-name policies for this call only, on
    top of ``MERGE_STRATEGIES``.
    """
    prepared = [load_document(doc, parse_options) for doc in documents if doc is not None]
    prepared = [doc for doc in prepared if doc.definitions]
    if not prepared:
        return DocumentNode(definitions=())
    result: List[DefinitionNode] = []
    positions: Dict[str, int] = {}
    for definition in prepared[0].definitions:
        key = _declaration_key(definition)
        if key is not None:
            positions.setdefault(key, len(result))
        result.append(definition)
    for doc in prepared[1:]:
        _merge_pair(result, positions, doc.definitions, strategies or {})
    return DocumentNode(definitions=tuple(result))
