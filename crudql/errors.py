"""Exception hierarchy for crudql.

Assembly-time errors (invalid documents, missing identifiers, unnamed
declarations) abort the whole schema build. ``RecordNotFoundError`` is raised
by resolvers and is scoped to the single operation that raised it.
"""
from __future__ import annotations

from typing import Any

__all__ = [
    'CrudQLError',
    'InvalidDocumentError',
    'NoIdentifierFieldError',
    'RecordNotFoundError',
    'UnknownDuplicateNameError',
]


class CrudQLError(Exception):
    """Base class for every error raised by crudql."""


class InvalidDocumentError(CrudQLError):
    """A supplied fragment does not parse to a well-formed document."""


class NoIdentifierFieldError(CrudQLError):
    def __init__(self, type_name: str, field_name: str | None = None):
        self.type_name = type_name
        self.field_name = field_name
        if field_name is None:
            msg = f'Type "{type_name}" has no non-null ID field to use as identifier'
        else:
            msg = f'Identifier field "{field_name}" does not exist on type "{type_name}"'
        super().__init__(msg)


class RecordNotFoundError(CrudQLError):
    def __init__(self, collection: str, id: Any):
        self.collection = collection
        self.id = id
        super().__init__(
            f'Document with id "{id}" in collection "{collection}" does not exist for update'
        )


class UnknownDuplicateNameError(CrudQLError):
    """The merge engine could not compute the name of a declaration."""

    def __init__(self, node: Any):
        self.node = node
        kind = getattr(node, 'kind', type(node).__name__)
        super().__init__(f'Unable to get name for node of kind {kind!r}')
