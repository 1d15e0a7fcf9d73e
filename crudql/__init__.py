"""crudql public API and lightweight lazy exports.

Derives CRUD query/mutation/pagination/input types from minimal GraphQL type
declarations, merges schema fragments and binds the generated fields to a
data collection.

Exposes:
- Errors: CrudQLError, InvalidDocumentError, NoIdentifierFieldError,
  RecordNotFoundError, UnknownDuplicateNameError (imported eagerly)
- Lazy: build_schema, build_document, combine_schemas, CrudSchema,
  SchemaOptions, merge_documents, load_document, Collection, ListOptions
"""
from __future__ import annotations

from .errors import (
    CrudQLError,
    InvalidDocumentError,
    NoIdentifierFieldError,
    RecordNotFoundError,
    UnknownDuplicateNameError,
)

_LAZY = {
    'build_schema': 'schema',
    'build_document': 'schema',
    'build_executable': 'schema',
    'combine_schemas': 'schema',
    'CrudSchema': 'schema',
    'AssembledDocument': 'schema',
    'SchemaOptions': 'config',
    'Collection': 'collection',
    'ListOptions': 'collection',
    'merge_documents': 'core.merge',
    'MergePolicy': 'core.merge',
    'load_document': 'core.loader',
    'load_schema_file': 'core.loader',
    'load_schema_dir': 'core.loader',
    'common_document': 'core.common',
}


def __getattr__(name: str):  # PEP 562 lazy exports
    import importlib as _importlib
    module = _LAZY.get(name)
    if module is None:
        raise AttributeError(name)
    return getattr(_importlib.import_module(f"{__name__}.{module}"), name)


__all__ = [
    'CrudQLError', 'InvalidDocumentError', 'NoIdentifierFieldError',
    'RecordNotFoundError', 'UnknownDuplicateNameError',
    *_LAZY,
]
