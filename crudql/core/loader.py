"""Turn schema fragments of various shapes into graphql-core documents."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import strawberry
from graphql import GraphQLError, GraphQLSchema, parse, print_schema
from graphql.language import DocumentNode
from strawberry.printer import print_schema as print_strawberry_schema

from ..errors import InvalidDocumentError

__all__ = ['load_document', 'load_schema_file', 'load_schema_dir']

_logger = logging.getLogger("crudql.loader")


def load_document(source: Any, parse_options: Optional[Dict[str, Any]] = None) -> DocumentNode:
    """Return ``source`` as a ``DocumentNode``.

    Accepts SDL text, an already parsed document, a graphql-core schema or a
    strawberry schema. Anything else, or text that fails to parse, raises
    ``InvalidDocumentError``.
    """
    if isinstance(source, DocumentNode):
        return source
    if isinstance(source, strawberry.Schema):
        source = print_strawberry_schema(source)
    elif isinstance(source, GraphQLSchema):
        source = print_schema(source)
    if not isinstance(source, str):
        raise InvalidDocumentError(
            f"Supplied schemas MUST be or MUST parse to Document, got {type(source).__name__}"
        )
    try:
        return parse(source, **(parse_options or {}))
    except GraphQLError as exc:
        raise InvalidDocumentError(f"Unable to parse schema fragment: {exc.message}") from exc


def load_schema_file(path: Union[str, Path], parse_options: Optional[Dict[str, Any]] = None) -> DocumentNode:
    path = Path(path)
    _logger.debug("loading schema file %s", path)
    try:
        return load_document(path.read_text(encoding='utf-8'), parse_options)
    except InvalidDocumentError as exc:
        raise InvalidDocumentError(f"{path}: {exc}") from exc


def load_schema_dir(
    directory: Union[str, Path],
    pattern: str = '*.graphql',
    parse_options: Optional[Dict[str, Any]] = None,
) -> List[DocumentNode]:
    """Load every schema file in ``directory`` matching ``pattern``, sorted by name."""
    return [
        load_schema_file(path, parse_options)
        for path in sorted(Path(directory).glob(pattern))
    ]
