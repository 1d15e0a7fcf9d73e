# Core subpackage: schema derivation and merge building blocks (no resolvers, no storage).
from .types import (
    TypeRef, ScalarRef, ObjectRef, EnumRef, ListRef, NonNullRef, TypeKinds,
    from_node, render, named, nullable, non_null, rename,
)
from .introspect import FieldDescriptor, TypeDescriptor, describe, first_non_null_id_field
from .merge import MergePolicy, MERGE_STRATEGIES, register_merge_strategy, merge_documents
from .synthesize import Synthesizer, declared_names
from .common import PrimitiveNames, common_document, FILTER_OPERATIONS
from .loader import load_document, load_schema_file, load_schema_dir
from .naming import lower_camel

__all__ = [
    'TypeRef', 'ScalarRef', 'ObjectRef', 'EnumRef', 'ListRef', 'NonNullRef', 'TypeKinds',
    'from_node', 'render', 'named', 'nullable', 'non_null', 'rename',
    'FieldDescriptor', 'TypeDescriptor', 'describe', 'first_non_null_id_field',
    'MergePolicy', 'MERGE_STRATEGIES', 'register_merge_strategy', 'merge_documents',
    'Synthesizer', 'declared_names',
    'PrimitiveNames', 'common_document', 'FILTER_OPERATIONS',
    'load_document', 'load_schema_file', 'load_schema_dir',
    'lower_camel',
]
