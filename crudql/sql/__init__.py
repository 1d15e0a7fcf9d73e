from .collection import (
    OPERATOR_REGISTRY,
    SQLAlchemyCollection,
    coerce_filter_value,
    decode_cursor,
    encode_cursor,
    get_db_session,
    page_window,
    register_operator,
    sqlalchemy_data_factory,
)

__all__ = [
    'OPERATOR_REGISTRY',
    'SQLAlchemyCollection',
    'coerce_filter_value',
    'decode_cursor',
    'encode_cursor',
    'get_db_session',
    'page_window',
    'register_operator',
    'sqlalchemy_data_factory',
]
