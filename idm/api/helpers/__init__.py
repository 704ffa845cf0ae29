"""Request parsing helpers for the controllers."""
from .request_parsing import (
    EMPTY_ID_LIST,
    parse_ids_query,
    parse_int_query,
    parse_path_id,
    query_context,
    read_json,
)

__all__ = [
    "EMPTY_ID_LIST",
    "parse_ids_query",
    "parse_int_query",
    "parse_path_id",
    "query_context",
    "read_json",
]
