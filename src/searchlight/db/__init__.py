"""Searchlight vector storage — in-memory SQLite with sqlite-vec."""

from searchlight.db.connection import IN_MEMORY, Database
from searchlight.db.vectors import ensure_vec_table, model_to_slug, vec_table_name

__all__ = [
    "IN_MEMORY",
    "Database",
    "ensure_vec_table",
    "model_to_slug",
    "vec_table_name",
]
