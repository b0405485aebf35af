"""Database access: positional-parameter QueryBuilder and the Model base class."""

from sura.database.model import Model
from sura.database.query_builder import QueryBuilder

__all__ = ["Model", "QueryBuilder"]
