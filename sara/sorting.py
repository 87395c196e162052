"""
JSON:API sorting

http://jsonapi.org/format/#fetching-sorting
"""
from typing import Iterable, Mapping, Optional, Tuple
import sara
from sqlalchemy.orm import Query, RelationshipProperty
from .parameters import SortParameter, parse_sort
from .util import attribute_keys, underscore


class SortStrategy:
    """
    Map JSON:API sort fields to model columns and apply them to the query

    :param model: sqla model class
    :param key_name: attribute holding the resource id, used for the "id" sort field
    :param default_sort: sort used when the client didn't provide one, eg. ["-created_at"]
    :param sort_columns: mapping of JSON:API sort field -> model attribute name
    """

    def __init__(self, model, key_name: str, default_sort: Iterable = (), sort_columns: Optional[Mapping[str, str]] = None) -> None:
        self.model = model
        self.key_name = key_name
        self.default_sort: Tuple[SortParameter, ...] = parse_sort(default_sort)
        self.sort_columns = dict(sort_columns or {})

    def column_name(self, field: str) -> str:
        if field in self.sort_columns:
            return self.sort_columns[field]
        if field == "id":
            return self.key_name
        return underscore(field)

    def sort_column(self, field: str):
        """
        :return: the sqla column attribute for the JSON:API sort field or None
        """
        name = self.column_name(field)
        # explicit sort_columns may point to any model attribute (eg. a hybrid property),
        # other fields must be exposed columns
        if field not in self.sort_columns and name != self.key_name and name not in attribute_keys(self.model):
            return None
        column = getattr(self.model, name, None)
        if column is None or not hasattr(column, "desc"):
            return None
        if isinstance(getattr(column, "property", None), RelationshipProperty):
            return None
        return column

    def apply(self, query: Query, sort: Iterable[SortParameter]) -> Query:
        """
        Add an order_by clause for every sort parameter, in the given order
        :param query: sqla query
        :param sort: normalized sort parameters
        :return: sqla query
        """
        for param in sort:
            column = self.sort_column(param.field)
            if column is None:
                sara.log.warning(f"{self.model.__name__} has no sortable attribute {param.field}")
                continue
            query = query.order_by(column.asc() if param.is_ascending else column.desc())
        return query
