"""
Paging strategy contracts

http://jsonapi.org/format/#fetching-pagination

The resource adapter only decides *when* a query is paginated, the strategy
decides *how*: it receives the filtered and sorted query together with the
normalized query parameters and returns a `Page`.
"""
from __future__ import annotations
import abc
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Query
from .parameters import QueryParameters


@dataclass
class Page:
    """
    A single page of results, with the "meta" and "links" that go with it
    """

    data: List[Any]
    meta: Dict[str, Any] = field(default_factory=dict)
    links: Dict[str, str] = field(default_factory=dict)

    def __iter__(self):
        return iter(self.data)

    def __len__(self):
        return len(self.data)


class PagingStrategy(abc.ABC):
    @abc.abstractmethod
    def paginate(self, query: Query, parameters: QueryParameters) -> Page:
        """
        :param query: filtered and sorted sqla query
        :param parameters: normalized query parameters, `parameters.page` is not empty
        :return: Page
        """


class CursorPagingStrategy(PagingStrategy):
    """
    Cursor based paging needs a stable ordering key, the resource adapter tells
    the strategy which column holds the resource id before it delegates.
    """

    identifier_column: Optional[str] = None

    def with_identifier_column(self, column: str) -> CursorPagingStrategy:
        self.identifier_column = column
        return self
