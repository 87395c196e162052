"""
JSON:API query parameters: include, fields, sort, page and filter

https://jsonapi.org/format/#fetching

The parameters are request-scoped: they're created for every inbound call and
handed to the resource adapter, which merges its own defaults into them
(cfr. `ResourceAdapter.query_parameters`).
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Mapping, NamedTuple, Tuple
from .util import csv_list

FILTER_ARG = re.compile(r"^filter\[(\w+)\]$")
FIELDS_ARG = re.compile(r"^fields\[([\w\-]+)\]$")
PAGE_ARG = re.compile(r"^page\[(\w+)\]$")


class SortParameter(NamedTuple):
    """
    A single sort field, eg. `-created_at` => SortParameter("created_at", False)
    """

    field: str
    is_ascending: bool = True

    @classmethod
    def parse(cls, value: str) -> SortParameter:
        """
        The sort order for each sort field MUST be ascending unless it is prefixed
        with a minus, in which case it MUST be descending.
        """
        if value.startswith("-"):
            return cls(value[1:], False)
        return cls(value, True)

    def __str__(self) -> str:
        return self.field if self.is_ascending else f"-{self.field}"


def parse_sort(sort: Iterable[Any]) -> Tuple[SortParameter, ...]:
    """
    :param sort: csv string, list of strings or list of (field, is_ascending) tuples
    :return: tuple of SortParameters
    """
    result = []
    for item in csv_list(sort):
        if isinstance(item, str):
            result.append(SortParameter.parse(item))
        else:
            result.append(SortParameter(*item))
    return tuple(result)


@dataclass(frozen=True)
class QueryParameters:
    """
    Normalized bundle of the query parameters of a single request
    """

    include_paths: Tuple[str, ...] = ()
    field_sets: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    sort: Tuple[SortParameter, ...] = ()
    page: Dict[str, Any] = field(default_factory=dict)
    filters: Dict[str, Any] = field(default_factory=dict)
    unrecognized: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, include_paths=None, field_sets=None, sort=None, page=None, filters=None, unrecognized=None) -> QueryParameters:
        """
        Create query parameters from loosely typed values (lists, csv strings, mappings)
        """
        return cls(
            include_paths=tuple(csv_list(include_paths)),
            field_sets={type_: tuple(csv_list(names)) for type_, names in (field_sets or {}).items()},
            sort=parse_sort(sort),
            page=dict(page or {}),
            filters=dict(filters or {}),
            unrecognized=dict(unrecognized or {}),
        )

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> QueryParameters:
        """
        Parse the jsonapi url query arguments:
        - include
        - fields[TYPE]
        - sort
        - page[KEY]
        - filter[KEY]
        anything else is passed through as unrecognized
        """
        include_paths = None
        sort = None
        field_sets = {}
        page = {}
        filters = {}
        unrecognized = {}

        for arg, val in args.items():
            if arg == "include":
                include_paths = val
            elif arg == "sort":
                sort = val
            elif FIELDS_ARG.match(arg):
                # https://jsonapi.org/format/#fetching-sparse-fieldsets
                field_sets[FIELDS_ARG.match(arg).group(1)] = val
            elif PAGE_ARG.match(arg):
                page[PAGE_ARG.match(arg).group(1)] = val
            elif FILTER_ARG.match(arg):
                filters[FILTER_ARG.match(arg).group(1)] = val
            else:
                unrecognized[arg] = val

        return cls.create(include_paths, field_sets, sort, page, filters, unrecognized)

    def with_defaults(self, sort: Tuple[SortParameter, ...] = (), page: Mapping[str, Any] = None) -> QueryParameters:
        """
        :return: a copy where an empty sort or page has been replaced by the given default
        """
        return replace(
            self,
            sort=tuple(self.sort) or tuple(sort),
            page=dict(self.page) or dict(page or {}),
            filters=dict(self.filters),
        )
