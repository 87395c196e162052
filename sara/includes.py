"""
Eager loading of included relationships

http://jsonapi.org/format/#fetching-includes
https://docs.sqlalchemy.org/en/20/orm/queryguide/relationships.html
"""
from typing import Iterable, List, Mapping, Optional, Tuple
import sara
from sqlalchemy import inspect as sqla_inspect
from sqlalchemy.orm import Query, selectinload
from .config import get_config
from .parameters import QueryParameters
from .util import underscore

# relationships configured with these loader strategies can't take loader options
UNLOADABLE = {"dynamic", "write_only", "noload", "raise", "raise_on_sql"}


class IncludeStrategy:
    """
    Compute the model relationship paths that have to be eager loaded for a request

    :param model: sqla model class
    :param default_with: model relationship paths that are eager loaded on every query
    :param include_paths: mapping of JSON:API include path -> model relationship path,
                          map to None if the include path shouldn't be eager loaded
    """

    def __init__(self, model, default_with: Iterable[str] = (), include_paths: Optional[Mapping[str, Optional[str]]] = None) -> None:
        self.model = model
        self.default_with: Tuple[str, ...] = tuple(default_with)
        self.include_paths = dict(include_paths or {})

    def model_path(self, include_path: str) -> Optional[str]:
        """
        :param include_path: dotted JSON:API include path, eg. "comments.created-by"
        :return: dotted model relationship path, eg. "comments.created_by"
        """
        if include_path in self.include_paths:
            return self.include_paths[include_path]
        return ".".join(underscore(name) for name in include_path.split("."))

    def relationship_paths(self, include_paths: Iterable[str]) -> List[str]:
        """
        Union of the default eager loaded paths and the requested include paths.
        Duplicates and paths that are the prefix of another path are dropped,
        "author" is loaded anyway when "author.posts" is.
        """
        paths = list(self.default_with)
        for include_path in include_paths:
            path = self.model_path(include_path)
            if path:
                paths.append(path)

        result = []
        for path in paths:
            if path in result:
                continue
            if any(other.startswith(path + ".") for other in paths):
                continue
            result.append(path)
        return result

    def loader_option(self, path: str):
        """
        :return: chained selectinload option for the dotted relationship path or None
        """
        current_cls = self.model
        option = None
        for rel_name in path.split("."):
            rel = sqla_inspect(current_cls).relationships.get(rel_name)
            if rel is None:
                sara.log.warning(f"Invalid relationship : {current_cls.__name__}.{rel_name}")
                break
            if rel.lazy in UNLOADABLE:
                # we can't set options for these relationships
                break
            attr = getattr(current_cls, rel_name)
            option = option.selectinload(attr) if option is not None else selectinload(attr)
            current_cls = rel.mapper.class_
        return option

    def apply(self, query: Query, parameters: QueryParameters) -> Query:
        """
        Add one eager load directive per relationship path to the query
        """
        if not get_config("OPTIMIZED_LOADING"):
            return query
        for path in self.relationship_paths(parameters.include_paths):
            option = self.loader_option(path)
            if option is not None:
                query = query.options(option)
        return query

    def load(self, record, parameters: QueryParameters) -> None:
        """
        Load the relationship paths on a record that has already been fetched
        """
        for path in self.relationship_paths(parameters.include_paths):
            _load_path([record], path.split("."))


def _load_path(records, rel_names) -> None:
    if not rel_names:
        return
    rel_name, rest = rel_names[0], rel_names[1:]
    related = []
    for record in records:
        if record is None:
            continue
        rel = sqla_inspect(type(record)).relationships.get(rel_name)
        if rel is None:
            sara.log.warning(f"Invalid relationship : {type(record).__name__}.{rel_name}")
            return
        if rel.lazy in UNLOADABLE:
            return
        value = getattr(record, rel_name)  # triggers the lazy load if it isn't loaded yet
        if rel.uselist:
            related.extend(value)
        elif value is not None:
            related.append(value)
    _load_path(related, rest)
