# flake8: noqa: F401
#
# sara: SqlAlchemy Resource Adapter
#
# Translates JSON:API query parameters (filters, sort, page, include) and resource
# objects into SQLAlchemy queries and writes
#
from .sara_init import DB, log, SARA
from .errors import JsonapiError, ConfigurationError, ValidationError
from .parameters import QueryParameters, SortParameter
from .resource import ResourceObject, ResourceIdentifier, Relationship
from .pagination import Page, PagingStrategy, CursorPagingStrategy
from .relations import (
    RelationshipAdapter,
    BelongsTo,
    HasOne,
    HasMany,
    HasManyThrough,
    MorphHasMany,
    QueriesMany,
    QueriesOne,
)
from .includes import IncludeStrategy
from .sorting import SortStrategy
from .deserialization import AttributeDeserializer
from .adapter import ResourceAdapter
from .request import SARARequest
from .__about__ import __version__, __description__

__all__ = (
    "__version__",
    "__description__",
    #
    "SARA",
    "DB",
    "log",
    # adapters:
    "ResourceAdapter",
    "IncludeStrategy",
    "SortStrategy",
    "AttributeDeserializer",
    # relationships:
    "RelationshipAdapter",
    "BelongsTo",
    "HasOne",
    "HasMany",
    "HasManyThrough",
    "MorphHasMany",
    "QueriesMany",
    "QueriesOne",
    # request objects:
    "QueryParameters",
    "SortParameter",
    "ResourceObject",
    "ResourceIdentifier",
    "Relationship",
    "SARARequest",
    # pagination:
    "Page",
    "PagingStrategy",
    "CursorPagingStrategy",
    # Errors:
    "JsonapiError",
    "ConfigurationError",
    "ValidationError",
)
