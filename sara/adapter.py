# adapter.py: implements the ResourceAdapter, which maps JSON:API requests onto SQLAlchemy queries and records
#
# pylint: disable=logging-format-interpolation,line-too-long,protected-access
#
"""
ResourceAdapter customizable attributes and methods, override these in a subclass to customize the adapter.

model:
Type: sqla model class
Description: The model that backs the resource, this is the only attribute that has to be set.


primary_key:
Type: Optional[str]
Description: Model attribute that holds the resource id, defaults to the mapped primary key.


find_many_filter:
Type: Optional[str]
Description: Filter key that triggers a find-many (`key IN (...)`) query, defaults to "id".


default_sort:
Type: List[str]
Description: JSON:API sort fields used when the client didn't send a sort parameter, eg. ["-created_at"].


default_pagination:
Type: Optional[dict]
Description: Page parameters used when the client didn't send any, eg. {"number": 1}.
An empty value means results are not paginated unless the client asks for it.


default_with:
Type: List[str]
Description: Model relationship paths that are eager loaded on every query.


include_paths:
Type: dict
Description: Mapping of JSON:API include path -> model relationship path (None: don't eager load).


sort_columns:
Type: dict
Description: Mapping of JSON:API sort field -> model attribute.


attributes:
Type: dict
Description: Mapping of JSON:API attribute -> model attribute.


fillable / guarded:
Type: List[str]
Description: Fields that may / may not be written from a resource object. An empty `fillable` allows every field.


coerce_attributes:
Type: bool
Description: Parse attribute values according to the column type before they're set.


allow_client_generated_ids:
Type: bool
Description: Indicates whether the client is allowed to create the id.


db_commit:
Type: Optional[bool]
Description: Commit the session after a write, the `AUTO_COMMIT` config option is used when None.


filter:
Type: method (abstract)
Description: Apply the resource specific filters to the query.


is_search_one:
Type: method
Description: Return True if the filters resolve to a single record.


deserialize_<field>_field:
Type: method
Description: Convert the value of the <field> attribute before it is set on the record.


Relationships are declared as methods named after the relationship field:

    class PostAdapter(ResourceAdapter):
        model = Post

        def filter(self, query, filters):
            if "title" in filters:
                query = query.filter(Post.title == filters["title"])
            return query

        def author(self):
            return self.belongs_to()

        def comments(self):
            return self.has_many()
"""
from __future__ import annotations
import abc
import inspect
from typing import Any, Iterable, Mapping, Optional
from sqlalchemy.orm import Query

import sara
from .config import get_config
from .deserialization import AttributeDeserializer
from .errors import ConfigurationError
from .includes import IncludeStrategy
from .pagination import CursorPagingStrategy, Page, PagingStrategy
from .parameters import QueryParameters
from .relations import (
    BelongsTo,
    HasMany,
    HasManyThrough,
    HasOne,
    MorphHasMany,
    QueriesMany,
    QueriesOne,
    RelationshipAdapter,
)
from .resource import Relationship, ResourceObject
from .sorting import SortStrategy
from .util import csv_list, database_id, primary_key_name, resource_type, underscore


class ResourceAdapter(abc.ABC):
    """
    Translates JSON:API query parameters and resource objects into queries and writes on `model`

    :param paging: paging strategy used when the (normalized) page parameters aren't empty
    :param session: sqla session, `sara.DB.session` is used if not provided
    :param includes: eager load strategy, created from `default_with` and `include_paths` if not provided
    :param sorting: sort strategy, created from `default_sort` and `sort_columns` if not provided
    :param deserializer: attribute deserializer, created from `attributes` if not provided
    """

    model = None
    primary_key: Optional[str] = None
    find_many_filter: Optional[str] = None
    default_sort: Iterable[str] = ()
    default_pagination: Optional[Mapping[str, Any]] = None
    default_with: Iterable[str] = ()
    include_paths: Optional[Mapping[str, Optional[str]]] = None
    sort_columns: Optional[Mapping[str, str]] = None
    attributes: Optional[Mapping[str, str]] = None
    fillable: Iterable[str] = ()
    guarded: Iterable[str] = ()
    coerce_attributes = False
    allow_client_generated_ids = False
    db_commit: Optional[bool] = None

    def __init__(
        self,
        paging: Optional[PagingStrategy] = None,
        session=None,
        includes: Optional[IncludeStrategy] = None,
        sorting: Optional[SortStrategy] = None,
        deserializer: Optional[AttributeDeserializer] = None,
    ) -> None:
        if self.model is None:
            raise ConfigurationError(f"No model set on adapter {self.__class__.__name__}")
        self.paging = paging
        self._session = session
        self.key_name = self.primary_key or primary_key_name(self.model)
        self.includes = includes or IncludeStrategy(self.model, self.default_with, self.include_paths)
        self.sorting = sorting or SortStrategy(self.model, self.key_name, self.default_sort, self.sort_columns)
        self.deserializer = deserializer or AttributeDeserializer(self.model, self.attributes, self.coerce_attributes)

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.resource_type}>"

    @property
    def session(self):
        """
        :return: sqla session used for queries and writes
        """
        if self._session is not None:
            return self._session
        return sara.DB.session

    @property
    def resource_type(self) -> str:
        return resource_type(self.model)

    @property
    def key_column(self):
        """
        :return: the (table qualified) column attribute holding the resource id
        """
        return getattr(self.model, self.key_name)

    @property
    def auto_commit(self) -> bool:
        if self.db_commit is not None:
            return self.db_commit
        return bool(get_config("AUTO_COMMIT"))

    #
    # Query parameters
    #
    def query_parameters(self, parameters: Optional[QueryParameters] = None) -> QueryParameters:
        """
        Push the default values in the parameters the client didn't provide:
        the default sort and the default pagination. Every entry point calls this once.
        """
        if parameters is None:
            parameters = QueryParameters()
        return parameters.with_defaults(self.get_default_sort(), self.get_default_pagination())

    def get_default_sort(self) -> tuple:
        return self.sorting.default_sort

    def get_default_pagination(self) -> dict:
        """
        :return: pagination parameters to use when the client has not provided paging parameters.
        """
        return dict(self.default_pagination or {})

    #
    # Reading
    #
    def new_query(self) -> Query:
        """
        Get a new query, subclasses can override this to modify the query used for every request.
        """
        return self.session.query(self.model)

    def query(self, parameters: Optional[QueryParameters] = None):
        """
        Query the resource collection, eg. `GET /posts`
        :return: list, Page or a single record (or None) for a singleton search
        """
        parameters = self.query_parameters(parameters)
        return self._query_all_or_one(self.new_query(), parameters)

    def query_to_many(self, relation_query: Query, parameters: Optional[QueryParameters] = None):
        """
        Query the resource when it appears in a to-many relation of a parent resource.
        For example, `GET /posts/1/comments` calls this on the comments adapter.
        """
        return self._query_all_or_one(relation_query, self.query_parameters(parameters))

    def query_to_one(self, relation_query: Query, parameters: Optional[QueryParameters] = None):
        """
        Query the resource when it appears in a to-one relation of a parent resource.
        For example, `GET /posts/1/author` calls this on the authors adapter.
        """
        return self._query_one(relation_query, self.query_parameters(parameters))

    def query_related(self, record, field: str, related_adapter: ResourceAdapter, parameters: Optional[QueryParameters] = None):
        """
        Query the `field` relationship of `record` with the adapter of the related resource
        """
        relation = self.get_related(field)
        if relation is None:
            raise ConfigurationError(f"'{field}' is not a relationship of adapter {self.__class__.__name__}")
        relation_query = relation.relation_query(record)
        if relation.to_many:
            return related_adapter.query_to_many(relation_query, parameters)
        return related_adapter.query_to_one(relation_query, parameters)

    def read(self, resource_id, parameters: Optional[QueryParameters] = None):
        """
        :param resource_id: JSON:API id
        :return: record or None
        """
        parameters = self.query_parameters(parameters)
        if parameters.filters:
            return self.read_with_filters(resource_id, parameters)

        record = self.find(resource_id)
        if record is not None:
            self.load(record, parameters)
        return record

    def read_with_filters(self, resource_id, parameters: QueryParameters):
        query = self.new_query().filter(self.key_column == self.database_id(resource_id))
        return self._query_one(query, parameters)

    def exists(self, resource_id) -> bool:
        query = self.new_query().filter(self.key_column == self.database_id(resource_id))
        return bool(self.session.query(query.exists()).scalar())

    def find(self, resource_id):
        return self.new_query().filter(self.key_column == self.database_id(resource_id)).first()

    def find_many(self, resource_ids: Iterable) -> list:
        ids = [self.database_id(resource_id) for resource_id in resource_ids]
        return self.new_query().filter(self.key_column.in_([i for i in ids if i is not None])).all()

    def database_id(self, resource_id):
        """
        :return: the JSON:API id cast to the key column type (None if that's not possible)
        """
        return database_id(self.model, self.key_name, resource_id)

    def load(self, record, parameters: QueryParameters) -> None:
        """
        Eager load the relationships of a single record for the response
        """
        self.includes.load(record, parameters)

    def _query_all_or_one(self, query: Query, parameters: QueryParameters):
        if self.is_search_one(parameters.filters):
            return self._query_one(query, parameters)
        return self._query_all(query, parameters)

    def _prepare_query(self, query: Query, parameters: QueryParameters) -> Query:
        # eager loading, filtering and sorting are shared by every entry point
        query = self.includes.apply(query, parameters)
        query = self.apply_filters(query, parameters.filters)
        return self.sorting.apply(query, parameters.sort)

    def _query_all(self, query: Query, parameters: QueryParameters):
        query = self._prepare_query(query, parameters)
        if not parameters.page:
            return self.search_all(query)
        return self.paginate(query, parameters)

    def _query_one(self, query: Query, parameters: QueryParameters):
        return self.search_one(self._prepare_query(query, parameters))

    def search_all(self, query: Query) -> list:
        """
        :return: the result for a query that is not paginated
        """
        return query.all()

    def search_one(self, query: Query):
        """
        :return: the result for a search one query, None if nothing matched
        """
        return query.first()

    def is_search_one(self, filters: Mapping[str, Any]) -> bool:
        """
        Is this a search for a singleton resource? eg. a lookup by a unique slug
        """
        return False

    def paginate(self, query: Query, parameters: QueryParameters) -> Page:
        if self.paging is None:
            raise ConfigurationError(f"Paging is not supported on adapter: {self.__class__.__name__} ({self.resource_type})")

        # cursor pagination needs the key name for the cursor
        if isinstance(self.paging, CursorPagingStrategy):
            self.paging.with_identifier_column(self.key_name)

        return self.paging.paginate(query, parameters)

    #
    # Filtering
    #
    @abc.abstractmethod
    def filter(self, query: Query, filters: Mapping[str, Any]) -> Query:
        """
        Apply the supplied filters to the query and return it.
        This receives all filters, including the find-many filter.
        Adapters that don't support filtering implement this with `return query`.
        """

    def apply_filters(self, query: Query, filters: Mapping[str, Any]) -> Query:
        # the find-many filter is always supported
        if self.is_find_many(filters):
            query = self.filter_by_ids(query, filters)

        # hook for custom filters
        result = self.filter(query, filters)
        return query if result is None else result

    def get_find_many_filter(self) -> str:
        return self.find_many_filter or "id"

    def is_find_many(self, filters: Mapping[str, Any]) -> bool:
        return self.get_find_many_filter() in filters

    def extract_ids(self, filters: Mapping[str, Any]) -> list:
        """
        :return: the database ids of the find-many filter, which may be a list or a csv string
        """
        ids = [self.database_id(resource_id) for resource_id in csv_list(filters.get(self.get_find_many_filter()))]
        return [i for i in ids if i is not None]

    def filter_by_ids(self, query: Query, filters: Mapping[str, Any]) -> Query:
        return query.filter(self.key_column.in_(self.extract_ids(filters)))

    #
    # Writing
    #
    def create(self, resource: ResourceObject, parameters: Optional[QueryParameters] = None):
        """
        Create a record from the resource object, eg. `POST /posts`
        """
        parameters = self.query_parameters(parameters)
        record = self.create_record(resource)
        if resource.id is not None:
            self.hydrate_id(record, resource.id)
        return self.fill_and_persist(record, resource, parameters)

    def update(self, record, resource: ResourceObject, parameters: Optional[QueryParameters] = None):
        """
        Update the record with the resource object, eg. `PATCH /posts/1`
        """
        parameters = self.query_parameters(parameters)
        record = self.fill_and_persist(record, resource, parameters)
        self.load(record, parameters)
        return record

    def delete(self, record, parameters: Optional[QueryParameters] = None) -> bool:
        self.session.delete(record)
        self.commit()
        return True

    def create_record(self, resource: ResourceObject):
        return self.model()

    def hydrate_id(self, record, resource_id) -> None:
        if not self.allow_client_generated_ids:
            sara.log.warning(f"Client generated IDs are not allowed ('allow_client_generated_ids' not set for {self.__class__.__name__})")
            return
        setattr(record, self.key_name, self.database_id(resource_id))

    def fill_and_persist(self, record, resource: ResourceObject, parameters: QueryParameters):
        self.fill(record, resource, parameters)
        record = self.persist(record)
        self.hydrate_related(record, resource, parameters)
        self.commit()
        return record

    def fill(self, record, resource: ResourceObject, parameters: QueryParameters) -> None:
        self.hydrate_attributes(record, resource.attributes)
        self.fill_relationships(record, resource.relationships, parameters)

    def hydrate_attributes(self, record, attributes: Mapping[str, Any]) -> None:
        """
        Set the fillable attributes on the record, the values are deserialized first
        """
        if not isinstance(record, self.model):
            raise ConfigurationError(f"{self.__class__.__name__} expects a {self.model.__name__} record, got {type(record).__name__}")

        data = {}
        for field, value in attributes.items():
            # skip any fields that are not to be filled
            if self.is_not_fillable(field, record):
                continue
            key = self.model_key_for_field(field, record)
            if not self.deserializer.is_writable(key):
                sara.log.warning(f"{self.__class__.__name__}: skipping invalid attribute '{field}'")
                continue
            data[key] = self.deserialize_attribute(value, field, record)

        for key, value in data.items():
            setattr(record, key, value)

    def fill_relationships(self, record, relationships: Mapping[str, Relationship], parameters: QueryParameters) -> None:
        """
        Write the relationships that don't need the record to be persisted, eg. belongs-to
        """
        for field, relationship in relationships.items():
            relation = self._fillable_relation(field, record)
            if relation is not None and not relation.requires_primary_record:
                relation.update(record, relationship, parameters)

    def hydrate_related(self, record, resource: ResourceObject, parameters: QueryParameters) -> None:
        """
        Write the relationships that need the record to be persisted, eg. has-many
        """
        changed = False
        for field, relationship in resource.relationships.items():
            relation = self._fillable_relation(field, record)
            if relation is not None and relation.requires_primary_record:
                relation.update(record, relationship, parameters)
                changed = True

        # the relationship may have been cached on the record
        if changed:
            self.refresh(record)

    def _fillable_relation(self, field: str, record) -> Optional[RelationshipAdapter]:
        if self.is_not_fillable(field, record):
            return None
        return self.get_related(field)

    def is_not_fillable(self, field: str, record) -> bool:
        if field in self.guarded:
            return True
        return bool(self.fillable) and field not in self.fillable

    def model_key_for_field(self, field: str, record) -> str:
        return self.deserializer.model_key(field)

    def deserialize_attribute(self, value: Any, field: str, record) -> Any:
        deserializer = getattr(self, f"deserialize_{underscore(field)}_field", None)
        if callable(deserializer):
            return deserializer(value, record)
        return self.deserializer.deserialize(value, field)

    def persist(self, record):
        self.session.add(record)
        self.session.flush()
        return record

    def refresh(self, record) -> None:
        self.session.refresh(record)

    def commit(self) -> None:
        if self.auto_commit:
            self.session.commit()
        else:
            self.session.flush()

    #
    # Relationships
    #
    def get_related(self, field: str) -> Optional[RelationshipAdapter]:
        """
        :param field: JSON:API relationship name, eg. "published-comments"
        :return: the relationship adapter returned by the `published_comments` method or None
        """
        name = underscore(field)
        if hasattr(ResourceAdapter, name):
            return None
        method = getattr(self, name, None)
        if not callable(method):
            return None
        relation = method()
        if not isinstance(relation, RelationshipAdapter):
            return None
        return relation.bind(self, field)

    def is_relation(self, field: str) -> bool:
        return self.get_related(field) is not None

    def belongs_to(self, model_key: Optional[str] = None) -> BelongsTo:
        return BelongsTo(model_key or self.guess_relation())

    def has_one(self, model_key: Optional[str] = None) -> HasOne:
        return HasOne(model_key or self.guess_relation())

    def has_many(self, model_key: Optional[str] = None) -> HasMany:
        return HasMany(model_key or self.guess_relation())

    def has_many_through(self, model_key: Optional[str] = None) -> HasManyThrough:
        return HasManyThrough(model_key or self.guess_relation())

    def morph_many(self, *adapters: HasMany) -> MorphHasMany:
        return MorphHasMany(*adapters)

    def queries_many(self, factory) -> QueriesMany:
        """
        :param factory: callable that receives the record and returns the query for the related records
        """
        return QueriesMany(factory)

    def queries_one(self, factory) -> QueriesOne:
        return QueriesOne(factory)

    def guess_relation(self) -> str:
        """
        :return: the name of the method that called the relationship factory, eg. "author" for
            def author(self):
                return self.belongs_to()
        """
        frame = inspect.currentframe()
        try:
            caller = frame.f_back.f_back if frame is not None and frame.f_back is not None else None
            if caller is None:
                raise ConfigurationError(
                    f"{self.__class__.__name__}: can't guess the relationship name, pass it to the relationship factory explicitly"
                )
            name = caller.f_code.co_name
        finally:
            del frame
        if not name.isidentifier():
            raise ConfigurationError(f"{self.__class__.__name__}: can't guess the relationship name from '{name}', pass it explicitly")
        return name
