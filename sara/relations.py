"""
Relationship adapters

A relationship adapter writes the resource linkage of a single JSON:API
relationship onto a record and builds the query for the related records.

Relationships that can only be written once the primary record has an id
(has-one, has-many, ...) set `requires_primary_record`, the resource adapter
uses this flag to decide whether the relationship is written before or after
the record is persisted.
"""
from __future__ import annotations
from http import HTTPStatus
from typing import Any, Callable, List, Optional
from sqlalchemy import inspect as sqla_inspect
from sqlalchemy.orm import Query, with_parent
from .errors import ConfigurationError, ValidationError
from .parameters import QueryParameters
from .resource import Relationship, ResourceIdentifier
from .util import database_id, primary_key_name, resource_type


class RelationshipAdapter:
    """
    Base class of the relationship adapters

    :param key: name of the sqla relationship on the model
    """

    requires_primary_record = False
    to_many = False

    def __init__(self, key: Optional[str] = None) -> None:
        self.key = key
        self.field = key
        self.adapter = None

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.key}>"

    def bind(self, adapter, field: str) -> RelationshipAdapter:
        """
        :param adapter: the resource adapter that owns the relationship
        :param field: JSON:API relationship name
        """
        self.adapter = adapter
        self.field = field
        return self

    @property
    def session(self):
        return self.adapter.session

    def relationship(self, record):
        """
        :return: the sqla RelationshipProperty on the record class
        """
        rel = sqla_inspect(type(record)).relationships.get(self.key)
        if rel is None:
            raise ConfigurationError(f"{self.adapter.__class__.__name__}: {type(record).__name__} has no relationship '{self.key}'")
        return rel

    def target(self, record):
        """
        :return: the model class of the related records
        """
        return self.relationship(record).mapper.class_

    def accepts(self, record, identifier: ResourceIdentifier) -> bool:
        return identifier.type == resource_type(self.target(record))

    def find_related(self, record, identifier: ResourceIdentifier):
        """
        Look up the record identified by the resource identifier:
        - the type must match the target type
        - an object with the specified id must exist
        """
        target = self.target(record)
        if not self.accepts(record, identifier):
            raise ValidationError(f"Invalid type {identifier.type} != {resource_type(target)}", HTTPStatus.FORBIDDEN)
        related_id = database_id(target, primary_key_name(target), identifier.id)
        related = self.session.get(target, related_id) if related_id is not None else None
        if related is None:
            raise ValidationError(f"invalid target id {identifier.id}")
        return related

    def relation_query(self, record) -> Query:
        """
        :return: sqla query for the related records, used for nested relationship requests
        """
        target = self.target(record)
        return self.session.query(target).filter(with_parent(record, getattr(type(record), self.key)))

    def related(self, record) -> Any:
        """
        :return: the related record(s) as currently loaded on the record
        """
        return getattr(record, self.key)

    def update(self, record, relationship: Relationship, parameters: QueryParameters) -> None:
        raise ConfigurationError(f"{self.__class__.__name__} relationship '{self.field}' of {self.adapter.__class__.__name__} is read-only", HTTPStatus.FORBIDDEN)


class BelongsTo(RelationshipAdapter):
    """
    The foreign key lives on the record itself, so the relationship is set before the record is saved
    """

    def update(self, record, relationship: Relationship, parameters: QueryParameters) -> None:
        identifier = relationship.identifier()
        related = self.find_related(record, identifier) if identifier else None
        # { data : null } //=> clear the relationship
        setattr(record, self.key, related)


class HasOne(RelationshipAdapter):
    requires_primary_record = True

    def update(self, record, relationship: Relationship, parameters: QueryParameters) -> None:
        identifier = relationship.identifier()
        related = self.find_related(record, identifier) if identifier else None
        if getattr(record, self.key) is not related:
            setattr(record, self.key, related)
            self.session.flush()


class HasMany(RelationshipAdapter):
    requires_primary_record = True
    to_many = True

    def find_many_related(self, record, identifiers: List[ResourceIdentifier]) -> list:
        return [self.find_related(record, identifier) for identifier in identifiers]

    def sync(self, record, related: list) -> None:
        """
        Completely replace every member of the relationship
        """
        collection = getattr(record, self.key)
        if isinstance(collection, list):
            collection[:] = related
        else:
            # lazy="dynamic" relationships
            setattr(record, self.key, related)

    def update(self, record, relationship: Relationship, parameters: QueryParameters) -> None:
        self.sync(record, self.find_many_related(record, relationship.identifiers()))
        self.session.flush()

    def replace(self, record, relationship: Relationship, parameters: QueryParameters) -> None:
        self.update(record, relationship, parameters)

    def add(self, record, relationship: Relationship, parameters: QueryParameters) -> None:
        collection = getattr(record, self.key)
        for child in self.find_many_related(record, relationship.identifiers()):
            if child not in collection:
                collection.append(child)
        self.session.flush()

    def remove(self, record, relationship: Relationship, parameters: QueryParameters) -> None:
        collection = getattr(record, self.key)
        for child in self.find_many_related(record, relationship.identifiers()):
            if child in collection:
                collection.remove(child)
        self.session.flush()


class HasManyThrough(HasMany):
    """
    Relationship through an intermediate model, it can be queried but not written
    """

    def update(self, record, relationship: Relationship, parameters: QueryParameters) -> None:
        RelationshipAdapter.update(self, record, relationship, parameters)

    add = remove = replace = update


class MorphHasMany(RelationshipAdapter):
    """
    Polymorphic to-many relationship composed of one has-many adapter per related type

    For example the `media` of a post may hold both `images` and `videos`:
        def media(self):
            return self.morph_many(self.has_many("images"), self.has_many("videos"))
    """

    requires_primary_record = True
    to_many = True

    def __init__(self, *adapters: HasMany) -> None:
        super().__init__(None)
        self.adapters = adapters

    def bind(self, adapter, field: str) -> MorphHasMany:
        super().bind(adapter, field)
        for child in self.adapters:
            child.bind(adapter, field)
        return self

    def _partition(self, record, relationship: Relationship):
        identifiers = relationship.identifiers()
        for identifier in identifiers:
            if not any(child.accepts(record, identifier) for child in self.adapters):
                raise ValidationError(f"Invalid type {identifier.type} for relationship '{self.field}'", HTTPStatus.FORBIDDEN)
        for child in self.adapters:
            data = [dict(type=i.type, id=i.id) for i in identifiers if child.accepts(record, i)]
            yield child, Relationship(data=data)

    def update(self, record, relationship: Relationship, parameters: QueryParameters) -> None:
        for child, child_relationship in self._partition(record, relationship):
            child.update(record, child_relationship, parameters)

    def replace(self, record, relationship: Relationship, parameters: QueryParameters) -> None:
        self.update(record, relationship, parameters)

    def add(self, record, relationship: Relationship, parameters: QueryParameters) -> None:
        for child, child_relationship in self._partition(record, relationship):
            child.add(record, child_relationship, parameters)

    def remove(self, record, relationship: Relationship, parameters: QueryParameters) -> None:
        for child, child_relationship in self._partition(record, relationship):
            child.remove(record, child_relationship, parameters)

    def relation_query(self, record) -> Query:
        raise ConfigurationError(f"Polymorphic relationship '{self.field}' of {self.adapter.__class__.__name__} can't be queried as a single query")

    def related(self, record) -> list:
        result = []
        for child in self.adapters:
            result.extend(child.related(record))
        return result


class QueriesMany(RelationshipAdapter):
    """
    Read-only relationship backed by a factory that creates the query for the related records

        def published_posts(self):
            return self.queries_many(lambda author: self.session.query(Post).filter_by(author=author, published=True))
    """

    to_many = True

    def __init__(self, factory: Callable[[Any], Query]) -> None:
        super().__init__(None)
        self.factory = factory

    def relation_query(self, record) -> Query:
        return self.factory(record)

    def related(self, record) -> Any:
        return self.relation_query(record).all()


class QueriesOne(QueriesMany):
    to_many = False

    def related(self, record) -> Any:
        return self.relation_query(record).first()
