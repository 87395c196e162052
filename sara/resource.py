"""
Resource representation: the JSON:API resource object sent by the client

http://jsonapi.org/format/#document-resource-objects
"""
from __future__ import annotations
from dataclasses import dataclass, field
from http import HTTPStatus
from types import MappingProxyType
from typing import Any, List, Mapping, NamedTuple, Optional
from .errors import ValidationError


class ResourceIdentifier(NamedTuple):
    type: str
    id: str

    @classmethod
    def from_dict(cls, data: Any) -> ResourceIdentifier:
        """
        Validate a resource identifier object: it must contain an "id" and a "type"
        """
        if not isinstance(data, dict):
            raise ValidationError(f"Invalid data type {data}")
        if not data.get("type"):
            raise ValidationError("Invalid type in data", HTTPStatus.FORBIDDEN)
        if data.get("id") in (None, ""):
            raise ValidationError(f"no target id {data}")
        return cls(data["type"], str(data["id"]))


@dataclass(frozen=True)
class Relationship:
    """
    Relationship member of a resource object, `data` holds the resource linkage:
    - None (clear a to-one relationship)
    - a resource identifier dict (to-one)
    - a list of resource identifier dicts (to-many)
    """

    data: Any = None
    meta: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, value: Any) -> Relationship:
        if not isinstance(value, dict) or "data" not in value:
            raise ValidationError(f"Invalid relationship payload: {value}")
        return cls(data=value["data"], meta=value.get("meta", {}))

    @property
    def is_to_many(self) -> bool:
        return isinstance(self.data, list)

    @property
    def is_to_one(self) -> bool:
        return not self.is_to_many

    def identifier(self) -> Optional[ResourceIdentifier]:
        """
        :return: the to-one linkage or None
        """
        if self.is_to_many:
            raise ValidationError("Invalid data payload: expected a single resource identifier, got a list")
        if self.data is None:
            return None
        return ResourceIdentifier.from_dict(self.data)

    def identifiers(self) -> List[ResourceIdentifier]:
        """
        :return: the to-many linkage
        """
        if not self.is_to_many:
            raise ValidationError("Invalid data payload: provide a list to update a to-many relationship")
        return [ResourceIdentifier.from_dict(item) for item in self.data]


@dataclass(frozen=True)
class ResourceObject:
    """
    Resource object as received from the client (immutable)
    """

    type: str
    id: Optional[str] = None
    attributes: Mapping[str, Any] = field(default_factory=dict)
    relationships: Mapping[str, Relationship] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))
        object.__setattr__(self, "relationships", MappingProxyType(dict(self.relationships)))

    @classmethod
    def from_dict(cls, data: Any) -> ResourceObject:
        """
        :param data: the "data" member of a jsonapi document
        :return: ResourceObject
        """
        if not isinstance(data, dict):
            raise ValidationError(f"Invalid data object: {data}")
        resource_type = data.get("type")
        if not resource_type:
            raise ValidationError("Invalid type in data", HTTPStatus.FORBIDDEN)
        attributes = data.get("attributes", {})
        if not isinstance(attributes, dict):
            raise ValidationError(f"Invalid attributes: {attributes}")
        relationships = data.get("relationships", {})
        if not isinstance(relationships, dict):
            raise ValidationError(f"Invalid relationships: {relationships}")
        # jsonapi schema prohibits the use of the fields 'id' and 'type' in the attributes
        for reserved in ("id", "type"):
            if reserved in attributes or reserved in relationships:
                raise ValidationError(f'"{reserved}" is not a valid field name')

        resource_id = data.get("id")
        return cls(
            type=resource_type,
            id=str(resource_id) if resource_id not in (None, "") else None,
            attributes=attributes,
            relationships={name: Relationship.from_dict(value) for name, value in relationships.items()},
        )
