"""
Deserialization of JSON:API attributes into model values
"""
from typing import Any, Mapping, Optional
from sqlalchemy import inspect as sqla_inspect
from .attr_parse import parse_attr
from .util import attribute_keys, underscore


class AttributeDeserializer:
    """
    :param model: sqla model class
    :param attributes: mapping of JSON:API attribute -> model attribute name,
                       attributes that aren't mapped are converted with `underscore`
    :param coerce: parse the values according to the column type (cfr. `parse_attr`)
    """

    def __init__(self, model, attributes: Optional[Mapping[str, str]] = None, coerce: bool = False) -> None:
        self.model = model
        self.attributes = dict(attributes or {})
        self.coerce = coerce

    def model_key(self, field: str) -> str:
        """
        Convert a JSON:API attribute key into a model attribute key.
        """
        return self.attributes.get(field, underscore(field))

    def is_writable(self, key: str) -> bool:
        """
        Only the exposed columns can be written, the primary key and the
        foreign keys of to-one relationships have their own write path
        """
        if key not in attribute_keys(self.model):
            return False
        mapper = sqla_inspect(self.model)
        return not set(mapper.column_attrs[key].columns).intersection(mapper.primary_key)

    def deserialize(self, value: Any, field: str) -> Any:
        """
        :return: the value that will be stored in the model attribute for `field`
        """
        if not self.coerce:
            return value
        column_attr = sqla_inspect(self.model).column_attrs.get(self.model_key(field))
        if column_attr is None or len(column_attr.columns) != 1:
            return value
        return parse_attr(column_attr.columns[0], value)
