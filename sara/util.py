# util.py: conversions between JSON:API names, ids and the sqla model
import re
from functools import lru_cache
from sqlalchemy import inspect as sqla_inspect
from sqlalchemy.orm import MANYTOONE

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


@lru_cache(maxsize=256)
def underscore(value: str) -> str:
    """
    Convert a JSON:API member name to its python counterpart:
    "published-at", "publishedAt" and "published_at" all become "published_at"
    """
    value = _CAMEL_BOUNDARY.sub("_", value)
    return value.replace("-", "_").replace(" ", "_").lower()


def csv_list(value) -> list:
    """
    :param value: list, tuple, csv string or scalar
    :return: list of values, csv strings are split
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [item for item in value.split(",") if item != ""]
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def resource_type(model) -> str:
    """
    :return: the JSON:API type of the records of `model`: `__jsonapi_type__` if set, the tablename otherwise
    """
    return getattr(model, "__jsonapi_type__", None) or getattr(model, "__tablename__", model.__name__)


def primary_key_name(model) -> str:
    """
    :return: name of the mapped attribute holding the (first) primary key column
    """
    mapper = sqla_inspect(model)
    return mapper.get_property_by_column(mapper.primary_key[0]).key


@lru_cache(maxsize=128)
def attribute_keys(model) -> frozenset:
    """
    :return: the model column attributes that are exposed as JSON:API attributes,
        foreign keys that are written through a (to-one) relationship are not
    """
    mapper = sqla_inspect(model)
    foreign_keys = set()
    for rel in mapper.relationships:
        if rel.direction is MANYTOONE:
            foreign_keys.update(rel.local_columns)
    return frozenset(attr.key for attr in mapper.column_attrs if not foreign_keys.intersection(attr.columns))


def database_id(model, key_name: str, resource_id):
    """
    Cast a JSON:API id (a string) to the python type of the `key_name` column
    :return: id or None if the id can't be cast
    """
    column_attr = sqla_inspect(model).column_attrs.get(key_name)
    if column_attr is None or resource_id is None:
        return resource_id
    try:
        python_type = column_attr.columns[0].type.python_type
    except NotImplementedError:
        return resource_id
    if python_type is int and isinstance(resource_id, (bool, float)):
        # True and 1.9 aren't valid integer ids
        if isinstance(resource_id, bool) or not resource_id.is_integer():
            return None
        return int(resource_id)
    if isinstance(resource_id, python_type):
        return resource_id
    try:
        return python_type(resource_id)
    except (TypeError, ValueError):
        return None
