import datetime
import sara
import sqlalchemy
from .errors import ValidationError

DATETIME_FORMATS = ("%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%d %H:%M:%S")
TIME_FORMATS = ("%H:%M:%S.%f", "%H:%M:%S")
TRUE_VALUES = ("true", "1", "yes", "on")
FALSE_VALUES = ("false", "0", "no", "off")


def _strptime(value, formats, python_type):
    """
    Try the ISO format first, then the formats used by JS datepickers and str(datetime.now())
    """
    value = str(value)
    try:
        return python_type.fromisoformat(value)
    except ValueError:
        pass
    for fmt in formats:
        try:
            result = datetime.datetime.strptime(value, fmt)
        except ValueError:
            continue
        return result.time() if python_type is datetime.time else result
    raise ValidationError(f'Invalid {python_type.__name__} value "{value}"')


def _parse_bool(value, column):
    """
    Parse "true" / "false" style values, `bool("false")` would be True
    """
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValidationError(f'Invalid value "{value}" for {column.name}')


def parse_attr(column, attr_val):
    """
    Parse the supplied `attr_val` so it can be saved in the SQLAlchemy `column`

    :param column: SQLAlchemy column
    :param attr_val: jsonapi attribute value
    :return: processed value
    """
    if attr_val is None:
        return attr_val

    try:
        python_type = column.type.python_type
    except NotImplementedError as exc:
        # custom column types should implement their own deserialization
        sara.log.debug(exc)
        return attr_val

    # skip type coercion on JSON columns, since they could be anything
    if isinstance(column.type, sqlalchemy.types.JSON):
        return attr_val

    if python_type is bool:
        return _parse_bool(attr_val, column)
    if python_type is int and isinstance(attr_val, (bool, float)):
        if isinstance(attr_val, bool) or not attr_val.is_integer():
            raise ValidationError(f'Invalid value "{attr_val}" for {column.name}')
        return int(attr_val)

    if isinstance(attr_val, python_type):
        return attr_val

    if python_type is datetime.datetime:
        return _strptime(attr_val, DATETIME_FORMATS, datetime.datetime)
    if python_type is datetime.date:
        return _strptime(attr_val, ("%Y-%m-%d",), datetime.datetime).date()
    if python_type is datetime.time:
        return _strptime(attr_val, TIME_FORMATS, datetime.time)

    try:
        return python_type(attr_val)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid value "{attr_val}" for {column.name}')
