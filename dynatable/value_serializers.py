from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

import ulid
from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer
from mypy_boto3_dynamodb.type_defs import AttributeValueTypeDef

from dynatable import attributes
from dynatable.attributes import KEY_TYPES, AttributeType, attribute_type, format_number, is_attribute_value
from dynatable.constants import LOGGER
from dynatable.errors import ConversionError
from dynatable.types import AttributeMapping, FieldValue

_SERIALIZER = TypeSerializer()
_DESERIALIZER = TypeDeserializer()


def serialize_for_dynamo_value(value: Any) -> Any:
    """
    Reduce a python value to the types boto3's TypeSerializer understands.
    """
    if isinstance(value, bool) or value is None:
        return value
    elif isinstance(value, float):
        return Decimal(format_number(value))
    elif isinstance(value, datetime):
        # if there isnt a timezone, assume it is UTC
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif isinstance(value, UUID):
        return str(value)
    elif isinstance(value, ulid.ULID):
        return value.str
    elif isinstance(value, Enum):
        return serialize_for_dynamo_value(value.value)
    elif isinstance(value, dict):
        return {k: serialize_for_dynamo_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_for_dynamo_value(v) for v in value]
    elif isinstance(value, (set, frozenset)):
        return {serialize_for_dynamo_value(v) for v in value}
    else:
        return value


def serialize_attribute(name: str, value: Any) -> AttributeValueTypeDef:
    try:
        return _SERIALIZER.serialize(serialize_for_dynamo_value(value))
    except ConversionError as e:
        raise ConversionError(e.message, attribute=name) from e
    except (TypeError, ValueError, ArithmeticError) as e:
        LOGGER.warning(f"Value of type {value.__class__.__name__} for {name} cannot be stored")
        raise ConversionError(str(e), attribute=name) from e


def serialize_field_values(field_values: list[FieldValue]) -> AttributeMapping:
    """
    Convert fields to attributes. Empty sets are left out since DynamoDB refuses to store them.
    """
    item: AttributeMapping = {}
    for field in field_values:
        if isinstance(field.value, (set, frozenset)) and not field.value:
            continue
        item[field.name] = serialize_attribute(field.name, field.value)
    return item


def _native(value: Any) -> Any:
    if isinstance(value, Binary):
        return value.value
    elif isinstance(value, dict):
        return {k: _native(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_native(v) for v in value]
    elif isinstance(value, set):
        return {_native(v) for v in value}
    return value


def deserialize_attribute(name: str, value: AttributeValueTypeDef) -> Any:
    try:
        return _native(_DESERIALIZER.deserialize(value))
    except (AttributeError, TypeError, ValueError, ArithmeticError) as e:
        raise ConversionError(str(e), attribute=name) from e


def deserialize_attributes(item: AttributeMapping) -> dict[str, Any]:
    return {name: deserialize_attribute(name, value) for name, value in item.items()}


def key_attribute(name: str, value: Any, key_type: str) -> AttributeValueTypeDef:
    """
    Encode a key value with its declared key type, or check that an already encoded one matches it.

    Values are reduced the same way as any other field first, so UUID, datetime, Enum and ULID keys
    are stored as their string (or numeric) form.
    """
    if key_type not in {t.value for t in KEY_TYPES}:
        raise ConversionError(f"{key_type} is not a valid key type", attribute=name)
    declared = AttributeType(key_type)

    if is_attribute_value(value):
        if attribute_type(value) != declared:
            raise ConversionError(f"expected a {declared.value} key, got {next(iter(value))}", attribute=name)
        return value

    try:
        reduced = serialize_for_dynamo_value(value)
        if declared == AttributeType.string:
            return attributes.string(reduced)
        if declared == AttributeType.number:
            return attributes.number(reduced)
        return attributes.binary(reduced)
    except ConversionError as e:
        raise ConversionError(e.message, attribute=name) from e
