from collections.abc import Iterable, Mapping
from decimal import Decimal, DecimalException
from enum import StrEnum
from typing import Any

from boto3.dynamodb.types import DYNAMODB_CONTEXT
from mypy_boto3_dynamodb.type_defs import AttributeValueTypeDef

from dynatable.errors import ConversionError


class AttributeType(StrEnum):
    string = "S"
    number = "N"
    binary = "B"
    string_set = "SS"
    number_set = "NS"
    binary_set = "BS"
    map = "M"
    list = "L"
    null = "NULL"
    boolean = "BOOL"


KEY_TYPES = frozenset({AttributeType.string, AttributeType.number, AttributeType.binary})
SET_TYPES = frozenset({AttributeType.string_set, AttributeType.number_set, AttributeType.binary_set})
_TAGS = frozenset(t.value for t in AttributeType)


def string(value: str) -> AttributeValueTypeDef:
    if not isinstance(value, str):
        raise ConversionError(f"expected a string, got {value.__class__.__name__}")
    return {"S": value}


def number(value: int | float | Decimal) -> AttributeValueTypeDef:
    return {"N": format_number(value)}


def binary(value: bytes | bytearray) -> AttributeValueTypeDef:
    if not isinstance(value, (bytes, bytearray)):
        raise ConversionError(f"expected bytes, got {value.__class__.__name__}")
    return {"B": bytes(value)}


def string_set(values: Iterable[str]) -> AttributeValueTypeDef:
    return {"SS": [string(v)["S"] for v in _unique_non_empty(values, AttributeType.string_set)]}


def number_set(values: Iterable[int | float | Decimal]) -> AttributeValueTypeDef:
    formatted = [format_number(v) for v in values]
    return {"NS": _unique_non_empty(formatted, AttributeType.number_set)}


def binary_set(values: Iterable[bytes]) -> AttributeValueTypeDef:
    return {"BS": [binary(v)["B"] for v in _unique_non_empty(values, AttributeType.binary_set)]}


def map_(mapping: Mapping[str, AttributeValueTypeDef]) -> AttributeValueTypeDef:
    return {"M": dict(mapping)}


def list_(values: Iterable[AttributeValueTypeDef]) -> AttributeValueTypeDef:
    return {"L": list(values)}


def null() -> AttributeValueTypeDef:
    return {"NULL": True}


def boolean(value: bool) -> AttributeValueTypeDef:
    if not isinstance(value, bool):
        raise ConversionError(f"expected a bool, got {value.__class__.__name__}")
    return {"BOOL": value}


def format_number(value: Any) -> str:
    """
    Render a number the way DynamoDB stores it: a decimal string of at most 38 significant digits.

    Floats go through their shortest repr so that 0.1 is stored as "0.1" rather than the binary
    expansion of the double.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ConversionError(f"expected a number, got {value.__class__.__name__}")
    if isinstance(value, float):
        value = Decimal(repr(value))
    try:
        decimal_value = DYNAMODB_CONTEXT.create_decimal(value)
    except DecimalException as e:
        raise ConversionError(f"number {value} cannot be represented exactly") from e
    if decimal_value.is_nan() or decimal_value.is_infinite():
        raise ConversionError("NaN and Infinity are not supported numbers")
    return str(decimal_value)


def _unique_non_empty(values: Iterable[Any], set_type: AttributeType) -> list[Any]:
    unique: list[Any] = []
    for value in values:
        if value not in unique:
            unique.append(value)
    if not unique:
        raise ConversionError(f"an empty {set_type.value} set cannot be stored")
    return unique


def is_attribute_value(value: Any) -> bool:
    return isinstance(value, Mapping) and len(value) == 1 and next(iter(value)) in _TAGS


def is_attribute_mapping(value: Any) -> bool:
    return (
        isinstance(value, Mapping)
        and all(isinstance(name, str) for name in value)
        and all(is_attribute_value(v) for v in value.values())
    )


def attribute_type(value: Any) -> AttributeType:
    if not is_attribute_value(value):
        raise ConversionError(f"{value!r} is not an attribute value")
    return AttributeType(next(iter(value)))


def attribute_values_equal(a: AttributeValueTypeDef, b: AttributeValueTypeDef) -> bool:
    """
    Compare two attribute values. Sets compare without regard to element order.
    """
    a_type, b_type = attribute_type(a), attribute_type(b)
    if a_type != b_type:
        return False

    a_value, b_value = a[a_type.value], b[b_type.value]  # type: ignore[literal-required]
    if a_type == AttributeType.number:
        return Decimal(a_value) == Decimal(b_value)
    if a_type == AttributeType.number_set:
        return {Decimal(v) for v in a_value} == {Decimal(v) for v in b_value}
    if a_type in SET_TYPES:
        return set(a_value) == set(b_value)
    if a_type == AttributeType.map:
        return a_value.keys() == b_value.keys() and all(
            attribute_values_equal(a_value[k], b_value[k]) for k in a_value
        )
    if a_type == AttributeType.list:
        return len(a_value) == len(b_value) and all(attribute_values_equal(x, y) for x, y in zip(a_value, b_value))
    return a_value == b_value
