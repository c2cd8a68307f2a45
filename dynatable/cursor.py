from collections.abc import Mapping
from typing import Any, NamedTuple

from dynatable.attributes import is_attribute_mapping, is_attribute_value
from dynatable.constants import LOGGER
from dynatable.errors import ConversionError, FieldMisconfigurationError, NormalizationError
from dynatable.object_helpers import is_zero_value
from dynatable.record import Record
from dynatable.types import AttributeMapping, KeySchema
from dynatable.value_serializers import key_attribute, serialize_attribute


class RawStartKey(NamedTuple):
    mapping: AttributeMapping


class RecordStartKey(NamedTuple):
    record: Record


class FieldStartKey(NamedTuple):
    fields: dict[str, Any]


class PassthroughStartKey(NamedTuple):
    """
    Sent to the store as given. Any error about its shape comes from the store client.
    """

    value: Any


StartKey = RawStartKey | RecordStartKey | FieldStartKey | PassthroughStartKey


class StartKeys:
    Raw = RawStartKey
    Record = RecordStartKey
    Fields = FieldStartKey
    Passthrough = PassthroughStartKey


def classify_start_key(value: Any) -> StartKey:
    if isinstance(value, (RawStartKey, RecordStartKey, FieldStartKey, PassthroughStartKey)):
        return value
    if isinstance(value, Record):
        return RecordStartKey(value)
    if isinstance(value, Mapping) and value and all(isinstance(name, str) for name in value):
        if is_attribute_mapping(value):
            return RawStartKey(dict(value))
        if not any(is_attribute_value(v) or isinstance(v, Mapping) for v in value.values()):
            return FieldStartKey(dict(value))
        raise NormalizationError("Start key mixes attribute values and plain values")

    raise NormalizationError(f"Start key of type {value.__class__.__name__} is not supported")


def normalize_start_key(value: Any, hash_key: KeySchema, range_key: KeySchema | None = None) -> Any:
    """
    Turn a start key given in any supported shape into the attribute mapping the store expects.

    The three checked shapes (attribute mapping, key only record, mapping of field names to plain
    values) produce identical mappings for the same key. Passthrough keys are returned as they are.
    """
    start_key = classify_start_key(value)
    key_schemas = [hash_key] if range_key is None else [hash_key, range_key]

    if isinstance(start_key, PassthroughStartKey):
        LOGGER.debug("Sending exclusive start key to the store unchecked")
        return start_key.value

    if isinstance(start_key, RawStartKey):
        _check_key_names(start_key.mapping, key_schemas)
        for key in key_schemas:
            _encode_key(key, start_key.mapping[key.name])
        return dict(start_key.mapping)

    if isinstance(start_key, RecordStartKey):
        return _normalize_record(start_key.record, key_schemas)

    _check_key_names(start_key.fields, key_schemas)
    key_types = {key.name: key.attribute_type for key in key_schemas}
    mapping: AttributeMapping = {}
    for name, field_value in start_key.fields.items():
        if name in key_types:
            mapping[name] = _encode_key(KeySchema(name, key_types[name]), field_value)
            continue
        try:
            mapping[name] = serialize_attribute(name, field_value)
        except ConversionError as e:
            raise NormalizationError(f"Start key field {name} cannot be converted: {e.message}") from e
    return mapping


def _normalize_record(record: Record, key_schemas: list[KeySchema]) -> AttributeMapping:
    try:
        config = record.record_config()
    except FieldMisconfigurationError as e:
        raise NormalizationError(str(e)) from e

    if [key.name for key in config.key_schemas] != [key.name for key in key_schemas]:
        raise NormalizationError(
            f"Record {record.__class__.__name__} is keyed on {sorted(config.key_names)}, "
            f"not on {sorted(key.name for key in key_schemas)}"
        )
    if any(is_zero_value(getattr(record, key.name)) for key in key_schemas):
        raise NormalizationError(f"Record {record.__class__.__name__} used as start key has an unset key")
    if not record.is_key_only():
        LOGGER.debug(f"Using only the primary key of a full {record.__class__.__name__} as start key")

    try:
        primary_key = record.primary_key()
    except ConversionError as e:
        raise NormalizationError(f"Start key attribute {e.attribute} is invalid: {e.message}") from e
    for key in key_schemas:
        _encode_key(key, primary_key[key.name])
    return primary_key


def _check_key_names(mapping: Mapping[str, Any], key_schemas: list[KeySchema]) -> None:
    missing = [key.name for key in key_schemas if key.name not in mapping]
    if missing:
        raise NormalizationError(f"Start key is missing key attributes {missing}")


def _encode_key(key: KeySchema, value: Any):
    try:
        return key_attribute(key.name, value, key.attribute_type)
    except ConversionError as e:
        raise NormalizationError(f"Start key attribute {key.name} is invalid: {e.message}") from e
