from decimal import Decimal
from types import NoneType, UnionType
from typing import TYPE_CHECKING, Any, Callable, ClassVar, NamedTuple, Self, Union, get_args, get_origin

from mypy_boto3_dynamodb.type_defs import AttributeValueTypeDef
from pydantic import BaseModel, ConfigDict, ValidationError

from dynatable import attributes
from dynatable.attributes import AttributeType, attribute_type
from dynatable.constants import LOGGER
from dynatable.errors import ConversionError, FieldMisconfigurationError
from dynatable.object_helpers import is_zero_value
from dynatable.types import AttributeMapping, FieldValue, KeySchema, PrimaryKeyMapping
from dynatable.value_serializers import deserialize_attributes, key_attribute, serialize_field_values

if TYPE_CHECKING:
    from dynatable.config import RootConfig


class FieldOverride(NamedTuple):
    """
    Custom conversion for a field the generic converter cannot round-trip.

    ``encode`` receives the field value and returns the attribute to store, or None to leave the
    attribute out. ``decode`` receives the stored attribute and returns the field value, or None to
    leave the field at its default. Both may raise ConversionError.
    """

    field: str
    encode: Callable[[Any], AttributeValueTypeDef | None]
    decode: Callable[[AttributeValueTypeDef], Any]


def _is_null(value: AttributeValueTypeDef) -> bool:
    return attribute_type(value) == AttributeType.null


def string_set_field(field: str) -> FieldOverride:
    """
    Store a ``list[str]`` field as a native string set. Element order is not preserved.
    """

    def encode(value: list[str] | None) -> AttributeValueTypeDef | None:
        if not value:
            return None
        return attributes.string_set(value)

    def decode(value: AttributeValueTypeDef) -> list[str] | None:
        if _is_null(value):
            return None
        if attribute_type(value) != AttributeType.string_set:
            raise ConversionError(f"expected SS, got {attribute_type(value).value}")
        return list(value["SS"])

    return FieldOverride(field, encode, decode)


def hashed_field(field: str, hasher: Callable[[str], str]) -> FieldOverride:
    """
    Store a string field through a one-way hash. Empty values are not hashed and not stored.
    """

    def encode(value: str | None) -> AttributeValueTypeDef | None:
        if not value:
            return None
        return attributes.string(hasher(value))

    def decode(value: AttributeValueTypeDef) -> str | None:
        if _is_null(value):
            return None
        if attribute_type(value) != AttributeType.string:
            raise ConversionError(f"expected S, got {attribute_type(value).value}")
        return value["S"]

    return FieldOverride(field, encode, decode)


_SCALAR_ATTRIBUTE_TYPES = {
    str: AttributeType.string,
    int: AttributeType.number,
    float: AttributeType.number,
    Decimal: AttributeType.number,
    bytes: AttributeType.binary,
    bool: AttributeType.boolean,
}


def _expected_attribute_type(annotation: Any) -> AttributeType | None:
    if annotation in _SCALAR_ATTRIBUTE_TYPES:
        return _SCALAR_ATTRIBUTE_TYPES[annotation]
    if get_origin(annotation) in (Union, UnionType):
        args = [arg for arg in get_args(annotation) if arg is not NoneType]
        if len(args) == 1:
            return _expected_attribute_type(args[0])
    return None


class RecordConfig:
    root_config: "RootConfig"
    hash_key: KeySchema
    range_key: KeySchema | None
    overrides: list[FieldOverride]

    def __init__(
        self,
        root_config: "RootConfig",
        hash_key: KeySchema,
        range_key: KeySchema | None = None,
        overrides: list[FieldOverride] | None = None,
    ):
        self.root_config = root_config
        self.hash_key = hash_key
        self.range_key = range_key
        self.overrides = overrides or []

    @property
    def key_schemas(self) -> list[KeySchema]:
        return [self.hash_key] if self.range_key is None else [self.hash_key, self.range_key]

    @property
    def key_names(self) -> set[str]:
        return {key.name for key in self.key_schemas}

    @property
    def override_names(self) -> set[str]:
        return {override.field for override in self.overrides}


class Record(BaseModel):
    __dynatable_root_config__: ClassVar["RootConfig"]
    __dynatable_record_config__: ClassVar[RecordConfig]

    model_config = ConfigDict(validate_assignment=True)

    @classmethod
    def record_config(cls) -> RecordConfig:
        try:
            return cls.__dynatable_record_config__
        except AttributeError as e:
            raise FieldMisconfigurationError(
                f"Record {cls.__name__} is not registered. Use the `register_record` decorator of a RootConfig."
            ) from e

    def fetch_field_values(self, field_list: list[str]) -> list[FieldValue]:
        field_values: list[FieldValue] = []
        for field in field_list:
            try:
                field_values.append(FieldValue(field, getattr(self, field)))
            except AttributeError as e:
                raise FieldMisconfigurationError(
                    f"Field {field} is not present in the record {self.__class__.__name__}"
                ) from e

        return field_values

    def primary_key(self) -> PrimaryKeyMapping:
        config = self.record_config()
        return {
            field.name: key_attribute(field.name, field.value, key.attribute_type)
            for key, field in zip(config.key_schemas, self.fetch_field_values([k.name for k in config.key_schemas]))
        }

    def is_key_only(self) -> bool:
        """
        Whether this record only carries its primary key, as used for cursors and key references.

        A record whose key fields are unset is never key only; one with any other field set isn't either.
        """
        config = self.record_config()
        key_names = config.key_names
        if any(is_zero_value(getattr(self, name)) for name in key_names):
            return False
        return all(is_zero_value(getattr(self, name)) for name in self.__class__.model_fields if name not in key_names)

    def to_item(self) -> AttributeMapping:
        if self.is_key_only():
            return self.primary_key()

        config = self.record_config()
        if is_zero_value(getattr(self, config.hash_key.name)):
            raise ConversionError("hash key is not set", attribute=config.hash_key.name)

        dumped = self.model_dump(exclude=config.override_names)
        item = serialize_field_values([FieldValue(name, value) for name, value in dumped.items()])
        item.update(self.primary_key())

        for override in config.overrides:
            try:
                attribute = override.encode(getattr(self, override.field))
            except ConversionError as e:
                raise ConversionError(e.message, attribute=override.field) from e
            if attribute is not None:
                item[override.field] = attribute

        return item

    @classmethod
    def from_item(cls, item: AttributeMapping) -> Self:
        config = cls.record_config()
        override_names = config.override_names
        generic = {
            name: value
            for name, value in item.items()
            if name in cls.model_fields and name not in override_names
        }
        cls._check_attribute_types(generic)
        data = deserialize_attributes(generic)

        for override in config.overrides:
            raw = item.get(override.field)
            if raw is None:
                continue
            try:
                value = override.decode(raw)
            except ConversionError as e:
                raise ConversionError(e.message, attribute=override.field) from e
            if value is not None:
                data[override.field] = value

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            error = e.errors()[0]
            attribute = str(error["loc"][0]) if error["loc"] else None
            LOGGER.debug(f"Item could not be converted to {cls.__name__}: {e}")
            raise ConversionError(error["msg"], attribute=attribute) from e

    @classmethod
    def _check_attribute_types(cls, item: AttributeMapping) -> None:
        for name, value in item.items():
            field = cls.model_fields[name]
            try:
                actual = attribute_type(value)
            except ConversionError as e:
                raise ConversionError(e.message, attribute=name) from e
            expected = _expected_attribute_type(field.annotation)
            if expected is not None and actual not in (expected, AttributeType.null):
                raise ConversionError(f"expected {expected.value}, got {actual.value}", attribute=name)
