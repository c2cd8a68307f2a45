import os
from typing import Callable, Protocol, Self, Type, TypeVar

from dynatable.constants import DEFAULT_REGION, ENDPOINT_URL_ENV, REGION_ENV, TABLE_NAME_ENV
from dynatable.dynamo_provider import DynamodbConnectionProvider
from dynatable.errors import ConfigurationError, FieldMisconfigurationError
from dynatable.record import FieldOverride, Record, RecordConfig, hashed_field, string_set_field
from dynatable.table import Table, key_schema
from dynatable.types import KeySchema


class RootConfig:
    table_name: str
    hash_key: KeySchema
    range_key: KeySchema | None
    registered_records: dict[str, Type[Record]]
    dynamodb_provider: DynamodbConnectionProvider

    def __init__(
        self,
        table_name: str,
        hash_key: tuple[str, str],
        range_key: tuple[str, str] | None = None,
        region: str | None = None,
        endpoint_url: str | None = None,
    ):
        if not table_name:
            raise ConfigurationError("A table name is required")

        self.table_name = table_name
        self.hash_key = key_schema(*hash_key)
        self.range_key = key_schema(*range_key) if range_key else None
        self.registered_records = {}
        self.dynamodb_provider = DynamodbConnectionProvider(
            table_name=table_name,
            region=region or os.environ.get(REGION_ENV) or DEFAULT_REGION,
            endpoint_url=endpoint_url or os.environ.get(ENDPOINT_URL_ENV),
        )

    @classmethod
    def from_env(cls, hash_key: tuple[str, str], range_key: tuple[str, str] | None = None) -> Self:
        table_name = os.environ.get(TABLE_NAME_ENV)
        if not table_name:
            raise ConfigurationError(f"{TABLE_NAME_ENV} must be set")
        return cls(table_name, hash_key, range_key)

    @staticmethod
    def _hash_string(text: str) -> str:
        register_hasher_message = (
            "You must register a hashing function before using hashed fields. "
            "Use the `register_hasher` decorator to register a hashing function. "
            "This function should have the following signature: `def hash_string(text: str) -> str`."
        )
        raise NotImplementedError(register_hasher_message)

    @property
    def table(self) -> Table:
        table = Table(self.dynamodb_provider.client, self.table_name).with_hash_key(*self.hash_key)
        if self.range_key:
            table.with_range_key(*self.range_key)
        return table

    @property
    def decorators(self):
        return DynatableDecorators(self)


class HashFuncType(Protocol):
    def __call__(self, text: str) -> str: ...


RecordType = TypeVar("RecordType", bound=Record)


class DynatableDecorators:
    def __init__(self, config: RootConfig):
        self.config = config

    @property
    def register_hasher(self) -> Callable[[HashFuncType], HashFuncType]:
        def decorator(func: HashFuncType) -> HashFuncType:
            setattr(self.config, "_hash_string", func)
            return func

        return decorator

    def register_record(
        self,
        hashed_fields: list[str] | None = None,
        string_set_fields: list[str] | None = None,
        overrides: list[FieldOverride] | None = None,
    ) -> Callable[[Type[RecordType]], Type[RecordType]]:
        config = self.config

        def hash_string(text: str) -> str:
            # looked up per call so the hasher may be registered after the record
            return config._hash_string(text)

        field_overrides = [
            *[string_set_field(field) for field in string_set_fields or []],
            *[hashed_field(field, hash_string) for field in hashed_fields or []],
            *(overrides or []),
        ]

        def decorator(record_cls: Type[RecordType]) -> Type[RecordType]:
            key_schemas = [config.hash_key] if config.range_key is None else [config.hash_key, config.range_key]
            for field in [*[key.name for key in key_schemas], *[o.field for o in field_overrides]]:
                if field not in record_cls.model_fields:
                    raise FieldMisconfigurationError(
                        f"Field {field} is not present in the record {record_cls.__name__}"
                    )

            record_cls.__dynatable_record_config__ = RecordConfig(
                root_config=config,
                hash_key=config.hash_key,
                range_key=config.range_key,
                overrides=field_overrides,
            )
            record_cls.__dynatable_root_config__ = config
            config.registered_records[record_cls.__name__] = record_cls
            return record_cls

        return decorator
