from typing import Any, Generic, Self, TypeVar

from mypy_boto3_dynamodb.client import DynamoDBClient

from dynatable.attributes import KEY_TYPES
from dynatable.constants import LOGGER
from dynatable.cursor import normalize_start_key
from dynatable.error_boundaries import store_error_boundary
from dynatable.errors import ConfigurationError, ConversionError, FieldMisconfigurationError, ItemNotFoundError
from dynatable.record import Record
from dynatable.types import AttributeMapping, KeySchema, LastEvaluatedKey, PrimaryKeyMapping
from dynatable.value_serializers import key_attribute

T = TypeVar("T", bound=Record)


class QueryResult(Generic[T]):
    records: list[T]
    last_evaluated_key: LastEvaluatedKey | None

    def __init__(self, records: list[T], last_evaluated_key: LastEvaluatedKey | None):
        self.records = records
        self.last_evaluated_key = last_evaluated_key

    @property
    def more_to_query(self) -> bool:
        return self.last_evaluated_key is not None


def key_schema(name: str, attribute_type: str) -> KeySchema:
    if attribute_type not in {t.value for t in KEY_TYPES}:
        raise ConfigurationError(f"Key {name} must be of type S, N or B, not {attribute_type}")
    return KeySchema(name, attribute_type)


def _drop_empty(**params: Any) -> dict[str, Any]:
    return {name: value for name, value in params.items() if value is not None}


class Table:
    client: DynamoDBClient
    table_name: str
    hash_key: KeySchema | None
    range_key: KeySchema | None

    def __init__(self, client: DynamoDBClient, table_name: str):
        self.client = client
        self.table_name = table_name
        self.hash_key = None
        self.range_key = None

    def with_hash_key(self, name: str, attribute_type: str) -> Self:
        self.hash_key = key_schema(name, attribute_type)
        return self

    def with_range_key(self, name: str, attribute_type: str) -> Self:
        self.range_key = key_schema(name, attribute_type)
        return self

    @property
    def key_schemas(self) -> list[KeySchema]:
        if self.hash_key is None:
            raise ConfigurationError(f"Table {self.table_name} has no hash key. Use `with_hash_key` first.")
        return [self.hash_key] if self.range_key is None else [self.hash_key, self.range_key]

    def key(self, hash_key: Any, range_key: Any = None) -> PrimaryKeyMapping:
        """
        Build the primary key of an item from plain values or attribute values.
        """
        schemas = self.key_schemas
        if self.range_key is None and range_key is not None:
            raise ConversionError(f"Table {self.table_name} has no range key", attribute="range_key")
        if self.range_key is not None and range_key is None:
            raise ConversionError(f"Table {self.table_name} requires a range key", attribute=self.range_key.name)

        return {
            schema.name: key_attribute(schema.name, value, schema.attribute_type)
            for schema, value in zip(schemas, [hash_key, range_key])
        }

    def put_item(
        self,
        record: Record,
        *,
        condition_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: AttributeMapping | None = None,
    ) -> None:
        self._check_record_cls(type(record))
        item = record.to_item()
        params = _drop_empty(
            ConditionExpression=condition_expression,
            ExpressionAttributeNames=expression_attribute_names,
            ExpressionAttributeValues=expression_attribute_values,
        )

        LOGGER.debug(f"Putting {type(record).__name__} into {self.table_name}")
        with store_error_boundary("PutItem", self.table_name):
            self.client.put_item(TableName=self.table_name, Item=item, **params)

    def get_item(
        self,
        record_cls: type[T],
        hash_key: Any,
        range_key: Any = None,
        *,
        consistent_read: bool = False,
        projection_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
    ) -> T:
        self._check_record_cls(record_cls)
        key = self.key(hash_key, range_key)
        params = _drop_empty(
            ProjectionExpression=projection_expression,
            ExpressionAttributeNames=expression_attribute_names,
        )

        LOGGER.debug(f"Getting {record_cls.__name__} from {self.table_name}")
        with store_error_boundary("GetItem", self.table_name):
            response = self.client.get_item(
                TableName=self.table_name, Key=key, ConsistentRead=consistent_read, **params
            )

        item = response.get("Item")
        if not item:
            raise ItemNotFoundError(f"No item found in {self.table_name} for key {key}")
        return record_cls.from_item(item)

    def update_item(
        self,
        hash_key: Any,
        range_key: Any = None,
        *,
        update_expression: str,
        condition_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: AttributeMapping | None = None,
        return_values: str | None = None,
    ) -> AttributeMapping | None:
        key = self.key(hash_key, range_key)
        params = _drop_empty(
            ConditionExpression=condition_expression,
            ExpressionAttributeNames=expression_attribute_names,
            ExpressionAttributeValues=expression_attribute_values,
            ReturnValues=return_values,
        )

        LOGGER.debug(f"Updating item in {self.table_name} with {update_expression}")
        with store_error_boundary("UpdateItem", self.table_name):
            response = self.client.update_item(
                TableName=self.table_name, Key=key, UpdateExpression=update_expression, **params
            )

        return response.get("Attributes")

    def delete_item(
        self,
        hash_key: Any,
        range_key: Any = None,
        *,
        condition_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: AttributeMapping | None = None,
    ) -> None:
        key = self.key(hash_key, range_key)
        params = _drop_empty(
            ConditionExpression=condition_expression,
            ExpressionAttributeNames=expression_attribute_names,
            ExpressionAttributeValues=expression_attribute_values,
        )

        LOGGER.debug(f"Deleting item from {self.table_name}")
        with store_error_boundary("DeleteItem", self.table_name):
            self.client.delete_item(TableName=self.table_name, Key=key, **params)

    def query(
        self,
        record_cls: type[T],
        key_condition_expression: str,
        *,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: AttributeMapping | None = None,
        exclusive_start_key: Any = None,
        index_name: str | None = None,
        limit: int | None = None,
        scan_index_forward: bool = True,
        consistent_read: bool = False,
        projection_expression: str | None = None,
        filter_expression: str | None = None,
    ) -> QueryResult[T]:
        """
        Fetch one page of items matching the key condition, in the order the store returns them.

        Pass the result's ``last_evaluated_key`` back as ``exclusive_start_key`` for the next page.
        ``exclusive_start_key`` also accepts a key only record or a mapping of key field names to
        plain values; see ``dynatable.cursor``.
        """
        self._check_record_cls(record_cls)
        extra = self._read_params(
            expression_attribute_names=expression_attribute_names,
            expression_attribute_values=expression_attribute_values,
            exclusive_start_key=exclusive_start_key,
            index_name=index_name,
            limit=limit,
            projection_expression=projection_expression,
            filter_expression=filter_expression,
        )

        LOGGER.debug(f"Querying {self.table_name} for {record_cls.__name__} with {key_condition_expression}")
        with store_error_boundary("Query", self.table_name):
            response = self.client.query(
                TableName=self.table_name,
                KeyConditionExpression=key_condition_expression,
                ScanIndexForward=scan_index_forward,
                ConsistentRead=consistent_read,
                **extra,
            )

        return self._result(record_cls, response)

    def scan(
        self,
        record_cls: type[T],
        *,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: AttributeMapping | None = None,
        exclusive_start_key: Any = None,
        index_name: str | None = None,
        limit: int | None = None,
        consistent_read: bool = False,
        projection_expression: str | None = None,
        filter_expression: str | None = None,
    ) -> QueryResult[T]:
        self._check_record_cls(record_cls)
        extra = self._read_params(
            expression_attribute_names=expression_attribute_names,
            expression_attribute_values=expression_attribute_values,
            exclusive_start_key=exclusive_start_key,
            index_name=index_name,
            limit=limit,
            projection_expression=projection_expression,
            filter_expression=filter_expression,
        )

        LOGGER.debug(f"Scanning {self.table_name} for {record_cls.__name__}")
        with store_error_boundary("Scan", self.table_name):
            response = self.client.scan(TableName=self.table_name, ConsistentRead=consistent_read, **extra)

        return self._result(record_cls, response)

    def _read_params(
        self,
        expression_attribute_names: dict[str, str] | None,
        expression_attribute_values: AttributeMapping | None,
        exclusive_start_key: Any,
        index_name: str | None,
        limit: int | None,
        projection_expression: str | None,
        filter_expression: str | None,
    ) -> dict[str, Any]:
        start_key = None
        if exclusive_start_key is not None:
            start_key = normalize_start_key(exclusive_start_key, self.key_schemas[0], self.range_key)

        return _drop_empty(
            ExpressionAttributeNames=expression_attribute_names,
            ExpressionAttributeValues=expression_attribute_values,
            ExclusiveStartKey=start_key,
            IndexName=index_name,
            Limit=limit,
            ProjectionExpression=projection_expression,
            FilterExpression=filter_expression,
        )

    def _result(self, record_cls: type[T], response: Any) -> QueryResult[T]:
        records = [record_cls.from_item(item) for item in response.get("Items", [])]
        last_evaluated_key = response["LastEvaluatedKey"] if "LastEvaluatedKey" in response else None
        return QueryResult(records, last_evaluated_key)

    def _check_record_cls(self, record_cls: type[Record]) -> None:
        config = record_cls.record_config()
        if [key.name for key in config.key_schemas] != [key.name for key in self.key_schemas]:
            raise FieldMisconfigurationError(
                f"Record {record_cls.__name__} is keyed on {[key.name for key in config.key_schemas]} "
                f"but table {self.table_name} is keyed on {[key.name for key in self.key_schemas]}"
            )
