from functools import cached_property

import boto3
from mypy_boto3_dynamodb.client import DynamoDBClient

from dynatable.constants import LOGGER
from dynatable.types import KeySchema


class DynamodbConnectionProvider:
    table_name: str
    region: str
    endpoint_url: str | None

    def __init__(self, table_name: str, region: str, endpoint_url: str | None = None):
        self.table_name = table_name
        self.region = region
        self.endpoint_url = endpoint_url

    @cached_property
    def client(self) -> DynamoDBClient:
        return boto3.client("dynamodb", region_name=self.region, endpoint_url=self.endpoint_url)

    def create_table(self, hash_key: KeySchema, range_key: KeySchema | None = None):
        keys = [hash_key] if range_key is None else [hash_key, range_key]
        self.client.create_table(
            TableName=self.table_name,
            KeySchema=[
                {"AttributeName": key.name, "KeyType": key_type}
                for key, key_type in zip(keys, ["HASH", "RANGE"])
            ],
            AttributeDefinitions=[
                {"AttributeName": key.name, "AttributeType": key.attribute_type} for key in keys
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        self.client.get_waiter("table_exists").wait(TableName=self.table_name)
        LOGGER.info(f"Table {self.table_name} created")
