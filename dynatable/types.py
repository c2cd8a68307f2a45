from typing import Any, NamedTuple

from mypy_boto3_dynamodb.type_defs import AttributeValueTypeDef

FieldValue = NamedTuple("FieldValue", [("name", str), ("value", Any)])
KeySchema = NamedTuple("KeySchema", [("name", str), ("attribute_type", str)])

AttributeMapping = dict[str, AttributeValueTypeDef]
PrimaryKeyMapping = AttributeMapping
LastEvaluatedKey = AttributeMapping
