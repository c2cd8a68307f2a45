from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import UUID

import pytest
import ulid
from freezegun import freeze_time

from dynatable.errors import ConversionError
from dynatable.types import FieldValue
from dynatable.value_serializers import (
    deserialize_attribute,
    key_attribute,
    serialize_attribute,
    serialize_field_values,
    serialize_for_dynamo_value,
)


class Status(Enum):
    waiting = "waiting"


class Rank(Enum):
    first = 1


@freeze_time("2021-01-01T00:00:00")
def test_naive_datetimes_are_stored_as_utc():
    assert serialize_attribute("at", datetime.now()) == {"S": "2021-01-01T00:00:00+00:00"}
    assert serialize_attribute("at", datetime.now(timezone.utc)) == {"S": "2021-01-01T00:00:00+00:00"}


def test_values_are_reduced_before_serializing():
    ulid_value = ulid.new()
    assert serialize_for_dynamo_value(date(2021, 1, 1)) == "2021-01-01"
    assert serialize_for_dynamo_value(UUID("12345678123456781234567812345678")) == "12345678-1234-5678-1234-567812345678"
    assert serialize_for_dynamo_value(ulid_value) == ulid_value.str
    assert serialize_for_dynamo_value(Status.waiting) == "waiting"
    assert serialize_for_dynamo_value(0.1) == Decimal("0.1")
    assert serialize_for_dynamo_value({"a": [0.5]}) == {"a": [Decimal("0.5")]}


def test_serialize_attribute():
    assert serialize_attribute("status", "waiting") == {"S": "waiting"}
    assert serialize_attribute("login_count", 3) == {"N": "3"}
    assert serialize_attribute("ratio", 0.25) == {"N": "0.25"}
    assert serialize_attribute("active", True) == {"BOOL": True}
    assert serialize_attribute("nothing", None) == {"NULL": True}
    assert serialize_attribute("tags", {"a"}) == {"SS": ["a"]}
    assert serialize_attribute("meta", {"n": 1}) == {"M": {"n": {"N": "1"}}}


def test_unsupported_values_name_the_attribute():
    with pytest.raises(ConversionError) as error:
        serialize_attribute("thing", object())
    assert error.value.attribute == "thing"

    with pytest.raises(ConversionError) as error:
        serialize_attribute("ratio", float("nan"))
    assert error.value.attribute == "ratio"


def test_empty_sets_are_left_out():
    item = serialize_field_values([FieldValue("tags", set()), FieldValue("status", "")])
    assert item == {"status": {"S": ""}}


def test_deserialize_attribute():
    assert deserialize_attribute("blob", {"B": b"\x00\x01"}) == b"\x00\x01"
    assert deserialize_attribute("blobs", {"BS": [b"a"]}) == {b"a"}
    assert deserialize_attribute("login_count", {"N": "3"}) == Decimal("3")

    with pytest.raises(ConversionError) as error:
        deserialize_attribute("broken", {"XX": "a"})
    assert error.value.attribute == "broken"


def test_key_attribute_encodes_plain_values():
    assert key_attribute("user_id", "foobar-1", "S") == {"S": "foobar-1"}
    assert key_attribute("date", 1700000000, "N") == {"N": "1700000000"}
    assert key_attribute("blob", b"\x00", "B") == {"B": b"\x00"}


def test_key_attribute_reduces_values_like_other_fields():
    ulid_value = ulid.new()

    assert key_attribute("id", UUID(int=1), "S") == {"S": "00000000-0000-0000-0000-000000000001"}
    assert key_attribute("at", datetime(2021, 1, 1), "S") == {"S": "2021-01-01T00:00:00+00:00"}
    assert key_attribute("id", ulid_value, "S") == {"S": ulid_value.str}
    assert key_attribute("status", Status.waiting, "S") == {"S": "waiting"}
    assert key_attribute("rank", Rank.first, "N") == {"N": "1"}


def test_key_attribute_checks_encoded_values():
    assert key_attribute("date", {"N": "1"}, "N") == {"N": "1"}

    with pytest.raises(ConversionError) as error:
        key_attribute("date", {"S": "1"}, "N")
    assert error.value.attribute == "date"

    with pytest.raises(ConversionError) as error:
        key_attribute("date", "yesterday", "N")
    assert error.value.attribute == "date"

    with pytest.raises(ConversionError) as error:
        key_attribute("date", datetime(2021, 1, 1), "N")
    assert error.value.attribute == "date"

    with pytest.raises(ConversionError):
        key_attribute("roles", ["a"], "SS")
