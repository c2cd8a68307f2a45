from unittest.mock import MagicMock

import pytest

from dynatable.config import RootConfig
from dynatable.cursor import (
    FieldStartKey,
    RawStartKey,
    RecordStartKey,
    StartKeys,
    classify_start_key,
    normalize_start_key,
)
from dynatable.errors import NormalizationError
from dynatable.record import Record
from dynatable.table import Table
from dynatable.types import KeySchema

DYNATABLE = RootConfig("test_table", hash_key=("user_id", "S"), range_key=("date", "N"))

HASH_KEY = KeySchema("user_id", "S")
RANGE_KEY = KeySchema("date", "N")

EXPECTED = {"user_id": {"S": "foobar-1"}, "date": {"N": "1700000060"}}


@DYNATABLE.decorators.register_record(string_set_fields=["role"])
class LoginItem(Record):
    user_id: str = ""
    date: int = 0
    status: str = ""
    role: list[str] = []


OTHER = RootConfig("test_table", hash_key=("account_id", "S"), range_key=("date", "N"))


@OTHER.decorators.register_record()
class AccountItem(Record):
    account_id: str = ""
    date: int = 0


def normalize(value):
    return normalize_start_key(value, HASH_KEY, RANGE_KEY)


@pytest.mark.parametrize(
    "start_key",
    [
        {"user_id": {"S": "foobar-1"}, "date": {"N": "1700000060"}},
        LoginItem(user_id="foobar-1", date=1700000060),
        {"user_id": "foobar-1", "date": 1700000060},
        StartKeys.Raw({"user_id": {"S": "foobar-1"}, "date": {"N": "1700000060"}}),
        StartKeys.Record(LoginItem(user_id="foobar-1", date=1700000060)),
        StartKeys.Fields({"user_id": "foobar-1", "date": 1700000060}),
    ],
)
def test_start_key_shapes_normalize_the_same(start_key):
    assert normalize(start_key) == EXPECTED


def test_classifying_start_keys():
    assert isinstance(classify_start_key(EXPECTED), RawStartKey)
    assert isinstance(classify_start_key(LoginItem(user_id="foobar-1", date=1)), RecordStartKey)
    assert isinstance(classify_start_key({"user_id": "foobar-1", "date": 1}), FieldStartKey)


@pytest.mark.parametrize("start_key", ["THIS IS NOT A MAP", ["foobar-1", 1700000060], 1700000060, {}])
def test_unsupported_start_keys(start_key):
    with pytest.raises(NormalizationError):
        normalize(start_key)


@pytest.mark.parametrize(
    "start_key",
    [
        LoginItem(date=1700000060),
        LoginItem(user_id="foobar-1"),
        {"user_id": {"S": "foobar-1"}},
        {"user_id": {"S": "foobar-1"}, "date": {"S": "1700000060"}},
        {"user_id": "foobar-1", "date": "yesterday"},
        {"user_id": {"S": "foobar-1"}, "date": 1700000060},
        AccountItem(account_id="foobar-1", date=1700000060),
    ],
)
def test_invalid_start_keys(start_key):
    with pytest.raises(NormalizationError):
        normalize(start_key)


def test_unregistered_record_start_key():
    class Loose(Record):
        user_id: str = ""
        date: int = 0

    with pytest.raises(NormalizationError):
        normalize(Loose(user_id="foobar-1", date=1))


def test_passthrough_is_returned_unchanged():
    assert normalize(StartKeys.Passthrough("THIS IS NOT A MAP")) == "THIS IS NOT A MAP"


def test_full_record_contributes_only_its_key():
    record = LoginItem(user_id="foobar-1", date=1700000060, status="waiting", role=["user"])

    assert normalize(record) == EXPECTED


def test_extra_fields_are_encoded_generically():
    start_key = {"user_id": "foobar-1", "date": 1700000060, "status": "waiting"}

    assert normalize(start_key) == {**EXPECTED, "status": {"S": "waiting"}}


def test_hash_only_table():
    assert normalize_start_key({"id": "a"}, KeySchema("id", "S")) == {"id": {"S": "a"}}


def test_invalid_start_key_never_reaches_the_store():
    client = MagicMock()
    table = Table(client, "test_table").with_hash_key("user_id", "S").with_range_key("date", "N")

    with pytest.raises(NormalizationError):
        table.query(LoginItem, "user_id = :hash", exclusive_start_key="THIS IS NOT A MAP")

    client.query.assert_not_called()


def test_normalized_start_key_is_sent_to_the_store():
    client = MagicMock()
    client.query.return_value = {"Items": []}
    table = Table(client, "test_table").with_hash_key("user_id", "S").with_range_key("date", "N")

    result = table.query(
        LoginItem,
        "user_id = :hash",
        expression_attribute_values={":hash": {"S": "foobar-1"}},
        exclusive_start_key={"user_id": "foobar-1", "date": 1700000060},
    )

    assert result.records == []
    assert not result.more_to_query
    assert client.query.call_args.kwargs["ExclusiveStartKey"] == EXPECTED
