from contextlib import contextmanager

from botocore.exceptions import BotoCoreError, ClientError

from dynatable.constants import LOGGER
from dynatable.object_helpers import safe_dot_access


def store_error_code(error: Exception) -> str | None:
    """
    The service error code of a store error, e.g. ``ConditionalCheckFailedException``.

    Client-side botocore failures (parameter validation and friends) carry no service code, so the
    exception class name is returned instead.
    """
    if isinstance(error, ClientError):
        return safe_dot_access(error.response, "Error.Code")
    if isinstance(error, BotoCoreError):
        return error.__class__.__name__
    return None


@contextmanager
def store_error_boundary(operation: str, table_name: str):
    try:
        yield
    except ClientError as e:
        LOGGER.info(f"{operation} on {table_name} failed with {store_error_code(e)}")
        raise
    except BotoCoreError as e:
        LOGGER.info(f"{operation} on {table_name} was rejected by the client with {store_error_code(e)}")
        raise
