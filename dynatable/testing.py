from contextlib import contextmanager

from moto import mock_aws

from dynatable.config import RootConfig


@contextmanager
def mock_table(root_config: RootConfig):
    with mock_aws():
        try:
            del root_config.dynamodb_provider.client
        except AttributeError:
            pass
        root_config.dynamodb_provider.create_table(root_config.hash_key, root_config.range_key)
        yield
