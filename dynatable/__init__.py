from . import attributes
from .config import RootConfig
from .constants import LOGGER as DYNATABLE_LOGGER
from .cursor import StartKeys, classify_start_key, normalize_start_key
from .error_boundaries import store_error_code
from .errors import *
from .record import FieldOverride, Record, hashed_field, string_set_field
from .table import QueryResult, Table
from .types import AttributeMapping, KeySchema, LastEvaluatedKey, PrimaryKeyMapping
