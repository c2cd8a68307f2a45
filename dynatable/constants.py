import logging

APP_NAME = "dynatable"

LOGGER = logging.getLogger(APP_NAME)

DEFAULT_REGION = "us-east-1"

TABLE_NAME_ENV = "DYNATABLE_TABLE_NAME"
ENDPOINT_URL_ENV = "DYNATABLE_ENDPOINT_URL"
REGION_ENV = "AWS_DEFAULT_REGION"
