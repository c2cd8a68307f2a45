from botocore.exceptions import BotoCoreError, ClientError

# Errors raised by the store client pass through untouched; these are the types to catch.
STORE_ERRORS = (ClientError, BotoCoreError)


class DynatableError(Exception):
    pass


class ConfigurationError(DynatableError):
    pass


class FieldMisconfigurationError(DynatableError):
    pass


class ConversionError(DynatableError):
    attribute: str | None
    message: str

    def __init__(self, message: str, attribute: str | None = None):
        super().__init__(f"Attribute {attribute}: {message}" if attribute else message)
        self.message = message
        self.attribute = attribute


class ItemNotFoundError(DynatableError):
    pass


class NormalizationError(DynatableError):
    pass
