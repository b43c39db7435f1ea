"""Error hierarchy for Herald.

Store errors wrap backend-specific failures, codec errors describe
payloads that cannot be converted, and handler errors describe a queue
entry whose processing failed.
"""


class HeraldError(Exception):
    """Base exception for all Herald errors."""


class ConfigurationError(HeraldError):
    """Raised when required configuration is missing or invalid."""


class StoreError(HeraldError):
    """Base exception for all store errors.

    Store backends wrap driver-specific errors in one of the
    StoreError subclasses so callers never see driver exceptions.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):  # noqa: A001
    """Raised when the database cannot be reached.

    Fatal at startup: no session state is usable without the store.
    """


class InvalidKeyError(HeraldError, ValueError):
    """Raised when a session id, category or key id would make a slot ambiguous."""


class CodecError(HeraldError):
    """Base exception for serialization failures."""


class EncodeError(CodecError):
    """Raised when a value cannot be converted to its stored form.

    Examples:
        - Circular references
        - Sets or arbitrary objects
        - Non-string mapping keys
    """


class DecodeError(CodecError):
    """Raised when a stored payload is malformed.

    Examples:
        - Binary marker without a data field
        - Truncated or invalid base64 payload
    """


class HandlerError(HeraldError):
    """Raised when processing a queue entry fails.

    Contained at the drain loop boundary: logged with the conversation id,
    the entry is discarded and the loop moves on.
    """

    def __init__(
        self,
        conversation_id: str,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.conversation_id = conversation_id
        self.cause = cause


class HandlerTimeoutError(HandlerError):
    """Raised when a handler exceeds the configured timeout."""


class IndexCreationWarning(UserWarning):
    """Emitted when the store index cannot be created.

    The store stays usable; only lookup performance is affected.
    """
