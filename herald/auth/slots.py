"""Storage slot naming.

A slot addresses one independently stored value of a session: the
credentials, or one signal key identified by (category, id).
"""

from herald.errors import InvalidKeyError

CREDS_SLOT = "creds"
SEPARATOR = ":"


def validate_session_id(session_id: str) -> str:
    """Ensure a session id can prefix a document id without ambiguity."""
    if not isinstance(session_id, str) or not session_id:
        raise InvalidKeyError("Session id must be a non-empty string")
    if SEPARATOR in session_id:
        raise InvalidKeyError(f"Session id {session_id!r} contains {SEPARATOR!r}")
    return session_id


def key_slot(category: str, key_id: str) -> str:
    """Build the slot name for one signal key.

    The category may not contain the separator; the id is the final
    component and may contain anything.

    Raises:
        InvalidKeyError: If the category or id is empty, or the category
            contains the separator
    """
    if not isinstance(category, str) or not category:
        raise InvalidKeyError("Key category must be a non-empty string")
    if SEPARATOR in category:
        raise InvalidKeyError(f"Key category {category!r} contains {SEPARATOR!r}")
    if not isinstance(key_id, str) or not key_id:
        raise InvalidKeyError(f"Key id for {category!r} must be a non-empty string")
    return f"{category}{SEPARATOR}{key_id}"


def document_id(session_id: str, slot: str) -> str:
    """Build the storage document id of a session slot."""
    return f"{session_id}{SEPARATOR}{slot}"
