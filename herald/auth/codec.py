"""Binary-safe serialization of session values.

Credential blobs and signal keys are graphs of dicts, lists and scalars
with raw key material (bytes) at the leaves. Databases and JSON have no
native byte-string type that survives every driver, so each buffer is
stored as a tagged document:

    {"__binary__": true, "data": "<base64>"}

Documents written by the Node.js client (``{"type": "Buffer", "data": ...}``)
are also understood on decode so existing sessions keep working.
"""

import base64
import binascii
import json
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from herald.errors import DecodeError, EncodeError

BINARY_MARKER = "__binary__"
BINARY_DATA = "data"

_SCALARS = (str, int, float, bool, type(None))
_BUFFERS = (bytes, bytearray, memoryview)


class BufferCodec:
    """Reversible conversion between session values and storable documents.

    ``decode(encode(v)) == v`` for every value built from dicts with string
    keys, lists, scalars and buffers. Tuples are stored as lists and
    buffers always come back as ``bytes``.
    """

    def encode(self, value: Any) -> Any:
        """Convert a value graph into JSON/BSON-compatible primitives.

        Raises:
            EncodeError: On circular references, non-string keys, reserved
                marker keys or values of unsupported types
        """
        return self._encode(value, set(), "$")

    def decode(self, stored: Any) -> Any:
        """Rebuild a value graph, restoring every tagged buffer.

        Raises:
            DecodeError: If a binary marker is malformed or its payload
                cannot be decoded
        """
        return self._decode(stored, "$")

    def dumps(self, value: Any) -> str:
        """Encode a value to its textual (JSON) form."""
        return json.dumps(self.encode(value), separators=(",", ":"))

    def loads(self, text: str | bytes) -> Any:
        """Decode a value from its textual (JSON) form."""
        try:
            stored = json.loads(text)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Invalid JSON payload: {e}") from e
        return self.decode(stored)

    def _encode(self, value: Any, active: set[int], path: str) -> Any:
        if value is None or isinstance(value, (str, int)):
            return value
        if isinstance(value, float):
            if not math.isfinite(value):
                raise EncodeError(f"Non-finite float at {path}")
            return value
        if isinstance(value, _BUFFERS):
            return {
                BINARY_MARKER: True,
                BINARY_DATA: base64.b64encode(bytes(value)).decode("ascii"),
            }
        if isinstance(value, BaseModel):
            return self._encode(value.model_dump(), active, path)
        if isinstance(value, (Mapping, list, tuple)):
            marker = id(value)
            if marker in active:
                raise EncodeError(f"Circular reference at {path}")
            active.add(marker)
            try:
                if isinstance(value, Mapping):
                    return self._encode_mapping(value, active, path)
                return [
                    self._encode(item, active, f"{path}[{index}]")
                    for index, item in enumerate(value)
                ]
            finally:
                active.discard(marker)
        raise EncodeError(f"Unsupported type {type(value).__name__} at {path}")

    def _encode_mapping(
        self, value: Mapping[Any, Any], active: set[int], path: str
    ) -> dict[str, Any]:
        if _is_node_buffer(value):
            raise EncodeError(
                f"Mapping at {path} has the legacy Buffer shape and would decode as bytes"
            )
        result: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise EncodeError(
                    f"Mapping key {key!r} at {path} is {type(key).__name__}, not str"
                )
            if key == BINARY_MARKER:
                raise EncodeError(f"Reserved key {BINARY_MARKER!r} at {path}")
            result[key] = self._encode(item, active, f"{path}.{key}")
        return result

    def _decode(self, stored: Any, path: str) -> Any:
        if isinstance(stored, _SCALARS):
            return stored
        if isinstance(stored, list):
            return [
                self._decode(item, f"{path}[{index}]")
                for index, item in enumerate(stored)
            ]
        if isinstance(stored, Mapping):
            if BINARY_MARKER in stored:
                return self._decode_binary(stored, path)
            if _is_node_buffer(stored):
                return _buffer_from_data(stored[BINARY_DATA], path)
            return {key: self._decode(item, f"{path}.{key}") for key, item in stored.items()}
        # BSON binary read back by the driver
        if isinstance(stored, _BUFFERS):
            return bytes(stored)
        raise DecodeError(f"Unexpected {type(stored).__name__} at {path}")

    def _decode_binary(self, stored: Mapping[str, Any], path: str) -> bytes:
        if stored[BINARY_MARKER] is not True:
            raise DecodeError(f"Invalid binary marker value at {path}")
        if BINARY_DATA not in stored:
            raise DecodeError(f"Binary marker without data at {path}")
        return _buffer_from_data(stored[BINARY_DATA], path)


def _is_node_buffer(stored: Mapping[str, Any]) -> bool:
    return (
        len(stored) == 2
        and stored.get("type") == "Buffer"
        and BINARY_DATA in stored
    )


def _buffer_from_data(data: Any, path: str) -> bytes:
    if isinstance(data, str):
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Truncated or invalid base64 payload at {path}") from e
    if isinstance(data, list):
        try:
            return bytes(data)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Invalid byte array at {path}") from e
    raise DecodeError(f"Binary data at {path} is {type(data).__name__}")


_default_codec = BufferCodec()

encode = _default_codec.encode
decode = _default_codec.decode
dumps = _default_codec.dumps
loads = _default_codec.loads
