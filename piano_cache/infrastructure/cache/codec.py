"""
Value Codecs

Cached values are stored as text in both the remote store and the fallback
store. A codec turns a Python value into that text and back.

- JsonCodec: default, any JSON-safe structure (orjson)
- ModelCodec: typed values validated by pydantic (models, dataclasses,
  list[Model], dict[str, int], ...)

Round trips preserve value equality, not identity: tuples come back as lists
and every read returns a fresh object.

JsonCodec inherits orjson's integer range: ints outside the 64-bit range
raise UnserializableValueError. Store wider integers as strings, or through a
ModelCodec whose field type serializes them as strings.
"""

from typing import Any, Generic, Protocol, TypeVar

import orjson
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError

from piano_cache.core.exceptions import SerializationError, UnserializableValueError

T = TypeVar("T")


class CacheCodec(Protocol[T]):
    """Encode/decode pair used by the cache facade."""

    def encode(self, value: T) -> str:
        """
        Raises:
            UnserializableValueError: If the value cannot be encoded
        """
        ...

    def decode(self, raw: str) -> T:
        """
        Raises:
            SerializationError: If the stored text cannot be decoded
        """
        ...


class JsonCodec:
    """JSON codec backed by orjson."""

    def encode(self, value: Any) -> str:
        try:
            return orjson.dumps(value).decode("utf-8")
        except orjson.JSONEncodeError as e:
            raise UnserializableValueError(
                f"Value of type {type(value).__name__} is not JSON serializable",
                details={"value_type": type(value).__name__, "reason": str(e)},
            ) from e

    def decode(self, raw: str) -> Any:
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise SerializationError(
                "Stored value is not valid JSON",
                details={"reason": str(e), "preview": raw[:40]},
            ) from e


class ModelCodec(Generic[T]):
    """
    Codec for a concrete type, validated on the way back in.

    Usage:
        codec = ModelCodec(list[Forecast])
        forecasts = await cache.typed(codec).get("forecast:client:42")
    """

    def __init__(self, type_: Any):
        self._type = type_
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)

    def encode(self, value: T) -> str:
        try:
            return self._adapter.dump_json(value).decode("utf-8")
        except PydanticSerializationError as e:
            raise UnserializableValueError(
                f"Value of type {type(value).__name__} cannot be serialized as {self._type!r}",
                details={"value_type": type(value).__name__, "reason": str(e)},
            ) from e

    def decode(self, raw: str) -> T:
        try:
            return self._adapter.validate_json(raw)
        except PydanticValidationError as e:
            raise SerializationError(
                f"Stored value does not match {self._type!r}",
                details={"errors": e.error_count(), "preview": raw[:40]},
            ) from e
