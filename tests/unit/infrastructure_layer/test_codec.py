"""
Unit Tests for Value Codecs

Tests JSON and pydantic-model codecs and their error mapping.
"""

from datetime import date

import pytest
from pydantic import BaseModel

from piano_cache.core.exceptions import SerializationError, UnserializableValueError
from piano_cache.infrastructure.cache.codec import JsonCodec, ModelCodec


class Forecast(BaseModel):
    client_id: int
    revenue: float
    month: date


@pytest.mark.unit
class TestJsonCodec:
    """Test the default JSON codec."""

    def test_round_trip_preserves_equality(self):
        """Test nested structures survive encode/decode."""
        codec = JsonCodec()
        value = {"name": "Test", "age": 30, "active": True, "tags": ["a", "b"], "score": None}

        assert codec.decode(codec.encode(value)) == value

    def test_encode_returns_text(self):
        """Test the stored representation is a str."""
        assert JsonCodec().encode([1, 2]) == "[1,2]"

    def test_unserializable_value(self):
        """Test that non-JSON values raise UnserializableValueError."""
        with pytest.raises(UnserializableValueError) as exc_info:
            JsonCodec().encode({"ids": {1, 2}})

        assert exc_info.value.details["value_type"] == "dict"

    def test_integers_beyond_64_bits_are_rejected(self):
        """Test the documented integer range."""
        codec = JsonCodec()

        assert codec.decode(codec.encode(2**63 - 1)) == 2**63 - 1
        with pytest.raises(UnserializableValueError):
            codec.encode({"big": 2**64})

    def test_corrupt_stored_value(self):
        """Test that invalid JSON raises SerializationError."""
        with pytest.raises(SerializationError):
            JsonCodec().decode("{not json")


@pytest.mark.unit
class TestModelCodec:
    """Test the pydantic codec."""

    def test_model_round_trip(self):
        """Test that a model comes back as the same type."""
        codec = ModelCodec(Forecast)
        forecast = Forecast(client_id=42, revenue=1250.5, month=date(2026, 9, 1))

        decoded = codec.decode(codec.encode(forecast))

        assert isinstance(decoded, Forecast)
        assert decoded == forecast

    def test_list_of_models(self):
        """Test generic container types."""
        codec = ModelCodec(list[Forecast])
        forecasts = [Forecast(client_id=i, revenue=i * 10.0, month=date(2026, 1, 1)) for i in range(3)]

        assert codec.decode(codec.encode(forecasts)) == forecasts

    def test_stored_value_of_wrong_shape(self):
        """Test that a value not matching the type raises SerializationError."""
        codec = ModelCodec(Forecast)

        with pytest.raises(SerializationError):
            codec.decode('{"client_id": "not-a-number"}')

    def test_unserializable_value(self):
        """Test that an encode failure raises UnserializableValueError."""
        codec = ModelCodec(dict[str, object])

        with pytest.raises(UnserializableValueError):
            codec.encode({"handle": object()})
