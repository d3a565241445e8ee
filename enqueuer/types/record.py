"""
Job record: the generic JSON document a job travels as.

A record is an ordered, mutable mapping of string keys to JSON values. It can
be built fresh or decoded from raw bytes, and encodes back to JSON without
dropping fields nobody looked at. Typed accessors separate "absent" from
"present with the wrong type" so callers can fill defaults only for the
former and reject the latter.

Decoded numbers remember their source text and encode back to it, so a
record that passes through untouched keeps every number byte for byte.
"""

import copy
import json
import math
from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any

from enqueuer.errors import (
    FieldMissingError,
    FieldTypeError,
    RecordDecodeError,
    SerializationError,
)


def _reject_constant(name: str) -> float:
    raise ValueError(f"{name} is not valid JSON")


class JsonFloat(float):
    """A decoded JSON number with a fraction or exponent, plus its source text."""

    def __new__(cls, literal: str) -> "JsonFloat":
        number = super().__new__(cls, literal)
        number.literal = literal
        return number

    def __copy__(self) -> "JsonFloat":
        return self

    def __deepcopy__(self, memo: dict) -> "JsonFloat":
        return self


class JsonInt(int):
    """A decoded JSON integer plus its source text."""

    def __new__(cls, literal: str) -> "JsonInt":
        number = super().__new__(cls, literal)
        number.literal = literal
        return number

    def __copy__(self) -> "JsonInt":
        return self

    def __deepcopy__(self, memo: dict) -> "JsonInt":
        return self


def _float_text(value: float) -> str:
    if isinstance(value, JsonFloat):
        return value.literal
    if not math.isfinite(value):
        raise ValueError(f"Out of range float values are not JSON compliant: {value!r}")
    return float.__repr__(value)


def _int_text(value: int) -> str:
    if isinstance(value, JsonInt):
        return value.literal
    return int.__repr__(value)


class _RecordEncoder(json.JSONEncoder):
    """Compact encoder that writes decoded numbers back as they were read."""

    def __init__(self) -> None:
        super().__init__(separators=(",", ":"), ensure_ascii=False, allow_nan=False)

    def iterencode(self, o: Any, _one_shot: bool = False) -> Iterator[str]:
        # JSONEncoder.iterencode on the pure-Python path, with number text swapped.
        return json.encoder._make_iterencode(
            {} if self.check_circular else None,
            self.default,
            json.encoder.encode_basestring,
            self.indent,
            _float_text,
            self.key_separator,
            self.item_separator,
            self.sort_keys,
            self.skipkeys,
            _one_shot,
            _intstr=_int_text,
        )(o, 0)


_encoder = _RecordEncoder()


class JobRecord(MutableMapping[str, Any]):
    """
    Ordered JSON object with typed, fallible field access.

    Equality ignores key order; encoding preserves it. New keys are appended,
    existing keys keep their position when reassigned.
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, Any] | None = None, /, **kwargs: Any):
        self._fields: dict[str, Any] = {}
        if fields is not None:
            self.update(fields)
        self.update(kwargs)

    @classmethod
    def decode(cls, raw: bytes | bytearray | str) -> "JobRecord":
        """
        Parse a record from raw JSON.

        Args:
            raw: JSON text or UTF-8 bytes holding a JSON object.

        Returns:
            The decoded record.

        Raises:
            RecordDecodeError: If the input is not valid JSON or not an object.
        """
        try:
            data = json.loads(
                raw,
                parse_float=JsonFloat,
                parse_int=JsonInt,
                parse_constant=_reject_constant,
            )
        except ValueError as e:
            raise RecordDecodeError(f"invalid job record: {e}") from e

        if not isinstance(data, dict):
            raise RecordDecodeError(
                f"invalid job record: expected a JSON object, got {type(data).__name__}"
            )
        return cls(data)

    # Mapping protocol

    def __getitem__(self, key: str) -> Any:
        try:
            return self._fields[key]
        except KeyError:
            raise FieldMissingError(key) from None

    def __setitem__(self, key: str, value: Any) -> None:
        if not isinstance(key, str):
            raise TypeError(f"job record keys must be strings, got {type(key).__name__}")
        self._fields[key] = value

    def __delitem__(self, key: str) -> None:
        try:
            del self._fields[key]
        except KeyError:
            raise FieldMissingError(key) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._fields!r})"

    # Presence and mutation

    def has(self, key: str) -> bool:
        """Check whether a field is present, whatever its value (null included)."""
        return key in self._fields

    def set(self, key: str, value: Any) -> None:
        """Set a field in place."""
        self[key] = value

    # Typed accessors

    def get_str(self, key: str) -> str:
        value = self[key]
        if not isinstance(value, str):
            raise FieldTypeError(key, "string", value)
        return value

    def get_float(self, key: str) -> float:
        """Get a JSON number as float. Booleans are not numbers."""
        value = self[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise FieldTypeError(key, "number", value)
        return float(value)

    def get_int(self, key: str) -> int:
        """Get a JSON number as int. Floats are accepted only when integral."""
        value = self[key]
        if isinstance(value, bool):
            raise FieldTypeError(key, "integer", value)
        if isinstance(value, int):
            return int(value)
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise FieldTypeError(key, "integer", value)

    def get_bool(self, key: str) -> bool:
        value = self[key]
        if not isinstance(value, bool):
            raise FieldTypeError(key, "boolean", value)
        return value

    def get_dict(self, key: str) -> dict[str, Any]:
        value = self[key]
        if not isinstance(value, dict):
            raise FieldTypeError(key, "object", value)
        return value

    def get_list(self, key: str) -> list[Any]:
        value = self[key]
        if not isinstance(value, list):
            raise FieldTypeError(key, "array", value)
        return value

    # Serialization

    def encode(self) -> bytes:
        """
        Encode the record as compact UTF-8 JSON.

        Raises:
            SerializationError: If a value is not JSON-encodable.
        """
        try:
            text = _encoder.encode(self._fields)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"cannot encode job record: {e}") from e
        return text.encode("utf-8")

    def copy(self) -> "JobRecord":
        """Deep copy, so nested objects are not shared."""
        return type(self)(copy.deepcopy(self._fields))
