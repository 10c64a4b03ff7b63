"""
JSON serialization for scalar values.

Scalar values (GET/SET/MGET/MSET) are stored as JSON text. Types JSON cannot
express natively are written as tagged objects and restored on read:

    datetime -> {"__type__": "datetime", "value": "<iso>"}
    UUID     -> {"__type__": "uuid", "value": "<str>"}
    Decimal  -> {"__type__": "decimal", "value": "<str>"}  (precision kept)
    bytes    -> {"__type__": "bytes", "value": "<base64>"}
    set      -> {"__type__": "set", "value": [...]}
"""

import base64
import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from .errors import SerializationError


class StoreEncoder(json.JSONEncoder):
    """JSON encoder with tagged support for common non-JSON types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return {"__type__": "datetime", "value": obj.isoformat()}
        if isinstance(obj, UUID):
            return {"__type__": "uuid", "value": str(obj)}
        if isinstance(obj, Decimal):
            return {"__type__": "decimal", "value": str(obj)}
        if isinstance(obj, bytes):
            return {"__type__": "bytes", "value": base64.b64encode(obj).decode("ascii")}
        if isinstance(obj, (set, frozenset)):
            return {"__type__": "set", "value": sorted(obj, key=repr)}
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


_DECODERS = {
    "datetime": datetime.fromisoformat,
    "uuid": UUID,
    "decimal": Decimal,
    "bytes": base64.b64decode,
    "set": set,
}


def store_decoder(obj: dict[str, Any]) -> Any:
    """JSON object hook reversing StoreEncoder tags."""
    type_name = obj.get("__type__")
    if type_name not in _DECODERS or "value" not in obj or len(obj) != 2:
        return obj
    return _DECODERS[type_name](obj["value"])


def serialize(data: Any) -> str:
    """
    Serialize a value to JSON text.

    Raises:
        SerializationError: If the value cannot be encoded
    """
    try:
        return json.dumps(data, cls=StoreEncoder, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(
            message=f"Failed to serialize data: {e}",
            operation="serialize",
            data_type=type(data).__name__,
        ) from e


def deserialize(data: str | bytes) -> Any:
    """
    Deserialize JSON text.

    Raises:
        SerializationError: If the text is not valid JSON
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")

    try:
        return json.loads(data, object_hook=store_decoder)
    except ValueError as e:
        raise SerializationError(
            message=f"Failed to deserialize data: {e}",
            operation="deserialize",
        ) from e
