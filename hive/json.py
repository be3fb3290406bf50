"""Encoding of identity provider bodies and CLI output.

orjson is used when the speedups extra is installed.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

try:
    import orjson

    def encode_body(payload: dict[str, Any]) -> bytes:
        """Encode a request body."""
        return orjson.dumps(payload)

    def decode_body(raw: bytes) -> Any:
        """Decode a response body, raising ValueError if it is not JSON."""
        return orjson.loads(raw)

    def dumps_indented(obj: Any, *, default: Callable[[Any], Any]) -> str:
        """Dump JSON for display."""
        return orjson.dumps(obj, default=default, option=orjson.OPT_INDENT_2).decode()

except ImportError:
    import json

    def encode_body(payload: dict[str, Any]) -> bytes:
        """Encode a request body."""
        return json.dumps(payload, separators=(",", ":")).encode()

    def decode_body(raw: bytes) -> Any:
        """Decode a response body, raising ValueError if it is not JSON."""
        return json.loads(raw)

    def dumps_indented(obj: Any, *, default: Callable[[Any], Any]) -> str:
        """Dump JSON for display."""
        return json.dumps(obj, indent=2, default=default)


try:
    from mashumaro.mixins.orjson import DataClassORJSONMixin as DataClassJSONMixin
except ImportError:
    from mashumaro.mixins.json import (  # type: ignore[assignment]
        DataClassJSONMixin,
    )
