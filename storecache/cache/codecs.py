"""
storecache — Value Codecs

Backends hand values to a codec before writing them and after reading them
back, so the backend itself never interprets payloads.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

from ..config import CodecName

logger = logging.getLogger(__name__)


@runtime_checkable
class Codec(Protocol):
    """Encode/decode boundary between caller values and store payloads."""

    name: str

    def encode(self, value: Any) -> str | bytes: ...

    def decode(self, data: str | bytes) -> Any: ...


class JsonCodec:
    """
    JSON text encoding.

    Integers encode to plain digit strings, so values written through ``set``
    remain usable by the store's INCRBY/DECRBY.
    """

    name = "json"

    def encode(self, value: Any) -> str:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))

    def decode(self, data: str | bytes) -> Any:
        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.warning(f"Cached payload is not UTF-8, returning raw bytes: {e}", extra={"error": str(e)})
                return data
        try:
            return json.loads(data)
        except ValueError as e:
            # Written by something other than this codec; hand it back as-is
            logger.warning(
                f"Failed to decode JSON from cache, returning raw data: {e}",
                extra={"data_preview": data[:100], "error": str(e)},
            )
            return data


class RawCodec:
    """
    Byte payloads, stored and returned untouched.

    Only ``bytes`` are accepted so that ``get`` hands back exactly what ``set``
    was given; text and numbers belong to JsonCodec.
    """

    name = "raw"

    def encode(self, value: Any) -> bytes:
        if isinstance(value, bytes):
            return value
        raise TypeError(f"RawCodec only stores bytes, got {type(value).__name__}")

    def decode(self, data: str | bytes) -> bytes:
        # Clients created with decode_responses=True hand back str
        if isinstance(data, str):
            return data.encode("utf-8")
        return data


_CODECS: dict[str, type[JsonCodec] | type[RawCodec]] = {
    CodecName.JSON.value: JsonCodec,
    CodecName.RAW.value: RawCodec,
}


def get_codec(name: CodecName | str) -> Codec:
    """Instantiate the codec registered under ``name``."""
    key = name.value if isinstance(name, CodecName) else name
    try:
        return _CODECS[key]()
    except KeyError:
        raise ValueError(f"Unknown codec: {name}") from None
