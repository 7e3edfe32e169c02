"""
MessagePack framing for the subscription socket.

Outbound frames carry game snapshots (JSON-mode model dumps, so plain
scalars, lists and str-keyed dicts). Inbound frames are the tiny join, leave
and ping messages, so the unpacker is held to tight limits.
"""

from typing import Any

import msgpack

MAX_FRAME_BYTES = 4 * 1024

_UNPACK_LIMITS = {
    "max_str_len": 256,
    "max_bin_len": 256,
    "max_array_len": 16,
    "max_map_len": 16,
    "max_ext_len": 0,
}


class DecodeError(Exception):
    """Inbound frame is not a MessagePack map within the frame limits."""


def _plain(obj: object) -> object:
    # msgpack refuses sets and we want str keys on every map
    if isinstance(obj, dict):
        return {str(k): _plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [_plain(item) for item in obj]
    return obj


def encode(data: dict[str, Any]) -> bytes:
    return msgpack.packb(_plain(data), use_bin_type=True)


def decode(frame: bytes) -> dict[str, Any]:
    if len(frame) > MAX_FRAME_BYTES:
        raise DecodeError(f"payload too large: {len(frame)} bytes (max {MAX_FRAME_BYTES})")
    try:
        message = msgpack.unpackb(frame, raw=False, **_UNPACK_LIMITS)
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"failed to decode MessagePack data: {e}") from e
    if not isinstance(message, dict):
        raise DecodeError(f"expected dict, got {type(message).__name__}")
    return message
