"""
shoesign.transport.framing
==========================

Length-prefixed JSON frames for the display process.

Each frame is a 4-byte little-endian unsigned length followed by that many
bytes of UTF-8 JSON. `FrameDecoder` buffers arbitrarily split arrivals and
drains every complete frame on each `feed()`; a frame whose body does not
decode is logged, counted and skipped.

Examples
--------
>>> frame = encode_frame({"type": "ping"})
>>> frame[:4]
b'\\x0f\\x00\\x00\\x00'
>>> dec = FrameDecoder()
>>> dec.feed(frame[:3]), dec.feed(frame[3:] + encode_frame([1, 2]))
([], [{'type': 'ping'}, [1, 2]])
"""

from __future__ import annotations
import json
import logging
import struct
from typing import IO, Any, List

logger = logging.getLogger(__name__)

_HEADER = struct.Struct("<I")
HEADER_SIZE = _HEADER.size
MAX_FRAME_SIZE = 0xFFFFFFFF


def encode_frame(message: Any) -> bytes:
    """Serialize `message` as one length-prefixed frame."""
    body = json.dumps(message, separators=(",", ":")).encode("utf-8")
    if len(body) > MAX_FRAME_SIZE:
        raise ValueError(f"Frame body too large: {len(body)} bytes")
    return _HEADER.pack(len(body)) + body


def write_frame(stream: IO[bytes], message: Any) -> int:
    """Write one frame to a binary stream and flush it; returns bytes written."""
    frame = encode_frame(message)
    stream.write(frame)
    stream.flush()
    return len(frame)


class FrameDecoder:
    """Incremental decoder for a byte stream of frames."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self.errors = 0
        self.frames = 0

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: bytes) -> List[Any]:
        """Add bytes and return every message completed by them."""
        self._buffer.extend(chunk)
        messages: List[Any] = []
        while len(self._buffer) >= HEADER_SIZE:
            (length,) = _HEADER.unpack_from(self._buffer, 0)
            end = HEADER_SIZE + length
            if len(self._buffer) < end:
                break
            body = bytes(self._buffer[HEADER_SIZE:end])
            del self._buffer[:end]
            try:
                messages.append(json.loads(body.decode("utf-8")))
            except (UnicodeDecodeError, ValueError) as exc:
                self.errors += 1
                logger.warning("Discarding undecodable frame of %d bytes: %s", length, exc)
                continue
            self.frames += 1
        return messages
