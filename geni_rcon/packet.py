# geni_rcon/packet.py
"""
GeniRCON wire frame.

    size   uint32 LE   bytes after this field
    id     int32  LE   request kind (client correlation tag)
    type   int32  LE   message kind
    body   bytes       payload, NUL terminated
    0x00               mandatory empty trailing string

Known limitation: a response has to fit in one frame. Bodies the server
splits over several frames are not reassembled; the later frames are read
as unrelated replies.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Protocol, Union

from .errors import EncodeError, MalformedFrameError, TruncatedFrameError

# message kinds
SERVERDATA_AUTH = 3
SERVERDATA_AUTH_RESPONSE = 2
SERVERDATA_EXECCOMMAND = 2
SERVERDATA_RESPONSE_VALUE = 0
SERVERDATA_LOGGER = 4
SERVERDATA_PROTOCOL = 9

# request kinds
PACKET_AUTHORIZE = 5
PACKET_COMMAND = 6
PACKET_LOGGER = 7
PACKET_PROTOCOL_CHECK = 8

HEADER = struct.Struct("<ii")
SIZE = struct.Struct("<I")
MIN_SIZE = HEADER.size + 2
MAX_SIZE = 0xFFFFFFFF


class Reader(Protocol):
    def recv(self, n: int) -> bytes: ...


@dataclass(frozen=True)
class Packet:
    id: int
    type: int
    body: bytes = b""

    @property
    def size(self) -> int:
        return HEADER.size + len(self.body) + 2

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", "replace")

    def matches(self, req_id: int, kind: int) -> bool:
        return self.id == req_id and self.type == kind


def encode(req_id: int, kind: int, body: Union[bytes, str] = b"") -> bytes:
    if isinstance(body, str):
        body = body.encode("utf-8")
    size = HEADER.size + len(body) + 2
    if size > MAX_SIZE:
        raise EncodeError(f"body too large for one frame: {len(body)} bytes")
    try:
        return SIZE.pack(size) + HEADER.pack(req_id, kind) + body + b"\x00\x00"
    except struct.error as e:
        raise EncodeError(str(e)) from e


def _recv_exact(reader: Reader, n: int, consumed: int, total: int) -> bytes:
    buf = b""
    while len(buf) < n:
        try:
            chunk = reader.recv(n - len(buf))
        except TimeoutError:
            if consumed + len(buf) == 0:
                raise
            raise TruncatedFrameError(
                f"timed out after {consumed + len(buf)} of {total} bytes"
            ) from None
        if not chunk:
            raise TruncatedFrameError(
                f"connection closed after {consumed + len(buf)} of {total} bytes"
            )
        buf += chunk
    return buf


def decode(reader: Reader) -> Packet:
    """
    Read one frame. A timeout before the first byte is re-raised as is
    (nothing consumed, the stream is still in sync); anything later is a
    TruncatedFrameError.
    """
    raw_size = _recv_exact(reader, SIZE.size, 0, SIZE.size)
    (size,) = SIZE.unpack(raw_size)
    if size < MIN_SIZE:
        raise MalformedFrameError(f"declared frame size {size} is below {MIN_SIZE}")
    data = _recv_exact(reader, size, SIZE.size, SIZE.size + size)
    req_id, kind = HEADER.unpack_from(data)
    body = data[HEADER.size:].rstrip(b"\x00")
    return Packet(req_id, kind, body)
