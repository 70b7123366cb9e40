# geni_rcon/errors.py
from __future__ import annotations


class RconError(Exception):
    """Base class for everything the client raises on purpose."""


class EncodeError(RconError):
    pass


class TransportError(RconError):
    """Socket open/read/write failure. Ends the affected session."""


class TruncatedFrameError(TransportError):
    """The stream ended (or stalled) before a whole frame arrived."""


class MalformedFrameError(RconError):
    """A frame or payload that does not match its declared shape."""


class HandshakeError(RconError):
    """Authorization rejected or protocol version mismatch."""


class UnknownSessionError(RconError, KeyError):
    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Invalid session id {self.session_id}"
