# geni_rcon/rcon.py
from __future__ import annotations

import enum
import socket
from typing import Optional

from . import packet as pk
from .errors import HandshakeError, RconError, TransportError
from .logger import MainLogger
from .packet import Packet
from .status import PROTOCOL_VERSION, ServerStatus, decode_logger_payload

READ_TIMEOUT = 3.0  # seconds, once the TCP connection is up


class SessionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    CHECKING_PROTOCOL = "checking-protocol"
    READY = "ready"


class Session:
    """One authenticated GeniRCON connection. Only the tick loop touches it."""

    def __init__(
        self,
        logger: MainLogger,
        host: str,
        port: int,
        password: str,
        timeout: float,
        session_id: str,
        protocol: int = PROTOCOL_VERSION,
    ):
        self.logger = logger
        self.host = host
        self.port = port
        self.password = password
        self.timeout = timeout
        self.session_id = session_id
        self.protocol = protocol

        self.sock: Optional[socket.socket] = None
        self.state = SessionState.DISCONNECTED
        self.authorized = False
        self.last_response: Optional[str] = None
        self.last_status: Optional[ServerStatus] = None
        self.last_error: Optional[str] = None

    def __repr__(self) -> str:
        return f"<Session {self.session_id} {self.host}:{self.port} {self.state.value}>"

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def is_ready(self) -> bool:
        return self.state is SessionState.READY

    # --- handshake -----------------------------------------------------------

    def connect(self) -> bool:
        self.state = SessionState.CONNECTING
        try:
            self.sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
            self.sock.settimeout(READ_TIMEOUT)
        except (OSError, ValueError, OverflowError) as e:
            if self.sock is not None:
                self.sock.close()
            self.sock = None
            self.state = SessionState.DISCONNECTED
            self.last_error = self.last_response = str(e) or e.__class__.__name__
            return False

        try:
            self.state = SessionState.AUTHENTICATING
            self._authorize()
            self.state = SessionState.CHECKING_PROTOCOL
            remote = self.check_protocol()
            if remote is None:
                raise HandshakeError("server did not answer the protocol check")
            if remote != self.protocol:
                if remote < self.protocol:
                    self.logger.warning("Outdated server!")
                else:
                    self.logger.warning("Outdated client!")
                # socket stays open; the owner discards us with disconnect()
                raise HandshakeError(f"protocol mismatch: server {remote}, client {self.protocol}")
        except TimeoutError:
            self.last_error = "handshake timed out"
        except RconError as e:
            self.last_error = str(e)
        except OSError as e:
            self.last_error = str(e)
        else:
            self.state = SessionState.READY
            return True

        if self.state is not SessionState.CHECKING_PROTOCOL:
            self.disconnect()
        return False

    def _authorize(self) -> None:
        self._write(pk.PACKET_AUTHORIZE, pk.SERVERDATA_AUTH, self.password)
        reply = self._read()
        if not reply.matches(pk.PACKET_AUTHORIZE, pk.SERVERDATA_AUTH_RESPONSE):
            self.disconnect()
            raise HandshakeError("authentication failed")
        self.logger.notice("Login success!")
        self.authorized = True

    def check_protocol(self) -> Optional[int]:
        """
        Ask the server for its protocol version. Also used on session switch:
        the server re-arms its log push for whoever asked last.
        """
        self._write(pk.PACKET_PROTOCOL_CHECK, pk.SERVERDATA_PROTOCOL, str(self.protocol))
        reply = self._read()
        if not reply.matches(pk.PACKET_PROTOCOL_CHECK, pk.SERVERDATA_RESPONSE_VALUE):
            return None
        try:
            return int(reply.text.strip())
        except ValueError:
            raise HandshakeError(f"bad protocol version {reply.text!r}") from None

    # --- exchanges -----------------------------------------------------------

    def send_command(self, command: str, expect_response: bool = True) -> Optional[str]:
        if not self.is_ready:
            return None
        self._write(pk.PACKET_COMMAND, pk.SERVERDATA_EXECCOMMAND, command)
        if not expect_response:
            return None
        try:
            reply = self._read()
        except TimeoutError:
            self.logger.debug(f"No response to '{command}' from session {self.session_id}")
            return None
        if reply.matches(pk.PACKET_COMMAND, pk.SERVERDATA_RESPONSE_VALUE):
            self.last_response = reply.text
            return self.last_response
        return None

    def poll_logger(self) -> bool:
        """Pull buffered log/status from the server. Never raises on timeout."""
        if not self.is_ready:
            return False
        self._write(pk.PACKET_LOGGER, pk.SERVERDATA_LOGGER, "")
        try:
            reply = self._read()
        except TimeoutError:
            return False
        if not reply.matches(pk.PACKET_LOGGER, pk.SERVERDATA_RESPONSE_VALUE) or not reply.body:
            return False

        payload = decode_logger_payload(reply.text, self.protocol)
        if self.last_response:
            self.last_response += "\n" + payload.log
        else:
            self.last_response = payload.log
        if payload.status is not None:
            self.last_status = payload.status
        return True

    def get_response(self) -> Optional[str]:
        res, self.last_response = self.last_response, None
        return res

    def get_status(self) -> Optional[ServerStatus]:
        return self.last_status

    def disconnect(self) -> None:
        if self.sock is None:
            self.state = SessionState.DISCONNECTED
            return
        self.logger.notice(f"Disconnecting from session {self.session_id} ({self.address})")
        try:
            self.sock.close()
        except OSError:
            pass
        self.sock = None
        self.state = SessionState.DISCONNECTED
        self.authorized = False
        self.logger.notice(f"Disconnected from session {self.session_id} ({self.address})")

    # --- wire ----------------------------------------------------------------

    def _write(self, req_id: int, kind: int, body: str) -> None:
        if self.sock is None:
            raise TransportError(f"session {self.session_id} is not connected")
        data = pk.encode(req_id, kind, body)
        try:
            self.sock.sendall(data)
        except TimeoutError as e:
            raise TransportError(f"write timed out: {e}") from e
        except OSError as e:
            raise TransportError(str(e)) from e

    def _read(self) -> Packet:
        """TimeoutError passes through untouched: nothing was consumed."""
        if self.sock is None:
            raise TransportError(f"session {self.session_id} is not connected")
        try:
            return pk.decode(self.sock)
        except (TimeoutError, RconError):
            raise
        except OSError as e:
            raise TransportError(str(e)) from e


