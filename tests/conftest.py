from __future__ import annotations

import json
import socket
import threading
from dataclasses import asdict
from typing import Callable, Iterable, Optional

import pytest

from geni_rcon import packet as pk
from geni_rcon.packet import Packet
from geni_rcon.status import LoggerPayload

Handler = Callable[[Packet], Iterable[bytes]]


class RecordingLogger:
    """Same surface as MainLogger, keeps (level, message, prefix, color)."""

    def __init__(self):
        self.records: list[tuple[str, str, str, str]] = []
        self.titles: list[str] = []
        self.log_debug = True

    def send(self, message, level, prefix, color):
        self.records.append((level, message, prefix, color))

    def emergency(self, message, name="EMERGENCY"):
        self.send(message, "emergency", name, "")

    def alert(self, message, name="ALERT"):
        self.send(message, "alert", name, "")

    def critical(self, message, name="CRITICAL"):
        self.send(message, "critical", name, "")

    def error(self, message, name="ERROR"):
        self.send(message, "error", name, "")

    def warning(self, message, name="WARNING"):
        self.send(message, "warning", name, "")

    def notice(self, message, name="NOTICE"):
        self.send(message, "notice", name, "")

    def info(self, message, name="INFO", color="§f"):
        self.send(message, "info", name, color)

    def debug(self, message, name="DEBUG"):
        self.send(message, "debug", name, "")

    def set_title(self, title):
        self.titles.append(title)

    def messages(self, level: Optional[str] = None) -> list[str]:
        return [m for (lv, m, _, _) in self.records if level is None or lv == level]


class FakeServer:
    """
    Accepts one TCP client and answers each decoded frame with whatever the
    handler returns (already-encoded frames).
    """

    def __init__(self, handler: Handler):
        self.handler = handler
        self.received: list[Packet] = []
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(1)
        self.sock.settimeout(5)
        self.host, self.port = self.sock.getsockname()
        self.closed = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        try:
            conn, _ = self.sock.accept()
        except OSError:
            return
        with conn:
            conn.settimeout(5)
            while True:
                try:
                    frame = pk.decode(conn)
                except Exception:
                    break
                self.received.append(frame)
                for data in self.handler(frame):
                    conn.sendall(data)
        self.closed.set()

    def close(self) -> None:
        self.sock.close()
        self._thread.join(2)


def rcon_handler(
    password: str = "secret",
    version: int = 3,
    command_reply: bytes = b"",
    logger_reply: bytes = b"",
) -> Handler:
    """A well-behaved server; individual tests override pieces of it."""

    def handle(frame: Packet) -> Iterable[bytes]:
        if frame.type == pk.SERVERDATA_AUTH:
            if frame.text == password:
                return [pk.encode(pk.PACKET_AUTHORIZE, pk.SERVERDATA_AUTH_RESPONSE, "")]
            return [pk.encode(-1, pk.SERVERDATA_AUTH_RESPONSE, "")]
        if frame.type == pk.SERVERDATA_PROTOCOL:
            return [pk.encode(pk.PACKET_PROTOCOL_CHECK, pk.SERVERDATA_RESPONSE_VALUE, str(version))]
        if frame.type == pk.SERVERDATA_EXECCOMMAND:
            return [pk.encode(pk.PACKET_COMMAND, pk.SERVERDATA_RESPONSE_VALUE, command_reply)]
        if frame.type == pk.SERVERDATA_LOGGER:
            return [pk.encode(pk.PACKET_LOGGER, pk.SERVERDATA_RESPONSE_VALUE, logger_reply)]
        return []

    return handle


def encode_logger_payload(payload: LoggerPayload) -> str:
    """Server side of the logger payload, for feeding the fake server."""
    return json.dumps(
        {"log": payload.log, "status": asdict(payload.status) if payload.status else None},
        separators=(",", ":"),
    )


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def fake_server():
    servers: list[FakeServer] = []

    def start(handler: Handler) -> FakeServer:
        srv = FakeServer(handler)
        servers.append(srv)
        return srv

    yield start
    for srv in servers:
        srv.close()
