# geni_rcon/status.py
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from .errors import MalformedFrameError

PROTOCOL_VERSION = 3
LEGACY_PROTOCOL_VERSION = 2
SUPPORTED_PROTOCOLS = (LEGACY_PROTOCOL_VERSION, PROTOCOL_VERSION)


@dataclass(frozen=True)
class ServerStatus:
    online: int = 0
    max: int = 0
    usage: str = ""
    upload: float = 0.0
    download: float = 0.0
    tps: float = 0.0
    load: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServerStatus":
        try:
            return cls(
                online=int(data.get("online", 0)),
                max=int(data.get("max", 0)),
                usage=str(data.get("usage", "")),
                upload=float(data.get("upload", 0.0)),
                download=float(data.get("download", 0.0)),
                tps=float(data.get("tps", 0.0)),
                load=float(data.get("load", 0.0)),
            )
        except (TypeError, ValueError) as e:
            raise MalformedFrameError(f"bad status record: {e}") from e

    def title(self, client_name: str, session_id: str) -> str:
        return (
            f"{client_name} - {session_id}"
            f" | Online {self.online}/{self.max}"
            f" | Memory {self.usage}"
            f" | U {self.upload:g} D {self.download:g} kB/s"
            f" | TPS {self.tps:g}"
            f" | Load {self.load:g}%"
        )


@dataclass(frozen=True)
class LoggerPayload:
    log: str
    status: Optional[ServerStatus] = None


def decode_logger_payload(body: str, protocol: int = PROTOCOL_VERSION) -> LoggerPayload:
    """
    Protocol 3 carries {"log": str, "status": {...} | null} as JSON.
    Protocol 2 servers only push the log text.
    """
    if protocol < PROTOCOL_VERSION:
        return LoggerPayload(log=body)

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise MalformedFrameError(f"logger payload is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedFrameError("logger payload is not an object")

    log = data.get("log") or ""
    if not isinstance(log, str):
        raise MalformedFrameError("logger payload 'log' is not a string")

    raw_status = data.get("status")
    if raw_status is None:
        return LoggerPayload(log=log)
    if not isinstance(raw_status, dict):
        raise MalformedFrameError("logger payload 'status' is not an object")
    return LoggerPayload(log=log, status=ServerStatus.from_dict(raw_status))
