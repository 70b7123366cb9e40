# geni_rcon/sessions.py
from __future__ import annotations

import random
from typing import Callable, Dict, NamedTuple, Optional

from .errors import UnknownSessionError
from .logger import MainLogger
from .rcon import Session
from .status import PROTOCOL_VERSION

ID_RANGE = (100_000_000, 200_000_000)

SessionFactory = Callable[..., Session]


class SessionInfo(NamedTuple):
    id: str
    host: str
    port: int
    timeout: float


class SessionRegistry:
    """
    Live sessions keyed by id, plus the "current" pointer. The pointer is
    either None or a key of `_sessions`; every mutation below keeps it so.
    """

    def __init__(
        self,
        logger: MainLogger,
        protocol: int = PROTOCOL_VERSION,
        factory: SessionFactory = Session,
    ):
        self.logger = logger
        self.protocol = protocol
        self.factory = factory
        self._sessions: Dict[str, Session] = {}
        self._current: Optional[str] = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @property
    def current_id(self) -> Optional[str]:
        return self._current

    @property
    def current(self) -> Optional[Session]:
        if self._current is None:
            return None
        return self._sessions.get(self._current)

    def get(self, session_id: str) -> Session:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise UnknownSessionError(session_id) from None

    def _new_id(self) -> str:
        while True:
            sid = str(random.randrange(*ID_RANGE))
            if sid not in self._sessions:
                return sid

    def create(
        self,
        host: str,
        port: int,
        password: str,
        timeout: float,
        session_id: Optional[str] = None,
    ) -> str:
        sid = str(session_id) if session_id else self._new_id()
        old = self._sessions.get(sid)
        if old is not None:
            self.logger.warning(f"Session {sid} already exists, replacing it")
            old.disconnect()
        self._sessions[sid] = self.factory(
            self.logger, host, port, password, timeout, sid, protocol=self.protocol
        )
        return sid

    def connect(self, session_id: str) -> bool:
        """Run the handshake; a failed session is torn down and dropped."""
        session = self.get(session_id)
        if session.connect():
            return True
        self.remove(session_id)
        return False

    def set_current(self, session_id: str, rearm: bool = True) -> Session:
        session = self.get(session_id)
        self._current = session_id
        if rearm and session.is_ready:
            try:
                version = session.check_protocol()
            except TimeoutError:
                version = None
            if version is None:
                self.logger.warning(f"Session {session_id} did not re-arm its logger")
        return session

    def remove(self, session_id: str) -> None:
        session = self.get(session_id)
        try:
            session.disconnect()
        finally:
            del self._sessions[session_id]
            if self._current == session_id:
                self._current = None

    def list(self) -> list[SessionInfo]:
        return [
            SessionInfo(sid, s.host, s.port, s.timeout) for sid, s in self._sessions.items()
        ]

    def close_all(self) -> None:
        for sid in list(self._sessions):
            self.remove(sid)
