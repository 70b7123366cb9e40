# geni_rcon/client.py
from __future__ import annotations

import math
import time
from typing import Callable, Optional

from . import __version__
from . import textformat as tf
from .commands import COMMANDS, PREFIX, split_command
from .console import ConsoleReader
from .errors import (
    EncodeError,
    MalformedFrameError,
    RconError,
    TransportError,
    UnknownSessionError,
)
from .logger import MainLogger
from .sessions import SessionRegistry
from .util import AddressCache

NAME = "GeniRCON Client"
TICK_INTERVAL = 0.05
TITLE_INTERVAL = 40

DEFAULT_COLOR = tf.WHITE
DEFAULT_LABEL = "INFO"


def split_log_line(line: str) -> tuple[str, str, str]:
    """'color|label|message' -> parts; anything else gets the defaults."""
    parts = line.split("|", 2)
    if len(parts) == 3:
        return parts[0], parts[1], parts[2]
    return DEFAULT_COLOR, DEFAULT_LABEL, line


class GeniRconClient:
    """
    Single-threaded control loop. Owns the registry; every socket operation
    happens inside tick().
    """

    def __init__(
        self,
        logger: MainLogger,
        console: ConsoleReader,
        registry: Optional[SessionRegistry] = None,
        resolver: Optional[AddressCache] = None,
        tick_interval: float = TICK_INTERVAL,
        title_interval: int = TITLE_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.logger = logger
        self.console = console
        self.sessions = registry or SessionRegistry(logger)
        self.resolver = resolver or AddressCache()
        self.tick_interval = tick_interval
        self.title_interval = title_interval
        self.sleep = sleep
        self.ticks = 0
        self.running = False

    # --- loop ----------------------------------------------------------------

    def run(self) -> None:
        self.running = True
        self.console.start()
        try:
            while self.running:
                self.tick()
                self.sleep(self.tick_interval)
        except KeyboardInterrupt:
            self.stop()

    def tick(self) -> None:
        self.ticks += 1
        line = self.console.get_line()
        if line is not None:
            self.dispatch_command(line)

        session = self.sessions.current
        if session is None:
            return
        sid = session.session_id
        alive = self._guard(sid, session.poll_logger)
        # a dropped session may still hold a command reply from this tick
        self.print_response(sid, session.get_response())
        if not alive:
            return

        if self.ticks % self.title_interval == 0:
            status = session.get_status()
            if status is not None:
                self.logger.set_title(status.title(NAME, sid))

    def print_response(self, sid: str, res: Optional[str]) -> None:
        if not res:
            return
        for raw in res.split("\n"):
            if not raw.strip():
                continue
            color, label, message = split_log_line(raw)
            self.logger.info(message, f"{sid} / {label}", color)

    def _guard(self, sid: str, call: Callable[[], object]) -> bool:
        """Run a session exchange; a broken session is dropped, nothing else."""
        try:
            call()
        except (TransportError, MalformedFrameError) as e:
            self.logger.error(f"Session {sid} failed: {e}")
            if sid in self.sessions:
                self.sessions.remove(sid)
            return False
        except EncodeError as e:
            self.logger.warning(f"Session {sid}: {e}")
        return True

    def stop(self) -> None:
        self.logger.info("Stopping GeniRCON Client ...")
        self.sessions.close_all()
        self.console.shutdown()
        self.running = False

    # --- dispatch ------------------------------------------------------------

    def dispatch_command(self, line: str) -> None:
        verb, args = split_command(line)
        if verb is None:
            self.send_to_current(line)
            return
        getattr(self, f"cmd_{verb}")(args)

    def send_to_current(self, text: str) -> None:
        session = self.sessions.current
        if session is None:
            self.logger.warning(
                "Current session is empty! Type '/connect' to create a new session "
                "or type '/session' to switch to another session."
            )
            return
        self._guard(session.session_id, lambda: session.send_command(text))

    def cmd_connect(self, args: list[str]) -> None:
        if len(args) < 4:
            self.logger.warning("Wrong format! Please try again")
            return
        host, port, password, timeout = args[:4]
        try:
            port_n = int(port)
            timeout_n = float(timeout)
        except ValueError:
            self.logger.warning("Wrong format! Please try again")
            return
        if not 0 < port_n < 65536 or not math.isfinite(timeout_n) or timeout_n <= 0:
            self.logger.warning("Wrong format! Please try again")
            return
        address = self.resolver.resolve(host)
        if address is None:
            self.logger.warning(f"Unable to resolve {host}")
            return

        sid = self.sessions.create(address, port_n, password, timeout_n, args[4] if len(args) > 4 else None)
        self.logger.notice(f"GeniRCON session has been created! ID: {tf.GOLD}{sid}")
        self.logger.info(f"Connecting to {host}:{port} ...")
        session = self.sessions.get(sid)
        if self.sessions.connect(sid):
            self.sessions.set_current(sid, rearm=False)
            self.logger.info("Connected!")
        else:
            reason = f" ({session.last_error})" if session.last_error else ""
            self.logger.error(f"Failed to connect to {host}:{port}{reason}")

    def cmd_disconnect(self, args: list[str]) -> None:
        sid = args[0] if args else self.sessions.current_id
        if sid is None:
            self.logger.warning("Current session is empty!")
            return
        try:
            self.sessions.remove(sid)
        except UnknownSessionError:
            self.logger.warning("Invalid SessionID!")

    def cmd_session(self, args: list[str]) -> None:
        if len(args) != 1:
            self.logger.warning("Wrong format! Please try again")
            return
        sid = args[0]
        try:
            self.sessions.set_current(sid)
        except UnknownSessionError:
            self.logger.alert(f"Invalid session id {sid}")
            return
        except (TransportError, MalformedFrameError) as e:
            self.logger.error(f"Session {sid} failed: {e}")
            self.sessions.remove(sid)
            return
        except RconError as e:
            self.logger.warning(f"Session {sid}: {e}")
        self.logger.info(f"Current session has successfully changed to {tf.GREEN}{sid}")

    def cmd_list(self, args: list[str]) -> None:
        infos = self.sessions.list()
        self.logger.info(f"There are {tf.GREEN}{len(infos)}{tf.WHITE} connected sessions:")
        for info in infos:
            self.logger.info(
                f"SessionID: {tf.AQUA}{info.id}{tf.WHITE}"
                f" Address: {tf.YELLOW}{info.host}:{info.port}{tf.WHITE}"
                f" Timeout: {tf.DARK_PURPLE}{info.timeout:g}"
            )

    def cmd_help(self, args: list[str]) -> None:
        if not args:
            self.logger.info("-------  Help  -------")
            for name, (_, desc) in COMMANDS.items():
                self.logger.info(f"{tf.DARK_GREEN}{PREFIX}{name}: {tf.WHITE}{desc}")
            return
        name = args[0].lstrip(PREFIX).lower()
        if name not in COMMANDS:
            self.logger.alert(f"No help for {args[0]}")
            return
        usage, desc = COMMANDS[name]
        self.logger.info(f"{tf.YELLOW}-------{tf.WHITE}  Help: {PREFIX}{name}  {tf.YELLOW}-------")
        self.logger.info(f"{tf.GOLD}Description: {tf.WHITE}{desc}")
        self.logger.info(f"{tf.GOLD}Usage: {tf.WHITE}{PREFIX}{usage}")

    def cmd_version(self, args: list[str]) -> None:
        self.logger.info(
            f"{tf.AQUA}{NAME}{tf.WHITE} [Version: {tf.LIGHT_PURPLE}{__version__}{tf.WHITE}]"
            f" (Protocol version: {tf.GOLD}{self.sessions.protocol}{tf.WHITE})"
        )

    def cmd_exit(self, args: list[str]) -> None:
        self.stop()
