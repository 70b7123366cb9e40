# geni_rcon/console.py
from __future__ import annotations

import contextlib
import queue
import re
import sys
import threading
from typing import Callable, Optional

IDLE_WAIT = 0.01  # seconds to park the reader when no line was available
PROMPT = "> "

# cursor keys and similar terminal junk that leaks into raw reads
CURSOR_ESCAPE = re.compile(r"\x1b\[([^\x1b]*~|[\x40-\x50])")

LineSource = Callable[[], str]


def strip_escapes(line: str) -> str:
    return CURSOR_ESCAPE.sub("", line)


class PromptSource:
    """
    prompt_toolkit line editor with in-memory history. Called from the reader
    thread; run the tick loop under patch_stdout() so log lines print above
    the prompt instead of over it.
    """

    def __init__(self, prompt: str = PROMPT, **session_kwargs):
        from prompt_toolkit import PromptSession
        from prompt_toolkit.history import InMemoryHistory

        self.prompt = prompt
        self.session = PromptSession(history=InMemoryHistory(), **session_kwargs)

    def __call__(self) -> str:
        try:
            return self.session.prompt(self.prompt)
        except (EOFError, KeyboardInterrupt):
            # Ctrl-D / Ctrl-C at the prompt
            return "/exit"

    def close(self) -> None:
        """Abort a pending prompt() from another thread."""
        app = self.session.app
        loop = getattr(app, "loop", None)
        if app.is_running and loop is not None:
            loop.call_soon_threadsafe(lambda: app.exit(result=""))


def readline_source(prompt: str = PROMPT) -> LineSource:
    """Plain input(), used when prompt_toolkit cannot drive the terminal."""
    with contextlib.suppress(ImportError):
        import readline  # noqa: F401  (enables line editing for input())

    def read() -> str:
        try:
            return input(prompt)
        except EOFError:
            return ""

    return read


def stdin_source() -> LineSource:
    return sys.stdin.readline


class ConsoleReader:
    """
    Background line reader. One thread produces into `lines`, the tick loop
    consumes with get_line(); nothing else is shared.
    """

    def __init__(self, source: Optional[LineSource] = None):
        self.source = source or stdin_source()
        self.lines: "queue.Queue[str]" = queue.Queue()
        self._shutdown = threading.Event()
        self._idle = threading.Condition()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "ConsoleReader":
        if self._thread is None:
            self._thread = threading.Thread(target=self._run, name="console-reader", daemon=True)
            self._thread.start()
        return self

    def _run(self) -> None:
        while not self._shutdown.is_set():
            line = strip_escapes(self.source().strip())
            if line:
                self.lines.put(line)
                continue
            with self._idle:
                if not self._shutdown.is_set():
                    self._idle.wait(IDLE_WAIT)

    def get_line(self) -> Optional[str]:
        try:
            return self.lines.get_nowait()
        except queue.Empty:
            return None

    def push_line(self, line: str) -> None:
        line = strip_escapes(line.strip())
        if line:
            self.lines.put(line)

    def shutdown(self) -> None:
        self._shutdown.set()
        with self._idle:
            self._idle.notify_all()
        close = getattr(self.source, "close", None)
        if close is not None:
            close()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
