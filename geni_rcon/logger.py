# geni_rcon/logger.py
from __future__ import annotations

import time
from typing import Optional

from rich.console import Console
from rich.text import Text

from . import textformat as tf

EMERGENCY = "emergency"
ALERT = "alert"
CRITICAL = "critical"
ERROR = "error"
WARNING = "warning"
NOTICE = "notice"
INFO = "info"
DEBUG = "debug"


def make_console(ansi: Optional[bool] = None) -> Console:
    """ansi=None lets rich detect the terminal; True/False force it."""
    if ansi is False:
        return Console(color_system=None, highlight=False, soft_wrap=True)
    return Console(force_terminal=ansi, highlight=False, soft_wrap=True)


class MainLogger:
    """
    Timestamped, colored console log. Passed explicitly to every component
    that reports to the operator; there is no module-level instance.
    """

    def __init__(self, console: Optional[Console] = None, debug: bool = False):
        self.console = console or make_console()
        self.log_debug = debug

    def emergency(self, message: str, name: str = "EMERGENCY") -> None:
        self.send(message, EMERGENCY, name, tf.RED)

    def alert(self, message: str, name: str = "ALERT") -> None:
        self.send(message, ALERT, name, tf.RED)

    def critical(self, message: str, name: str = "CRITICAL") -> None:
        self.send(message, CRITICAL, name, tf.RED)

    def error(self, message: str, name: str = "ERROR") -> None:
        self.send(message, ERROR, name, tf.DARK_RED)

    def warning(self, message: str, name: str = "WARNING") -> None:
        self.send(message, WARNING, name, tf.YELLOW)

    def notice(self, message: str, name: str = "NOTICE") -> None:
        self.send(message, NOTICE, name, tf.AQUA)

    def info(self, message: str, name: str = "INFO", color: str = tf.WHITE) -> None:
        self.send(message, INFO, name, color)

    def debug(self, message: str, name: str = "DEBUG") -> None:
        if not self.log_debug:
            return
        self.send(message, DEBUG, name, tf.GRAY)

    def send(self, message: str, level: str, prefix: str, color: str) -> None:
        stamp = time.strftime("%H:%M:%S")
        line = (
            f"{tf.AQUA}[{stamp}] {tf.RESET}"
            f"{tf.normalize_color(color)}[{prefix}] {message}{tf.RESET}"
        )
        text: Text = tf.to_text(line)
        self.console.print(text)

    def set_title(self, title: str) -> None:
        self.console.set_window_title(title)
