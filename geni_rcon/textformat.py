# geni_rcon/textformat.py
"""Minecraft-style § formatting codes → rich styles."""
from __future__ import annotations

import re

from rich.text import Text

ESCAPE = "§"

BLACK = ESCAPE + "0"
DARK_BLUE = ESCAPE + "1"
DARK_GREEN = ESCAPE + "2"
DARK_AQUA = ESCAPE + "3"
DARK_RED = ESCAPE + "4"
DARK_PURPLE = ESCAPE + "5"
GOLD = ESCAPE + "6"
GRAY = ESCAPE + "7"
DARK_GRAY = ESCAPE + "8"
BLUE = ESCAPE + "9"
GREEN = ESCAPE + "a"
AQUA = ESCAPE + "b"
RED = ESCAPE + "c"
LIGHT_PURPLE = ESCAPE + "d"
YELLOW = ESCAPE + "e"
WHITE = ESCAPE + "f"

OBFUSCATED = ESCAPE + "k"
BOLD = ESCAPE + "l"
STRIKETHROUGH = ESCAPE + "m"
UNDERLINE = ESCAPE + "n"
ITALIC = ESCAPE + "o"
RESET = ESCAPE + "r"

# xterm-256 palette indices
COLORS = {
    "0": "color(16)",
    "1": "color(19)",
    "2": "color(34)",
    "3": "color(37)",
    "4": "color(124)",
    "5": "color(127)",
    "6": "color(214)",
    "7": "color(145)",
    "8": "color(59)",
    "9": "color(63)",
    "a": "color(83)",
    "b": "color(87)",
    "c": "color(203)",
    "d": "color(207)",
    "e": "color(227)",
    "f": "color(231)",
}
FORMATS = {"l": "bold", "m": "strike", "n": "underline", "o": "italic", "k": ""}

TOKEN = re.compile("(" + ESCAPE + "[0-9a-fk-or])")
ANSI_SEQ = re.compile(r"\x1b[\(\][[0-9;\[\(]+[Bm]")


def normalize_color(color: str) -> str:
    """Accepts "a", "§a" or junk; always returns a usable § code."""
    code = color[len(ESCAPE):] if color.startswith(ESCAPE) else color
    code = code.strip().lower()
    if len(code) == 1 and (code in COLORS or code in FORMATS or code == "r"):
        return ESCAPE + code
    return WHITE


def clean(string: str) -> str:
    return ANSI_SEQ.sub("", TOKEN.sub("", string)).replace(ESCAPE, "")


def to_text(string: str) -> Text:
    out = Text()
    color = ""
    formats: list[str] = []
    for token in TOKEN.split(string):
        if not token:
            continue
        if TOKEN.fullmatch(token):
            code = token[-1]
            if code in COLORS:
                # a color code also resets formatting, like the game does
                color, formats = COLORS[code], []
            elif code == "r":
                color, formats = "", []
            elif FORMATS.get(code):
                formats.append(FORMATS[code])
            continue
        style = " ".join(s for s in [color, *formats] if s)
        out.append(ANSI_SEQ.sub("", token), style=style or None)
    return out
