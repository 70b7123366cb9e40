# geni_rcon/commands.py
from __future__ import annotations

PREFIX = "/"

# name -> (usage, description)
COMMANDS: dict[str, tuple[str, str]] = {
    "connect": (
        "connect <host> <port> <password> <timeout> (SessionID)",
        "Connect to a server. If SessionID is empty, client will auto generate one.",
    ),
    "disconnect": ("disconnect (SessionID)", "Disconnect from a session"),
    "exit": ("exit", "Shutdown this program and exit"),
    "help": ("help (CommandName)", "Show the help menu"),
    "list": ("list", "List all connected sessions"),
    "session": ("session <SessionID>", "Change current session"),
    "version": ("version", "Gets the version of this program"),
}


def split_command(line: str) -> tuple[str | None, list[str]]:
    """
    "/connect a b" -> ("connect", ["a", "b"]). Anything that is not a known
    client verb returns (None, []) and goes to the server verbatim.
    """
    if not line.startswith(PREFIX):
        return None, []
    head, *args = line[len(PREFIX):].split(" ")
    verb = head.lower()
    if verb not in COMMANDS:
        return None, []
    return verb, [a for a in args if a != ""]
