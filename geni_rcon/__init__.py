"""GeniRCON client: multi-session remote console over a Source RCON derivative."""

__version__ = "1.2.0"
