#!/usr/bin/env python3
from __future__ import annotations
import argparse, contextlib, sys
from typing import Optional

from geni_rcon import __version__
from geni_rcon import textformat as tf
from geni_rcon.client import NAME, GeniRconClient
from geni_rcon.console import ConsoleReader, PromptSource, readline_source, stdin_source
from geni_rcon.logger import MainLogger, make_console
from geni_rcon.sessions import SessionRegistry
from geni_rcon.status import SUPPORTED_PROTOCOLS
from geni_rcon.util import Settings, ensure_config, load_settings

# --- settings ----------------------------------------------------------------

def resolve_settings(args) -> Settings:
    """client.properties < GENIRCON_* env < command line."""
    path = ensure_config() if not args.no_config else None
    settings = load_settings(path) if path else Settings()
    if args.ansi is not None:
        settings.ansi = args.ansi
    if args.disable_readline:
        settings.readline = False
    if args.debug:
        settings.debug = True
    if args.protocol:
        settings.protocol = args.protocol
    return settings

# --- wiring ------------------------------------------------------------------

def line_source(settings: Settings):
    """prompt_toolkit on a terminal; plain input() if it cannot start; raw stdin otherwise."""
    if not (settings.readline and sys.stdin.isatty()):
        return stdin_source()
    try:
        return PromptSource()
    except Exception as e:
        print(f"prompt_toolkit console not available ({e}); falling back to plain input.", flush=True)
        return readline_source()

def output_guard(console: ConsoleReader):
    """Keep log output above the prompt while prompt_toolkit owns the input line."""
    if not isinstance(console.source, PromptSource):
        return contextlib.nullcontext()
    from prompt_toolkit.patch_stdout import patch_stdout
    return patch_stdout(raw=True)

def build_client(settings: Settings, exec_lines: Optional[list[str]] = None) -> GeniRconClient:
    logger = MainLogger(make_console(settings.ansi), debug=settings.debug)
    console = ConsoleReader(line_source(settings))
    for line in exec_lines or []:
        console.push_line(line)
    registry = SessionRegistry(logger, protocol=settings.protocol)
    return GeniRconClient(
        logger,
        console,
        registry,
        tick_interval=settings.tick_interval,
        title_interval=settings.title_interval,
    )

def banner(client: GeniRconClient) -> None:
    log = client.logger
    log.info(f"{NAME} {tf.GREEN}v{__version__}")
    log.info(f"GeniRCON Protocol Version: {tf.LIGHT_PURPLE}{client.sessions.protocol}")
    log.info("Initializing console reader ...")
    log.info("Done! For help, type '/help'")

# --- argparse ----------------------------------------------------------------

def build_parser():
    p = argparse.ArgumentParser(prog="genicli.py", description="Interactive multi-session GeniRCON client.")
    ansi = p.add_mutually_exclusive_group()
    ansi.add_argument("--enable-ansi", dest="ansi", action="store_const", const=True, default=None,
                      help="Force colored output")
    ansi.add_argument("--disable-ansi", dest="ansi", action="store_const", const=False,
                      help="Plain output, no escape codes")
    p.add_argument("--disable-readline", action="store_true", help="Read raw stdin lines (no prompt, history or editing)")
    p.add_argument("--debug", action="store_true", help="Show debug messages")
    p.add_argument("--protocol", type=int, choices=SUPPORTED_PROTOCOLS,
                   help="Protocol version to speak (2 = legacy servers)")
    p.add_argument("--exec", dest="exec_lines", action="append", default=[], metavar="LINE",
                   help="Queue a console line before reading input, e.g. --exec '/connect host 19132 pw 3'")
    p.add_argument("--no-config", action="store_true", help="Ignore client.properties")
    p.add_argument("--version", action="version", version=f"{NAME} v{__version__}")
    return p

def main(argv=None):
    argv = argv if argv is not None else sys.argv[1:]
    args = build_parser().parse_args(argv)
    settings = resolve_settings(args)
    client = build_client(settings, args.exec_lines)
    banner(client)
    with output_guard(client.console):
        client.run()
    print(f"{NAME} has stopped", flush=True)
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
