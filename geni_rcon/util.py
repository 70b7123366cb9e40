# geni_rcon/util.py
from __future__ import annotations

import os
import re
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from .status import PROTOCOL_VERSION, SUPPORTED_PROTOCOLS


def home() -> Path:
    return Path(os.environ.get("GENIRCON_HOME", Path.home() / ".geni-rcon")).expanduser()


def config_path() -> Path:
    return home() / "client.properties"


DEFAULTS: Dict[str, str] = {
    "ansi": "auto",
    "readline": "true",
    "debug": "false",
    "protocol": str(PROTOCOL_VERSION),
    "tick-interval": "0.05",
    "title-interval": "40",
}

ENV_OVERRIDES = {
    "GENIRCON_ANSI": "ansi",
    "GENIRCON_DEBUG": "debug",
    "GENIRCON_PROTOCOL": "protocol",
}


# ───────────────────────────── properties files ─────────────────────────────


def read_properties(path: Path) -> dict:
    props = {}
    if path.exists():
        for line in path.read_text(encoding="utf-8", errors="ignore").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                k, v = line.split("=", 1)
                props[k.strip()] = v.strip()
    return props


def write_properties(path: Path, updates: dict):
    props = read_properties(path)
    props.update({k: str(v) for k, v in updates.items()})
    lines = [f"{k}={v}" for k, v in props.items()]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def ensure_config(path: Optional[Path] = None) -> Path:
    """Create the home dir and seed client.properties with any missing defaults."""
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    current = read_properties(path)
    missing = {k: v for k, v in DEFAULTS.items() if k not in current}
    if missing:
        write_properties(path, missing)
    return path


# ───────────────────────────── settings ─────────────────────────────────────


def to_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    s = value.strip().lower()
    if s in ("true", "1", "yes", "on"):
        return True
    if s in ("false", "0", "no", "off"):
        return False
    return default


@dataclass
class Settings:
    ansi: Optional[bool] = None  # None = let the terminal decide
    readline: bool = True
    debug: bool = False
    protocol: int = PROTOCOL_VERSION
    tick_interval: float = 0.05
    title_interval: int = 40

    @classmethod
    def from_properties(cls, props: Mapping[str, str]) -> "Settings":
        merged = {**DEFAULTS, **props}
        ansi = merged["ansi"].strip().lower()
        try:
            protocol = int(merged["protocol"])
        except ValueError:
            protocol = PROTOCOL_VERSION
        if protocol not in SUPPORTED_PROTOCOLS:
            protocol = PROTOCOL_VERSION
        try:
            tick_interval = max(0.0, float(merged["tick-interval"]))
        except ValueError:
            tick_interval = 0.05
        try:
            title_interval = max(1, int(merged["title-interval"]))
        except ValueError:
            title_interval = 40
        return cls(
            ansi=None if ansi == "auto" else to_bool(ansi, True),
            readline=to_bool(merged["readline"], True),
            debug=to_bool(merged["debug"]),
            protocol=protocol,
            tick_interval=tick_interval,
            title_interval=title_interval,
        )


def load_settings(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """client.properties, then GENIRCON_* env vars on top."""
    environ = os.environ if environ is None else environ
    props = read_properties(path or config_path())
    for env, key in ENV_OVERRIDES.items():
        if environ.get(env):
            props[key] = environ[env]
    return Settings.from_properties(props)


# ───────────────────────────── host lookup ──────────────────────────────────

IPV4 = re.compile(r"^[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}$")


class AddressCache:
    def __init__(self):
        self._lookup: Dict[str, str] = {}

    def resolve(self, address: str) -> Optional[str]:
        if IPV4.match(address):
            return address
        address = address.lower()
        if address in self._lookup:
            return self._lookup[address]
        try:
            host = socket.gethostbyname(address)
        except (socket.gaierror, UnicodeError):
            return None
        self._lookup[address] = host
        return host
