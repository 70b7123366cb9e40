from __future__ import annotations

import socket

from geni_rcon import util
from geni_rcon.util import (
    AddressCache,
    Settings,
    ensure_config,
    load_settings,
    read_properties,
    to_bool,
    write_properties,
)


def test_home_follows_env(tmp_path, monkeypatch):
    monkeypatch.setenv("GENIRCON_HOME", str(tmp_path / "rc"))
    assert util.home() == tmp_path / "rc"
    assert util.config_path() == tmp_path / "rc" / "client.properties"


def test_read_properties_skips_comments_and_blanks(tmp_path):
    p = tmp_path / "client.properties"
    p.write_text("# header\n\nansi = false\nprotocol=2\nbroken line\n", encoding="utf-8")
    assert read_properties(p) == {"ansi": "false", "protocol": "2"}
    assert read_properties(tmp_path / "missing.properties") == {}


def test_write_properties_merges(tmp_path):
    p = tmp_path / "client.properties"
    p.write_text("debug=true\n", encoding="utf-8")
    write_properties(p, {"protocol": 2})
    assert read_properties(p) == {"debug": "true", "protocol": "2"}


def test_ensure_config_keeps_user_values(tmp_path):
    p = tmp_path / "nested" / "client.properties"
    ensure_config(p)
    assert read_properties(p) == util.DEFAULTS
    write_properties(p, {"debug": "true"})
    ensure_config(p)
    assert read_properties(p)["debug"] == "true"


def test_to_bool():
    assert to_bool("Yes") is True
    assert to_bool("off") is False
    assert to_bool("maybe", True) is True
    assert to_bool(None) is False


def test_settings_defaults():
    s = Settings.from_properties({})
    assert s == Settings()
    assert s.ansi is None


def test_settings_fall_back_on_bad_values():
    s = Settings.from_properties(
        {"protocol": "7", "tick-interval": "fast", "title-interval": "0", "ansi": "false"}
    )
    assert s.protocol == 3
    assert s.tick_interval == 0.05
    assert s.title_interval == 1
    assert s.ansi is False


def test_env_overrides_properties(tmp_path):
    p = tmp_path / "client.properties"
    p.write_text("protocol=3\ndebug=false\n", encoding="utf-8")
    s = load_settings(p, environ={"GENIRCON_PROTOCOL": "2", "GENIRCON_DEBUG": "1"})
    assert s.protocol == 2
    assert s.debug is True
    assert load_settings(p, environ={}).protocol == 3


def test_address_cache_literal_skips_lookup(monkeypatch):
    def boom(name):
        raise AssertionError("no lookup expected")

    monkeypatch.setattr(socket, "gethostbyname", boom)
    assert AddressCache().resolve("192.168.1.20") == "192.168.1.20"


def test_address_cache_memoises_and_lowercases(monkeypatch):
    calls = []

    def lookup(name):
        calls.append(name)
        return "10.1.2.3"

    monkeypatch.setattr(socket, "gethostbyname", lookup)
    cache = AddressCache()
    assert cache.resolve("Play.Example.org") == "10.1.2.3"
    assert cache.resolve("play.example.ORG") == "10.1.2.3"
    assert calls == ["play.example.org"]


def test_address_cache_failure_not_cached(monkeypatch):
    answers = iter([socket.gaierror("nope"), "10.0.0.9"])

    def lookup(name):
        a = next(answers)
        if isinstance(a, Exception):
            raise a
        return a

    monkeypatch.setattr(socket, "gethostbyname", lookup)
    cache = AddressCache()
    assert cache.resolve("flaky.example") is None
    assert cache.resolve("flaky.example") == "10.0.0.9"
