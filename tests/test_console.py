from __future__ import annotations

import threading
import time

from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from geni_rcon.console import ConsoleReader, PromptSource, strip_escapes


def scripted(lines):
    """Line source that yields `lines`, then behaves like an idle terminal."""
    it = iter(lines)
    calls = {"idle": 0}

    def read():
        try:
            return next(it)
        except StopIteration:
            calls["idle"] += 1
            return ""

    read.calls = calls
    return read


def drain(reader, n, timeout=2.0):
    out = []
    deadline = time.monotonic() + timeout
    while len(out) < n and time.monotonic() < deadline:
        line = reader.get_line()
        if line is None:
            time.sleep(0.001)
            continue
        out.append(line)
    return out


def test_fifo_order_is_preserved():
    lines = [f"line {i}\n" for i in range(200)]
    reader = ConsoleReader(scripted(lines)).start()
    try:
        got = drain(reader, 200)
    finally:
        reader.shutdown()
        reader.join(1)
    assert got == [f"line {i}" for i in range(200)]


def test_blank_lines_are_dropped_and_escapes_stripped():
    reader = ConsoleReader(scripted(["\n", "  /list \n", "\x1b[Asay hi\x1b[3~\n"])).start()
    try:
        got = drain(reader, 2)
    finally:
        reader.shutdown()
        reader.join(1)
    assert got == ["/list", "say hi"]


def test_idle_reader_waits_instead_of_spinning():
    source = scripted([])
    reader = ConsoleReader(source).start()
    time.sleep(0.2)
    reader.shutdown()
    reader.join(1)
    # 10ms parking => a few dozen polls, not hundreds of thousands
    assert 0 < source.calls["idle"] < 100


def test_shutdown_stops_the_thread_promptly():
    reader = ConsoleReader(scripted([])).start()
    assert reader.running
    reader.shutdown()
    reader.join(1)
    assert not reader.running


def test_shutdown_takes_effect_at_next_line_boundary():
    gate = threading.Event()
    entered = threading.Event()

    def blocking():
        entered.set()
        gate.wait(2)
        return "late line\n"

    reader = ConsoleReader(blocking).start()
    assert entered.wait(1)
    reader.shutdown()
    assert reader.running
    gate.set()
    reader.join(1)
    assert not reader.running
    assert reader.get_line() == "late line"


def test_get_line_is_non_blocking():
    reader = ConsoleReader(scripted([]))
    assert reader.get_line() is None


def test_push_line_queues_behind_pending_input():
    reader = ConsoleReader(scripted([]))
    reader.push_line("/connect 127.0.0.1 19132 pw 3")
    reader.push_line("   ")
    reader.push_line("list")
    assert reader.get_line() == "/connect 127.0.0.1 19132 pw 3"
    assert reader.get_line() == "list"
    assert reader.get_line() is None


def test_strip_escapes():
    assert strip_escapes("\x1b[Ahello") == "hello"
    assert strip_escapes("a\x1b[2~b") == "ab"
    assert strip_escapes("plain") == "plain"


def test_prompt_source_returns_the_entered_line():
    with create_pipe_input() as inp:
        inp.send_text("/list\r")
        source = PromptSource(input=inp, output=DummyOutput())
        assert source() == "/list"


def test_prompt_source_turns_ctrl_d_into_exit():
    with create_pipe_input() as inp:
        inp.send_text("\x04")
        source = PromptSource(input=inp, output=DummyOutput())
        assert source() == "/exit"


def test_prompt_source_close_without_pending_prompt():
    with create_pipe_input() as inp:
        PromptSource(input=inp, output=DummyOutput()).close()


def test_shutdown_closes_a_closable_source():
    closed = []

    class Source:
        def __call__(self):
            return ""

        def close(self):
            closed.append(True)

    reader = ConsoleReader(Source()).start()
    reader.shutdown()
    reader.join(1)
    assert closed == [True]
    assert not reader.running
