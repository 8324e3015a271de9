from __future__ import annotations

import shlex
from typing import List

import pytest

from devprops.channels import CommandChannel, CommandResult
from devprops.live import LIST_COMMAND, LiveProperties


class FakeChannel(CommandChannel):
    def __init__(self, lines: List[str] | None = None, succeeded: bool = True) -> None:
        self.lines = lines or []
        self.succeeded = succeeded
        self.set_succeeds = True
        self.commands: List[str] = []

    def run(self, command: str) -> CommandResult:
        self.commands.append(command)
        if command == LIST_COMMAND:
            return CommandResult(self.succeeded, list(self.lines))
        return CommandResult(self.set_succeeds)


def test_get_all_parses_output() -> None:
    ch = FakeChannel(["[ro.build.id]: [ABC123]", "  [ro.product.model]: [Pixel 7]  ", ""])
    props = LiveProperties(ch)
    assert props.get_all() == {"ro.build.id": "ABC123", "ro.product.model": "Pixel 7"}
    assert props.get("ro.build.id") == "ABC123"
    assert props.get("missing") is None


def test_get_all_is_memoized() -> None:
    ch = FakeChannel(["[a]: [1]"])
    props = LiveProperties(ch)
    first = props.get_all()
    second = props.get_all()
    assert first == second == {"a": "1"}
    assert ch.commands == [LIST_COMMAND]


def test_failed_load_yields_empty_and_retries() -> None:
    ch = FakeChannel(["[a]: [1]"], succeeded=False)
    props = LiveProperties(ch)
    assert props.get_all() == {}
    assert not props.populated
    ch.succeeded = True
    assert props.get_all() == {"a": "1"}
    assert props.populated
    assert len(ch.commands) == 2


def test_empty_output_is_a_failed_load() -> None:
    props = LiveProperties(FakeChannel([]))
    assert props.get_all() == {}
    assert not props.populated


def test_malformed_lines_are_skipped() -> None:
    ch = FakeChannel(["garbage", "[a]: [1]", "[b"])
    assert LiveProperties(ch).get_all() == {"a": "1"}


def test_exists_does_not_load() -> None:
    ch = FakeChannel(["[a]: [1]"])
    props = LiveProperties(ch)
    assert not props.exists("a")
    assert ch.commands == []
    props.get_all()
    assert props.exists("a")


def test_set_updates_cache_on_success() -> None:
    ch = FakeChannel(["[a]: [1]"])
    props = LiveProperties(ch)
    props.get_all()
    assert props.set("a", "2")
    assert props.get("a") == "2"
    assert props.exists("a")


def test_set_failure_leaves_cache() -> None:
    ch = FakeChannel(["[a]: [1]"])
    ch.set_succeeds = False
    props = LiveProperties(ch)
    props.get_all()
    assert not props.set("a", "2")
    assert props.get("a") == "1"
    assert not props.set("new", "x")
    assert not props.exists("new")


def test_set_quotes_arguments() -> None:
    ch = FakeChannel()
    props = LiveProperties(ch)
    value = "it's; rm -rf /"
    assert props.set("debug.x", value)
    argv = shlex.split(ch.commands[-1])
    assert argv[:3] == ["setprop", "debug.x", value]


def test_empty_name_fails_fast() -> None:
    props = LiveProperties(FakeChannel())
    with pytest.raises(ValueError):
        props.get("")
    with pytest.raises(ValueError):
        props.set("", "1")
