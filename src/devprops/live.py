"""Live device properties, read with ``getprop`` and written with ``setprop``."""

from __future__ import annotations

import logging
import shlex
from typing import Dict, Optional

from .channels import CommandChannel
from .exceptions import PropertyParseError
from .lines import parse_getprop_line
from .store import PropertyStore, check_key

log = logging.getLogger(__name__)

LIST_COMMAND = "getprop 2> /dev/null"
SET_COMMAND = "setprop {name} {value} 2> /dev/null"


class LiveProperties(PropertyStore):
    """Front-end for the device wide property table.

    Example::

        props = LiveProperties(ShellCommandChannel(["adb", "shell"]))
        if not props.exists("debug.my.flag"):
            props.set("debug.my.flag", "1")
    """

    def __init__(self, channel: CommandChannel) -> None:
        super().__init__()
        self.channel = channel

    def _populate(self) -> Optional[Dict[str, str]]:
        result = self.channel.run(LIST_COMMAND)
        lines = result.trimmed()
        if not result.succeeded or not lines:
            return None
        entries: Dict[str, str] = {}
        for line in lines:
            try:
                key, value = parse_getprop_line(line)
            except PropertyParseError as exc:
                log.warning("Skipping line: %s", exc)
                continue
            entries[key] = value
        return entries

    def set(self, name: str, value: str) -> bool:
        check_key(name)
        command = SET_COMMAND.format(name=shlex.quote(name), value=shlex.quote(value))
        with self._lock:
            result = self.channel.run(command)
            if result.succeeded:
                self._commit(name, value)
            else:
                log.warning("setprop %s failed", name)
            return result.succeeded
