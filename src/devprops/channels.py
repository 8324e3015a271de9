"""Collaborators the property stores talk to: a command runner and a file."""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .lines import COMMENT_MARKER, is_comment

log = logging.getLogger(__name__)


@dataclass
class CommandResult:
    succeeded: bool
    lines: List[str] = field(default_factory=list)

    def trimmed(self) -> List[str]:
        """Output lines stripped of surrounding whitespace, blanks removed."""
        return [line.strip() for line in self.lines if line.strip()]


class CommandChannel(ABC):
    @abstractmethod
    def run(self, command: str) -> CommandResult:  # pragma: no cover - interface
        raise NotImplementedError


class FileChannel(ABC):
    @abstractmethod
    def exists(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def read_all(self) -> Optional[List[str]]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def write_all(self, lines: Sequence[str]) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def append_line(self, line: str) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def read_filtered(self, exclude_marker: str = COMMENT_MARKER) -> Optional[List[str]]:
        lines = self.read_all()
        if lines is None:
            return None
        return [line for line in lines if not is_comment(line, exclude_marker)]


class ShellCommandChannel(CommandChannel):
    """Run commands through a subprocess, e.g. ``adb shell`` or a local ``sh -c``."""

    def __init__(self, prefix: Iterable[str] = ("adb", "shell"), use_su: bool = False, timeout: float = 30.0) -> None:
        self.prefix = list(prefix)
        self.use_su = use_su
        self.timeout = timeout

    def build_argv(self, command: str) -> List[str]:
        if self.use_su:
            command = "su -c " + shlex.quote(command)
        return [*self.prefix, command]

    def run(self, command: str) -> CommandResult:
        argv = self.build_argv(command)
        log.debug("Running %s", argv)
        try:
            proc = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            log.warning("Command %r failed to run: %s", command, exc)
            return CommandResult(False)
        if proc.returncode != 0:
            log.warning("Command %r exited with %d: %s", command, proc.returncode, proc.stderr.strip())
        return CommandResult(proc.returncode == 0, proc.stdout.splitlines())


class LocalFileChannel(FileChannel):
    """A UTF-8 text file on the local filesystem.

    Lines are split on ``\\n`` only and the file's line ending (``\\n`` or
    ``\\r\\n``) is remembered from the last read, so a rewrite leaves every
    untouched line byte-for-byte as it was. Writes go to the symlink target.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.newline: Optional[str] = None

    def exists(self) -> bool:
        return self.path.is_file()

    def read_all(self) -> Optional[List[str]]:
        try:
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("Cannot read %s: %s", self.path, exc)
            return None
        lines = text.split("\n")
        if lines[-1] == "":
            lines.pop()
        self.newline = "\r\n" if "\r\n" in text else "\n"
        return [line[:-1] if line.endswith("\r") else line for line in lines]

    def _newline(self) -> str:
        if self.newline is None:
            try:
                with open(self.path, "rb") as f:
                    self.newline = "\r\n" if b"\r\n" in f.read() else "\n"
            except OSError:
                self.newline = "\n"
        return self.newline

    def write_all(self, lines: Sequence[str]) -> bool:
        newline = self._newline()
        data = "".join(line + newline for line in lines)
        target = self.path.resolve()
        tmp_name: Optional[str] = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(data)
            if target.exists():
                shutil.copymode(target, tmp_name)
            os.replace(tmp_name, target)
        except OSError as exc:
            log.warning("Cannot write %s: %s", self.path, exc)
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False
        return True

    def append_line(self, line: str) -> bool:
        newline = self._newline().encode("ascii")
        try:
            with open(self.path, "a+b") as f:
                f.seek(0, os.SEEK_END)
                prefix = b""
                if f.tell() > 0:
                    f.seek(-1, os.SEEK_END)
                    if f.read(1) != b"\n":
                        prefix = newline
                f.write(prefix + line.encode("utf-8") + newline)
        except OSError as exc:
            log.warning("Cannot append to %s: %s", self.path, exc)
            return False
        return True
