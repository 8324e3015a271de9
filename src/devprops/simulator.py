from __future__ import annotations

import json
import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .channels import CommandChannel, CommandResult

log = logging.getLogger(__name__)


# Reference device answered when no overlay is given
DEFAULT_PROPS = {
    "ro.product.brand": "google",
    "ro.product.model": "Pixel 7",
    "ro.build.id": "UQ1A.240205.004",
    "ro.build.version.sdk": "34",
}


@dataclass
class SimulatedProps:
    data: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PROPS))

    @classmethod
    def load(cls, overlay: Optional[Path]) -> "SimulatedProps":
        """Default properties, updated from a JSON object file when one exists."""
        props = cls()
        if overlay is None or not overlay.is_file():
            return props
        extra = json.loads(overlay.read_text(encoding="utf-8"))
        if not isinstance(extra, dict):
            log.warning("Ignoring %s: expected a JSON object", overlay)
            return props
        props.data.update((str(k), str(v)) for k, v in extra.items())
        return props

    def get(self, key: str) -> str:
        return self.data.get(key, "")

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def dump(self) -> List[str]:
        return [f"[{k}]: [{v}]" for k, v in sorted(self.data.items())]


def _strip_stderr_redirect(argv: List[str]) -> List[str]:
    # Drop "2> target" and "2>target"; stderr is never returned anyway
    out: List[str] = []
    i = 0
    while i < len(argv):
        tok = argv[i]
        if tok == "2>":
            i += 2
        elif tok.startswith("2>"):
            i += 1
        else:
            out.append(tok)
            i += 1
    return out


class SimulatedShell(CommandChannel):
    """In-process command channel answering ``getprop`` and ``setprop``."""

    def __init__(self, props: Optional[SimulatedProps] = None) -> None:
        self.props = props if props is not None else SimulatedProps.load(None)
        self.history: List[str] = []

    def run(self, command: str) -> CommandResult:
        self.history.append(command)
        try:
            argv = _strip_stderr_redirect(shlex.split(command, posix=True))
        except ValueError:
            return CommandResult(False)
        if not argv:
            return CommandResult(True)

        cmd, args = argv[0], argv[1:]
        if cmd == "getprop":
            if not args:
                return CommandResult(True, self.props.dump())
            return CommandResult(True, [self.props.get(args[0])])
        if cmd == "setprop":
            if len(args) != 2:
                return CommandResult(False, ["setprop: need 2 arguments"])
            self.props.set(args[0], args[1])
            return CommandResult(True)
        log.debug("sh: %s: not found", cmd)
        return CommandResult(False)
