"""Property files such as ``/system/build.prop``."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from .channels import FileChannel
from .lines import COMMENT_MARKER, format_property, parse_property_line, remove_lines, rewrite_lines
from .store import PropertyStore, check_key

log = logging.getLogger(__name__)


class FileProperties(PropertyStore):
    """``key=value`` property file with line preserving edits.

    Known keys (those seen in the last load or written through this instance)
    are edited in place; unknown keys are appended to the end of the file.
    """

    def __init__(self, file: FileChannel, rewrite_first_only: bool = False) -> None:
        super().__init__()
        self.file = file
        self.rewrite_first_only = rewrite_first_only

    def _populate(self) -> Optional[Dict[str, str]]:
        if not self.file.exists():
            return None
        lines = self.file.read_filtered(COMMENT_MARKER)
        if lines is None:
            return None
        entries: Dict[str, str] = {}
        for line in lines:
            parsed = parse_property_line(line)
            if parsed is not None:
                entries[parsed[0]] = parsed[1]
        return entries

    def set(self, name: str, value: str) -> bool:
        check_key(name)
        with self._lock:
            if name in self._cache:
                lines = self.file.read_all()
                if lines is None:
                    return False
                status = self.file.write_all(rewrite_lines(lines, name, value, first_only=self.rewrite_first_only))
            else:
                status = self.file.append_line(format_property(name, value))

            if status:
                self._commit(name, value)
            else:
                log.warning("Writing %s failed", name)
            return status

    def remove(self, name: str) -> bool:
        check_key(name)
        with self._lock:
            if name not in self._cache:
                return False
            lines = self.file.read_all()
            if lines is None:
                return False
            status = self.file.write_all(remove_lines(lines, name))
            if status:
                self._cache.discard(name)
            return status
