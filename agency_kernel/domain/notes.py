"""
Timestamped audit notes appended to transaction and commission records.

Entries are ``[<ISO-8601 timestamp>] <message>`` separated by a blank
line.  Free text typed by users may sit between entries; only lines in
the timestamped form count as audit entries.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

ENTRY_SEPARATOR = "\n\n"

_ENTRY_RE = re.compile(r"^\[(?P<ts>[^\]]+)\] (?P<message>.+)$", re.MULTILINE)


@dataclass(frozen=True)
class NoteEntry:
    timestamp: datetime
    message: str


def format_entry(message: str, at: datetime) -> str:
    return f"[{at.isoformat()}] {message}"


def append_note(existing: str | None, message: str, at: datetime) -> str:
    """Return ``existing`` with a new timestamped entry appended."""
    entry = format_entry(message, at)
    if not existing:
        return entry
    return f"{existing}{ENTRY_SEPARATOR}{entry}"


def note_entries(notes: str | None) -> list[NoteEntry]:
    """Parse the timestamped entries out of a notes field, oldest first."""
    if not notes:
        return []
    entries = []
    for match in _ENTRY_RE.finditer(notes):
        try:
            ts = datetime.fromisoformat(match.group("ts"))
        except ValueError:
            continue
        entries.append(NoteEntry(timestamp=ts, message=match.group("message")))
    return entries
