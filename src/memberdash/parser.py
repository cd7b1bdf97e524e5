from __future__ import annotations

import re
import unicodedata

from memberdash.errors import InvalidParameter

COMMAND_RE = re.compile(r"^/?\s*(dash|growth|flow|levels|top|h)(?:\s+(\S+))?\s*$")
NO_ARG_COMMANDS = {"dash", "levels", "h"}


def parse_command(raw_text: str) -> tuple[str, str | None] | None:
    # Full-width slashes/digits and zero-width characters come from some clients.
    normalized = unicodedata.normalize("NFKC", raw_text or "")
    normalized = (
        normalized.replace("\u200b", "")
        .replace("\u200c", "")
        .replace("\u200d", "")
        .replace("\ufeff", "")
        .strip()
        .lower()
    )
    m = COMMAND_RE.match(normalized)
    if m is None:
        return None
    command, arg = m.group(1), m.group(2)
    if arg is not None and command in NO_ARG_COMMANDS:
        return None
    return command, arg


def parse_count(arg: str | None, default: int, name: str) -> int:
    if arg is None:
        return default
    try:
        return int(arg)
    except ValueError as exc:
        raise InvalidParameter(name, arg) from exc
