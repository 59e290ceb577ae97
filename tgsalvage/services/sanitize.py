"""Filename sanitizing for untrusted names coming from Telegram."""
import os
import time

MAX_FILENAME_LENGTH = 220
EMPTY_PLACEHOLDER = "empty_filename"

RESERVED_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)

# Path separators and characters Windows refuses; control chars are dropped.
_TRANSLATION = {ord(c): "_" for c in '/\\:*?<>|'}
_TRANSLATION[ord('"')] = "'"
_TRANSLATION.update({code: None for code in range(0x20)})
_TRANSLATION[0x7F] = None


def sanitize(raw: str) -> str:
    """Turn ``raw`` into a name that is safe to create inside a directory.

    Never fails and never returns an empty string. The result has no path
    separators or ASCII control characters, is at most
    ``MAX_FILENAME_LENGTH`` characters, and is never a bare Windows device
    name such as ``CON`` or ``LPT1``.
    """
    if not raw:
        return EMPTY_PLACEHOLDER

    name = raw.translate(_TRANSLATION)
    # Repeat until stable: "abc ." needs a second pass after the dot goes.
    while True:
        trimmed = name.strip().strip(".")
        if trimmed == name:
            break
        name = trimmed
    name = _truncate(name)

    if name in ("", ".", ".."):
        return f"sanitized_file_{time.time_ns()}"

    # Checked after truncation so a shortened name is validated too.
    stem, _ = os.path.splitext(name)
    if stem.upper() in RESERVED_NAMES:
        name = ("_" + name)[:MAX_FILENAME_LENGTH]
    return name


def _truncate(name: str) -> str:
    """Shorten to the length limit, keeping the extension when there is one."""
    if len(name) <= MAX_FILENAME_LENGTH:
        return name
    stem, ext = os.path.splitext(name)
    if len(ext) < MAX_FILENAME_LENGTH:
        name = stem[:MAX_FILENAME_LENGTH - len(ext)] + ext
    # A hard cut can end on a space or dot.
    return name[:MAX_FILENAME_LENGTH].rstrip(" .")
