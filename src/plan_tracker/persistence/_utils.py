"""Shared persistence utilities."""

import json
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote


def encode_filename(name: str) -> str:
    """Encode a plan name for use as a filename.

    Percent-encodes every character that isn't alphanumeric, hyphen,
    underscore or dot, so the original name can be recovered with
    decode_filename().
    """
    encoded = quote(name, safe="-_.")
    # A leading dot would hide the file and could collide with "." or ".."
    if encoded.startswith("."):
        encoded = "%2E" + encoded[1:]
    return encoded


def decode_filename(stem: str) -> str:
    """Recover a plan name from an encoded filename stem."""
    return unquote(stem)


def atomic_write_json(path: Path, data: Any, indent: int = 2) -> None:
    """Write JSON data to a file atomically.

    Writes to a temporary file first, then renames to the target path.
    This prevents data corruption if the process crashes mid-write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp_path.write_text(json.dumps(data, indent=indent))
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
