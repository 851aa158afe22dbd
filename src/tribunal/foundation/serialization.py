"""Safe JSON serialization utilities.

Parsing helpers raise ValueError with clear messages; writers create parent
directories and replace files atomically.
"""

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*\})\s*```", re.DOTALL)


def safe_json_loads(data: str) -> dict[str, Any] | list[Any]:
    """Parse JSON with clear error messages.

    Raises:
        ValueError: If JSON is invalid (with clear message)

    Example:
        >>> safe_json_loads('{"key": "value"}')
        {'key': 'value'}
    """
    try:
        return json.loads(data)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e.msg} at line {e.lineno}, column {e.colno}") from e


def extract_json_object(text: str) -> dict[str, Any]:
    """Pull a JSON object out of free-form model output.

    Tries a fenced ```json block first, then the outermost braces.

    Raises:
        ValueError: If no JSON object can be recovered
    """
    candidates = []
    match = _FENCED_JSON.search(text)
    if match:
        candidates.append(match.group(1))
    start = text.find("{")
    end = text.rfind("}") + 1
    if start >= 0 and end > start:
        candidates.append(text[start:end])

    last_error: ValueError | None = None
    for candidate in candidates:
        try:
            data = safe_json_loads(candidate)
        except ValueError as e:
            last_error = e
            continue
        if isinstance(data, dict):
            return data
        last_error = ValueError("JSON payload is not an object")

    if last_error is not None:
        raise last_error
    raise ValueError("No JSON object found in response")


def atomic_write_text(path: Path, content: str) -> Path:
    """Write text via temp file + rename so readers never see a partial file.

    Raises:
        OSError: If the directory cannot be created or the write fails
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(suffix=".tmp", prefix=path.stem + "_", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return path


def atomic_write_json(path: Path, obj: dict[str, Any] | list[Any], *, indent: int = 2) -> Path:
    """Serialize to JSON and write atomically."""
    return atomic_write_text(path, json.dumps(obj, indent=indent, default=str))
