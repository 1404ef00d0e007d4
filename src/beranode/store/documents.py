"""
Atomic JSON document IO.

Every on-disk document (the node/network configuration and both genesis
artifacts) is written through a temporary file in the destination directory
followed by a rename. A reader therefore sees either the previous complete
document or the new complete document, never a partial one, even if the
process is interrupted between pipeline steps.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

from beranode.exceptions import CorruptOutputError, LoadError

logger = logging.getLogger(__name__)


def read_json(path: Path | str) -> Any:
    """
    Read and parse a JSON document.

    Raises:
        LoadError: If the file does not exist or is not valid JSON.
    """
    path = Path(path)
    if not path.is_file():
        raise LoadError(path, "file not found")
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise LoadError(path, f"invalid JSON ({e})") from e


def render_json(data: Any) -> str:
    """Serialize a document tree with the canonical pretty-printed layout."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_json_atomic(path: Path | str, data: Any) -> Path:
    """
    Serialize `data` and atomically replace `path` with it.

    The serialized text is parsed back before the rename. A document that
    does not survive the round trip is discarded and the destination is left
    untouched.

    Raises:
        CorruptOutputError: If the serialized text is not valid JSON.
    """
    path = Path(path)
    text = render_json(data)
    write_text_atomic(path, text, verify_json=True)
    return path


def write_text_atomic(path: Path | str, text: str, *, verify_json: bool = False) -> Path:
    """
    Atomically replace `path` with `text`.

    Args:
        path: Destination file. Its parent directory is created if missing.
        text: Full file contents.
        verify_json: Re-parse the temporary file as JSON before the rename.

    Raises:
        CorruptOutputError: If `verify_json` is set and the text is not JSON.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)

        if verify_json:
            try:
                with tmp_path.open(encoding="utf-8") as f:
                    json.load(f)
            except json.JSONDecodeError as e:
                raise CorruptOutputError(path, str(e)) from e

        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise

    logger.debug(f"Wrote {path}")
    return path


def update_json(path: Path | str, mutate: Callable[[Any], Any]) -> Any:
    """
    Read a JSON document, apply `mutate`, and atomically write the result.

    `mutate` receives the parsed document and returns the new document
    (usually the same object, modified in place).

    Returns:
        The document that was written.
    """
    document = read_json(path)
    updated = mutate(document)
    write_json_atomic(path, updated)
    return updated
