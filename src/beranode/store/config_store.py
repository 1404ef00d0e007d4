"""
Flattened configuration store.

Loads an arbitrary JSON document into a single ordered mapping from
dot-notation key to string value:

    {"network": "devnet", "nodes": [{"role": "validator"}]}

becomes

    network = devnet
    nodes.0.role = validator

Only scalar leaves become entries. Objects and arrays contribute their
path segments (array positions as decimal indices) but are never values
themselves. Every value is stored as the string a JSON tool would print
for it, so booleans become "true"/"false" and null becomes "null".
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

from beranode.exceptions import EmptyError, LoadError, MissingKeyError

from .documents import read_json, update_json

logger = logging.getLogger(__name__)

NULL = "null"
"""Literal stored for JSON null. Treated as absent by lookups."""

NODE_PREFIX = "node"
"""Namespace for the fields of the currently selected node."""


def scalar_to_str(value: Any) -> str:
    """Render a JSON scalar the way it is stored in the flattened view."""
    if value is None:
        return NULL
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return json.dumps(value)


def flatten(document: Any, prefix: str = "") -> dict[str, str]:
    """
    Flatten every scalar leaf of a JSON tree into dot-notation keys.

    Traversal is depth-first in document order, so the resulting mapping
    order is stable for a given document.
    """
    entries: dict[str, str] = {}

    def _walk(node: Any, path: str) -> None:
        if isinstance(node, Mapping):
            for key, child in node.items():
                _walk(child, f"{path}.{key}" if path else str(key))
        elif isinstance(node, list):
            for index, child in enumerate(node):
                _walk(child, f"{path}.{index}" if path else str(index))
        elif path:
            entries[path] = scalar_to_str(node)

    _walk(document, prefix)
    return entries


class ConfigStore:
    """
    In-memory flattened view over a JSON configuration document.

    The store is the substrate every other component reads and writes.
    Lookups are O(1); iteration follows insertion order.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self.path: Path | None = None
        """Backing document of the last full load."""

    def load(self, path: Path | str) -> int:
        """
        Replace the store contents with the scalar leaves of a JSON file.

        Args:
            path: JSON configuration file.

        Returns:
            Number of entries loaded.

        Raises:
            LoadError: If the file is missing or not valid JSON.
            EmptyError: If the document contains no scalar leaves.
        """
        path = Path(path)
        entries = flatten(read_json(path))
        if not entries:
            logger.error(f"No configuration values loaded from: {path}")
            raise EmptyError(path)

        self._entries = entries
        self.path = path
        logger.info(f"Loaded {len(entries)} configuration values from: {path}")
        return len(entries)

    def load_node_scoped(self, path: Path | str, index: int) -> int:
        """
        Merge the scalar leaves of `nodes[index]` under the `node.` prefix.

        Prior state is kept. This makes the fields of the node being
        iterated addressable as `node.<field>` without reloading the whole
        document.

        Returns:
            Number of entries merged.

        Raises:
            LoadError: If the file is missing or not valid JSON.
            EmptyError: If the node does not exist or has no scalar leaves.
        """
        path = Path(path)
        document = read_json(path)

        nodes = document.get("nodes") if isinstance(document, Mapping) else None
        node: Any = None
        if isinstance(nodes, list) and 0 <= index < len(nodes):
            node = nodes[index]

        entries = flatten(node, NODE_PREFIX) if isinstance(node, Mapping) else {}
        if not entries:
            logger.error(f"Node {index} not found in config file: {path}")
            raise EmptyError(path, f"node {index} not found")

        self._entries.update(entries)
        logger.info(f"Loaded node {index} configuration ({len(entries)} values)")
        return len(entries)

    def get(self, key: str, default: str = "") -> str:
        """Return the value for `key`, or `default` if absent or null."""
        value = self._entries.get(key)
        if value is None or value == NULL:
            return default
        return value

    def get_node(self, key: str, default: str = "") -> str:
        """Shorthand for `get("node.<key>")`."""
        return self.get(f"{NODE_PREFIX}.{key}", default)

    def get_required(self, key: str) -> str:
        """
        Return the value for `key`.

        Raises:
            MissingKeyError: If the key is absent, empty or null.
        """
        value = self._entries.get(key)
        if not value or value == NULL:
            logger.error(f"Missing required config: {key}")
            raise MissingKeyError(key)
        return value

    def has(self, key: str) -> bool:
        """Check whether `key` holds a non-empty, non-null value."""
        value = self._entries.get(key)
        return bool(value) and value != NULL

    def set(self, key: str, value: str) -> None:
        """Upsert a value in memory. Existing keys keep their position."""
        self._entries[key] = value

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        self.path = None

    def write_fields(self, fields: Mapping[str, Any], path: Path | str | None = None) -> None:
        """
        Persist top-level fields into the backing JSON document.

        The document is rewritten through a temporary file and a rename.
        The written fields are then flattened into the in-memory view so
        that reads see the same values as the file.

        Args:
            fields: Top-level keys and JSON values to set.
            path: Document to update. Defaults to the last loaded file.

        Raises:
            LoadError: If there is no backing document.
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise LoadError("<unset>", "no configuration file has been loaded")

        def _apply(document: Any) -> Any:
            if not isinstance(document, dict):
                raise LoadError(target, "top-level JSON value is not an object")
            document.update(fields)
            return document

        update_json(target, _apply)

        for name, value in fields.items():
            # Drop stale leaves of a replaced subtree before re-flattening it.
            stale = [key for key in self._entries if key.startswith(f"{name}.")]
            for key in stale:
                del self._entries[key]
            if isinstance(value, (Mapping, list)):
                self._entries.pop(name, None)
                self._entries.update(flatten(value, name))
            else:
                self._entries[name] = scalar_to_str(value)

    def dump(self) -> list[str]:
        """Every entry as a `key=value` line, sorted by key."""
        return sorted(f"{key}={value}" for key, value in self._entries.items())

    def items(self) -> Iterator[tuple[str, str]]:
        """Iterate over (key, value) pairs in insertion order."""
        return iter(self._entries.items())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
