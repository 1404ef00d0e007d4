"""
Configuration storage.

The node/network description lives in a single JSON file. This package
exposes it two ways:

- A flattened, dot-notation key/value view for field lookups
- Atomic whole-document IO for structural updates
"""

from .config_store import ConfigStore, flatten, scalar_to_str
from .documents import (
    read_json,
    render_json,
    update_json,
    write_json_atomic,
    write_text_atomic,
)

__all__ = [
    "ConfigStore",
    "flatten",
    "read_json",
    "render_json",
    "scalar_to_str",
    "update_json",
    "write_json_atomic",
    "write_text_atomic",
]
