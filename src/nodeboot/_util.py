"""Shared utilities for nodeboot: debug logging and YAML serialization."""

import os
import sys
from typing import Any

import yaml
from pydantic import BaseModel

_DEBUG = bool(os.environ.get("NODEBOOT_DEBUG", ""))


def debug(label: str, msg: str) -> None:
    """Print a debug message to stderr when NODEBOOT_DEBUG is set."""
    if _DEBUG:
        print(f"[nodeboot] {label}: {msg}", file=sys.stderr)


def to_plain(obj: Any) -> Any:
    """Reduce pydantic models to JSON-compatible data; leave everything else alone."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", exclude_none=True)
    return obj


def to_yaml(obj: Any) -> str:
    """Serialize *obj* as a block-style YAML document with sorted keys.

    Strings and bytes are treated as already serialized and returned verbatim.
    """
    if isinstance(obj, bytes):
        return obj.decode("utf-8")
    if isinstance(obj, str):
        return obj
    return yaml.safe_dump(to_plain(obj), default_flow_style=False, sort_keys=True)
