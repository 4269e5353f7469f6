"""JSON schemas shipped as package data."""

from __future__ import annotations

import json
from functools import cache
from importlib.resources import files
from typing import Any


def _filename(name: str) -> str:
    return name if name.endswith(".schema.json") else f"{name}.schema.json"


@cache
def load_schema(name: str) -> dict[str, Any]:
    """Load a schema by canonical name (with or without ``.schema.json``).

    Raises:
        KeyError: If no such schema is packaged
    """
    resource = files(__name__) / _filename(name)
    if not resource.is_file():
        raise KeyError(f"Schema '{name}' not found in package data")
    return json.loads(resource.read_text(encoding="utf-8"))
