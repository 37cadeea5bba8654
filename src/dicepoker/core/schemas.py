"""Schema loading utility."""

import json
from functools import lru_cache
from pathlib import Path

SNAPSHOT_SCHEMA_PATH = Path(__file__).parent / "snapshot.schema.json"


def load_schema(path: Path) -> dict:
    """Load a JSON Schema file and return as dict."""
    with open(path) as f:
        return json.load(f)


@lru_cache(maxsize=1)
def snapshot_schema() -> dict:
    """The room snapshot schema shipped with the package."""
    return load_schema(SNAPSHOT_SCHEMA_PATH)
