"""Instance context and the on-disk state record shared by create and destroy."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from dropletdriver.errors import StateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstanceContext:
    """Logical test instance the driver works for."""

    name: str
    platform: str = ""
    logger: logging.Logger | None = None


def default_state_path(instance_name):
    return Path(".kitchen") / f"{instance_name}.json"


def load_state(path):
    """Read a state file. A missing file is an empty state.

    Raises:
        StateError: the file is not a JSON object.
    """
    path = Path(path)
    if not path.exists():
        return {}
    try:
        state = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise StateError(f"State file {path} is not valid JSON: {e}") from e
    if not isinstance(state, dict):
        raise StateError(f"State file {path} must contain a JSON object.")
    return state


def save_state(path, state):
    """Write *state* as JSON, replacing the file atomically.

    An empty state removes the file.
    """
    path = Path(path)
    if not state:
        if path.exists():
            path.unlink()
            logger.debug(f"Removed empty state file {path}")
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(dict(state), f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(tmp, path)
    except BaseException:
        os.unlink(tmp)
        raise
