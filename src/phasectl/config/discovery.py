"""Config file discovery.

Walk-up finder locates phasectl.toml, similar to how git finds .git/.
Supports the PHASECTL_CONFIG env var and the --config CLI flag.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "phasectl.toml"
CONFIG_ENV_VAR = "PHASECTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for phasectl.toml.

    Returns the path to the config file, or None if not found.
    Checks PHASECTL_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


DEFAULT_CONFIG_TEMPLATE = """\
# phasectl configuration. Only overrides belong here; defaults are built in.

[store]
name = "{name}"

[timeline]
mvp_horizon_days = 90
short_horizon_days = 365
"""


def write_default_config(root: Path, name: str) -> Path:
    """Write a sparse ``phasectl.toml`` into *root* unless one exists.

    Returns the path of the (existing or new) config file.
    """
    path = root / CONFIG_FILENAME
    if not path.exists():
        path.write_text(DEFAULT_CONFIG_TEMPLATE.format(name=name), encoding="utf-8")
    return path
