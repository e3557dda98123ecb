"""Single source of truth for the application version.

Reads the version from pyproject.toml using tomllib (stdlib, Python 3.11+),
or from the installed distribution metadata when the source tree is absent.
"""

import tomllib
from importlib import metadata
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def get_version() -> str:
    """Read and return the version string."""
    pyproject_path = _PROJECT_ROOT / "pyproject.toml"
    if not pyproject_path.is_file():
        return metadata.version("prayanswer")
    with open(pyproject_path, "rb") as f:
        data = tomllib.load(f)
    return data["project"]["version"]


__version__: str = get_version()
