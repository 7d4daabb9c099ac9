from __future__ import annotations

from importlib import metadata


def tool_version() -> str:
    """
    Version of the installed distribution.
    Has no dependencies on the rest of the package.
    """
    try:
        return metadata.version("smartscript")
    except metadata.PackageNotFoundError:
        return "0.0.0"

__all__ = ["tool_version"]
