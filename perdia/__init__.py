"""
Core package for the Perdia monetization engine.

The engine decides which degree programs an article promotes, renders them as
publisher shortcodes, and checks the finished article against the
monetization business rules.
"""

from importlib import metadata


def get_version() -> str:
    """Return the installed project version."""
    try:
        return metadata.version("perdia")
    except metadata.PackageNotFoundError:
        return "0.0.0"


__all__ = ["get_version"]
