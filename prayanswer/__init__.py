"""PrayAnswer prayer journal core."""

from .version import __version__

__all__ = ["__version__"]
