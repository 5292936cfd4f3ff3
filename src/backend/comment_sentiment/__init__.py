"""
Batch sentiment classification and aggregation for short social-media comments.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("comment-sentiment")
except PackageNotFoundError:  # pragma: no cover - package metadata optional
    __version__ = "0.0.0"

__all__ = ["__version__"]
