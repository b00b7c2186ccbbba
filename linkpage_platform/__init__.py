"""
linkpage_platform package initializer.
"""

from . import analytics
from . import storage

__all__ = ["analytics", "storage"]
