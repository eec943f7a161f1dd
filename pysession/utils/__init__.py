"""
Utility helpers shared across the session package.
"""

from pysession.utils.logging_config import setup_logging
from pysession.utils.dot_access import (
    get_path, set_path, delete_path, define_member, MISSING
)

__all__ = [
    "setup_logging",
    "get_path",
    "set_path",
    "delete_path",
    "define_member",
    "MISSING"
]
