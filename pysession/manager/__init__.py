"""
Session manager module for driver resolution.
"""

from pysession.manager.manager import SessionManager, HandlerFactory

__all__ = [
    "SessionManager",
    "HandlerFactory"
]
