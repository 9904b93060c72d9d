"""
Core interfaces - Protocols for external collaborators.
"""

from .storage import Storage

__all__ = ["Storage"]
