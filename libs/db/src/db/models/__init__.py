"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the commission domain models used by ``commission_tracker``.
"""

from .commissions import Base, CmLine, CmTransaction

__all__ = [
    "Base",
    "CmLine",
    "CmTransaction",
]
