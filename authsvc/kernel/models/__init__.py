"""
Kernel data models.

Importing this package registers every table on Base.metadata.
"""

from authsvc.kernel.models.base import Base, CreatedAtMixin, generate_uuid
from authsvc.kernel.models.account import AccountRecord

__all__ = [
    "Base",
    "CreatedAtMixin",
    "generate_uuid",
    "AccountRecord",
]
