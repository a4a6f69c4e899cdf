"""Database package exports.

Importing ``models`` registers every ORM class on ``Base.metadata`` so that
``create_all`` and Alembic both see the full schema.
"""

from .base import Base
from . import models  # noqa: F401

__all__ = ["Base"]
