"""
models/__init__.py
------------------
Re-export all models so create_tables.py (and Alembic, if added) can import
Base and discover all tables via a single import:

    from licensing.models import Base
"""

from licensing.db.base import Base
from licensing.models.customer import Customer
from licensing.models.job import Job
from licensing.models.realm import Realm
from licensing.models.user import DataLocation, User

__all__ = ["Base", "Customer", "DataLocation", "Job", "Realm", "User"]
