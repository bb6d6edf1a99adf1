"""
models/links.py
---------------
Association tables for the many-to-many licensing relationships.

Job → Customer is a plain foreign key on Job and has no table here.
"""

from sqlalchemy import Column, ForeignKey, Integer, Table

from licensing.db.base import Base

user_customer = Table(
    "user_customer",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True),
)

user_job = Table(
    "user_job",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("job_id", Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True),
)

user_realm = Table(
    "user_realm",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("realm_id", Integer, ForeignKey("realms.id", ondelete="CASCADE"), primary_key=True),
)

realm_customer = Table(
    "realm_customer",
    Base.metadata,
    Column("realm_id", Integer, ForeignKey("realms.id", ondelete="CASCADE"), primary_key=True),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True),
)
