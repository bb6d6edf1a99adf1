"""
models/realm.py
---------------
Realm ORM model: a policy scope grouping users and customers.
"""

from typing import Optional

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from licensing.db.base import Base, CreatedMixin
from licensing.models.links import realm_customer, user_realm


class Realm(Base, CreatedMixin):
    __tablename__ = "realms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    policy: Mapped[Optional[str]] = mapped_column(String(1024))
    inactive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    users: Mapped[list["User"]] = relationship(  # noqa: F821
        "User", secondary=user_realm, back_populates="realms"
    )
    customers: Mapped[list["Customer"]] = relationship(  # noqa: F821
        "Customer", secondary=realm_customer, back_populates="realms"
    )

    def __repr__(self) -> str:
        return f"<Realm id={self.id} name={self.name}>"
