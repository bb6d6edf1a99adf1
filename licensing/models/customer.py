"""
models/customer.py
------------------
Customer ORM model.

storage_key is the opaque connection descriptor for the customer's object
store. Each of the customer's jobs has a container named after the job.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from licensing.db.base import Base, CreatedMixin
from licensing.models.links import realm_customer, user_customer


class Customer(Base, CreatedMixin):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(128))
    psw: Mapped[Optional[str]] = mapped_column(String(32))
    storage_key: Mapped[Optional[str]] = mapped_column(String(1024))
    cloud_customer_names: Mapped[Optional[str]] = mapped_column(String(256))
    data_location: Mapped[Optional[int]] = mapped_column(Integer)
    sequence: Mapped[Optional[int]] = mapped_column(Integer)
    corporation: Mapped[Optional[str]] = mapped_column(String(64))
    comment: Mapped[Optional[str]] = mapped_column(String(2000))
    info: Mapped[Optional[str]] = mapped_column(String(1024))
    logo: Mapped[Optional[str]] = mapped_column(String(256))
    sign_in_logo: Mapped[Optional[str]] = mapped_column(String(256))
    sign_in_note: Mapped[Optional[str]] = mapped_column(String(1024))
    credits: Mapped[Optional[int]] = mapped_column(Integer)
    spent: Mapped[Optional[int]] = mapped_column(Integer)
    sunset: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    max_jobs: Mapped[Optional[int]] = mapped_column(Integer)
    inactive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    jobs: Mapped[list["Job"]] = relationship(  # noqa: F821
        "Job", back_populates="customer"
    )
    users: Mapped[list["User"]] = relationship(  # noqa: F821
        "User", secondary=user_customer, back_populates="customers"
    )
    realms: Mapped[list["Realm"]] = relationship(  # noqa: F821
        "Realm", secondary=realm_customer, back_populates="customers"
    )

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name}>"
