"""
models/job.py
-------------
Job ORM model.

A job belongs to at most one customer. The customer link is fixed when the
job is created; see services.relationships for the policy.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from licensing.db.base import Base, CreatedMixin
from licensing.models.links import user_job


class Job(Base, CreatedMixin):
    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(128))
    description: Mapped[Optional[str]] = mapped_column(String(2000))
    cases: Mapped[Optional[int]] = mapped_column(Integer)
    logo: Mapped[Optional[str]] = mapped_column(String(256))
    info: Mapped[Optional[str]] = mapped_column(String(1024))
    url: Mapped[Optional[str]] = mapped_column(String(256))
    vartree_names: Mapped[Optional[str]] = mapped_column(String(1024))
    data_location: Mapped[Optional[int]] = mapped_column(Integer)
    sequence: Mapped[Optional[int]] = mapped_column(Integer)
    inactive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_mobile: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    dashboards_first: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_update: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    customer_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("customers.id"),
        nullable=True,
        index=True,
    )

    # Relationships
    customer: Mapped[Optional["Customer"]] = relationship(  # noqa: F821
        "Customer", back_populates="jobs"
    )
    users: Mapped[list["User"]] = relationship(  # noqa: F821
        "User", secondary=user_job, back_populates="jobs"
    )

    def __repr__(self) -> str:
        return f"<Job id={self.id} name={self.name} customer_id={self.customer_id}>"
