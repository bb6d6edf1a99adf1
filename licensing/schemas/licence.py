"""
schemas/licence.py
------------------
The licence snapshot returned by every authentication call.

LicenceFull is a denormalised view: customers carry their jobs, and each
job carries both its declared vartree names (from the job row) and the
vartree names actually discovered in the customer's object store. The
discovered names and is_accessible are filled in place by the storage probe
after the customer/job tree is assembled.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LicenceRealm(BaseModel):
    id: str
    name: str
    inactive: bool = False
    policy: Optional[str] = None


class LicenceJob(BaseModel):
    id: str
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    info: Optional[str] = None
    logo: Optional[str] = None
    sequence: Optional[int] = None
    url: Optional[str] = None
    vartree_names: list[str] = Field(default_factory=list)
    real_cloud_vartree_names: list[str] = Field(default_factory=list)
    is_accessible: Optional[bool] = None


class LicenceCustomer(BaseModel):
    id: str
    name: str
    display_name: Optional[str] = None
    comment: Optional[str] = None
    storage_key: Optional[str] = None
    info: Optional[str] = None
    logo: Optional[str] = None
    sign_in_logo: Optional[str] = None
    sign_in_note: Optional[str] = None
    sequence: Optional[int] = None
    jobs: list[LicenceJob] = Field(default_factory=list)


class LicenceFull(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    comment: Optional[str] = None
    entity_id: Optional[str] = None
    filter: Optional[str] = None
    data_location: Optional[str] = None
    created: datetime
    last_login: datetime
    login_count: Optional[int] = None
    login_max: Optional[int] = None
    login_macs: Optional[str] = None
    version: Optional[str] = None
    min_version: Optional[str] = None
    sequence: Optional[int] = None
    sunset: Optional[datetime] = None
    product_key: Optional[str] = None
    roles: list[str] = Field(default_factory=list)
    cloud_customer_names: list[str] = Field(default_factory=list)
    cloud_job_names: list[str] = Field(default_factory=list)
    vartree_names: list[str] = Field(default_factory=list)
    dashboard_names: list[str] = Field(default_factory=list)
    realms: list[LicenceRealm] = Field(default_factory=list)
    customers: list[LicenceCustomer] = Field(default_factory=list)
