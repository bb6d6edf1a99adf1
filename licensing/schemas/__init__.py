"""
schemas/__init__.py
-------------------
The Read snapshots refer to each other by forward reference
(UserRead.customers, CustomerRead.users, ...). Importing this package
resolves those references once every schema module is loaded.
"""

from licensing.schemas.common import UpsertResult, UpsertStatus
from licensing.schemas.customer import CustomerPick, CustomerRead, CustomerUpsert
from licensing.schemas.job import JobPick, JobRead, JobUpsert
from licensing.schemas.licence import (
    LicenceCustomer,
    LicenceFull,
    LicenceJob,
    LicenceRealm,
)
from licensing.schemas.realm import RealmRead, RealmUpsert
from licensing.schemas.user import SetPassword, UserPick, UserRead, UserUpsert

_namespace = {
    "UserRead": UserRead,
    "CustomerRead": CustomerRead,
    "JobRead": JobRead,
    "RealmRead": RealmRead,
}
for _model in _namespace.values():
    _model.model_rebuild(_types_namespace=_namespace)

__all__ = [
    "CustomerPick",
    "CustomerRead",
    "CustomerUpsert",
    "JobPick",
    "JobRead",
    "JobUpsert",
    "LicenceCustomer",
    "LicenceFull",
    "LicenceJob",
    "LicenceRealm",
    "RealmRead",
    "RealmUpsert",
    "SetPassword",
    "UpsertResult",
    "UpsertStatus",
    "UserPick",
    "UserRead",
    "UserUpsert",
]
