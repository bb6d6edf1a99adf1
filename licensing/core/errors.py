"""
core/errors.py
--------------
Error taxonomy raised by the licensing provider.

Every error carries the entity kind and the identifier or name the caller
supplied, so a caller can log and act without re-deriving context.

Not errors:
  - Upsert of an unknown id returns UpsertStatus.NOT_FOUND.
  - Relationship mutation of a missing parent returns None.
"""

import re
from enum import Enum
from typing import Optional

_DECIMAL_ID = re.compile(r"-?[0-9]+")


class LicensingErrorType(str, Enum):
    IDENTITY_NOT_FOUND = "IdentityNotFound"
    IDENTITY_BAD_FORMAT = "IdentityBadFormat"
    PASSWORD_INCORRECT = "PasswordIncorrect"
    POLICY_VIOLATION = "PolicyViolation"
    EXTERNAL_STORAGE_UNAVAILABLE = "ExternalStorageUnavailable"
    NOT_IMPLEMENTED = "NotImplemented"
    NAME_CONFLICT = "NameConflict"
    IDENTIFIER_EXHAUSTED = "IdentifierExhausted"


class LicensingError(Exception):
    """Base error for the licensing provider."""

    error_type: LicensingErrorType

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[str] = None,
        identifier: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.identifier = identifier

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} type={self.error_type.value} "
            f"kind={self.kind} identifier={self.identifier!r}>"
        )


class IdentityNotFoundError(LicensingError):
    """Lookup by id or name found no row."""

    error_type = LicensingErrorType.IDENTITY_NOT_FOUND


class IdentityBadFormatError(LicensingError):
    """An external identifier string is not a decimal integer."""

    error_type = LicensingErrorType.IDENTITY_BAD_FORMAT


class PasswordIncorrectError(LicensingError):
    error_type = LicensingErrorType.PASSWORD_INCORRECT


class PolicyViolationError(LicensingError):
    """Attempt to mutate a relationship that is fixed at creation."""

    error_type = LicensingErrorType.POLICY_VIOLATION


class ExternalStorageUnavailableError(LicensingError):
    """Object storage could not be reached with the supplied storage key."""

    error_type = LicensingErrorType.EXTERNAL_STORAGE_UNAVAILABLE


class NotSupportedError(LicensingError):
    """Operation deliberately not supported by this provider."""

    error_type = LicensingErrorType.NOT_IMPLEMENTED


class NameConflictError(LicensingError):
    error_type = LicensingErrorType.NAME_CONFLICT


class IdentifierExhaustedError(LicensingError):
    """No unused identifier could be drawn from the kind's range."""

    error_type = LicensingErrorType.IDENTIFIER_EXHAUSTED


def parse_id(value: str, kind: str) -> int:
    """
    Convert an external identifier string to the internal integer id.
    Raises IdentityBadFormatError for anything that is not a decimal integer.
    """
    text = "" if value is None else str(value).strip()
    if not _DECIMAL_ID.fullmatch(text):
        raise IdentityBadFormatError(
            f"{kind} Id '{value}' is not in the correct format",
            kind=kind,
            identifier=None if value is None else str(value),
        )
    return int(text)
