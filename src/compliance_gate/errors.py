"""Exception types raised by the compliance engine.

Ordinary compliance failures (under age, restricted zone, over the daily cap)
are never raised; they come back as reason codes on a verdict. Exceptions are
reserved for malformed input and for infrastructure faults.
"""

from __future__ import annotations


class ComplianceError(Exception):
    """Base class for every error raised by the engine."""


class InvalidInput(ComplianceError, ValueError):
    """Input rejected before any check runs."""


class InvalidDate(InvalidInput):
    pass


class InvalidGeometry(InvalidInput):
    pass


class InvalidCoordinate(InvalidInput):
    pass


class LedgerUnavailable(ComplianceError, ConnectionError):
    """The volume ledger store could not be read or written."""


class ZoneRegistryUnavailable(ComplianceError, ConnectionError):
    """No zone reference data could be loaded."""


class KycProviderUnavailable(ComplianceError, ConnectionError):
    """No KYC provider is configured, or it could not be reached."""


class IdentityNotVerified(ComplianceError, LookupError):
    """No stored verification record (with a verified birth date) exists for the identity."""

    def __init__(self, identity_id: str) -> None:
        super().__init__(f"Identity '{identity_id}' has not completed age verification")
        self.identity_id = identity_id


class ReservationConflict(ComplianceError):
    """The ledger total moved between check and commit."""

    def __init__(self, identity_id: str, day, expected_ml: int, actual_ml: int) -> None:
        super().__init__(
            f"Ledger for '{identity_id}' on {day} changed from {expected_ml}ml to {actual_ml}ml "
            "before the reservation was committed."
        )
        self.identity_id = identity_id
        self.day = day
        self.expected_ml = expected_ml
        self.actual_ml = actual_ml
