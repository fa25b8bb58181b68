"""Order-level compliance decisions and the verification steps that feed them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, tzinfo
from typing import Optional

from ...config import settings
from ...errors import IdentityNotVerified, InvalidCoordinate, InvalidDate, InvalidInput, KycProviderUnavailable
from ...models.domain import (
    ComplianceEvent,
    ComplianceVerdict,
    Coordinate,
    EventType,
    VerificationRecord,
)
from ...persistence.verification_store import VerificationStore
from ..age import AgeResult, DateLike, coerce_date, evaluate_age
from ..audit.emitter import emit_event
from ..location import LocationVerdict, evaluate_location
from ..providers.geocoding import Geocoder
from ..providers.kyc import KycProvider, KycResult
from ..volume.ledger import VolumeCheck, VolumeLedger
from ..zones.registry import ZoneRegistry
from .reasons import ReasonCode, describe_reasons

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AgeVerification:
    result: AgeResult
    record: VerificationRecord
    event: ComplianceEvent


@dataclass(frozen=True, slots=True)
class LocationVerification:
    verdict: LocationVerdict
    address: Optional[str]
    record: VerificationRecord
    event: ComplianceEvent


@dataclass(frozen=True, slots=True)
class KycVerification:
    result: KycResult
    record: VerificationRecord
    event: ComplianceEvent


def mask_document_number(number: str) -> str:
    digits = number.strip()
    if len(digits) <= 8:
        return "X" * len(digits)
    return f"{digits[:4]}XXXX{digits[-4:]}"


def _require_aware(now: datetime) -> datetime:
    if not isinstance(now, datetime):
        raise InvalidDate(f"now must be a datetime, got {type(now).__name__}")
    if now.tzinfo is None or now.utcoffset() is None:
        raise InvalidDate("now must be timezone-aware")
    return now


def _require_point(point: Coordinate) -> Coordinate:
    if not isinstance(point, Coordinate):
        raise InvalidCoordinate(f"point must be a Coordinate, got {type(point).__name__}")
    return point


class ComplianceService:
    """Single decision authority for regulated order admission.

    Built once at process start and handed to every caller. Evaluation is
    read-only; only ``admit_order`` and the verification steps change state,
    and only through the injected ledger and record store.
    """

    def __init__(
        self,
        registry: ZoneRegistry,
        ledger: VolumeLedger,
        *,
        verification_store: VerificationStore | None = None,
        kyc_provider: KycProvider | None = None,
        geocoder: Geocoder | None = None,
        minimum_age: int | None = None,
        daily_limit_ml: int | None = None,
        operating_timezone: tzinfo | None = None,
    ) -> None:
        self.registry = registry
        self.ledger = ledger
        self.verification_store = verification_store
        self.kyc_provider = kyc_provider
        self.geocoder = geocoder
        self.minimum_age = settings.minimum_age if minimum_age is None else minimum_age
        self.daily_limit_ml = settings.daily_limit_ml if daily_limit_ml is None else daily_limit_ml
        self.operating_timezone = operating_timezone or settings.tzinfo

    def operating_day(self, now: datetime) -> date:
        """Calendar day of ``now`` in the operating timezone."""

        return _require_aware(now).astimezone(self.operating_timezone).date()

    def describe(self, reasons) -> list[str]:
        return describe_reasons(reasons, minimum_age=self.minimum_age, daily_limit_ml=self.daily_limit_ml)

    # Standalone checks

    def evaluate_age(self, date_of_birth: DateLike, now: datetime | date, minimum_age: int | None = None) -> AgeResult:
        as_of = self.operating_day(now) if isinstance(now, datetime) else now
        return evaluate_age(date_of_birth, as_of, self.minimum_age if minimum_age is None else minimum_age)

    def evaluate_location(self, point: Coordinate) -> LocationVerdict:
        return evaluate_location(_require_point(point), self.registry)

    # Order admission

    def load_identity(self, identity_id: str) -> VerificationRecord:
        """Stored verification record for ``identity_id``.

        Raises ``IdentityNotVerified`` when there is no record or its birth date
        was never verified.
        """

        if not isinstance(identity_id, str) or not identity_id.strip():
            raise InvalidInput(f"identity_id must be a non-empty string, got {identity_id!r}")
        record = self.verification_store.get(identity_id) if self.verification_store else None
        if record is None or record.date_of_birth is None:
            logger.warning(f"No verified record for {identity_id}, refusing order")
            raise IdentityNotVerified(identity_id)
        return record

    def _resolve_identity(self, identity: VerificationRecord | str) -> VerificationRecord:
        if isinstance(identity, VerificationRecord):
            return identity
        return self.load_identity(identity)

    def evaluate_order_eligibility(
        self,
        identity: VerificationRecord | str,
        point: Coordinate,
        regulated_volume_ml: int,
        now: datetime,
        *,
        order_id: str | None = None,
    ) -> ComplianceVerdict:
        """Run every check and return the verdict with its audit events.

        ``identity`` is either a record the caller already trusts or an
        identity id, which is looked up in the verification store. Nothing is
        written to the ledger.
        """

        record = self._resolve_identity(identity)
        return self._evaluate(record, point, regulated_volume_ml, now, order_id=order_id, commit=False)

    def admit_order(
        self,
        identity: VerificationRecord | str,
        point: Coordinate,
        regulated_volume_ml: int,
        now: datetime,
        *,
        order_id: str | None = None,
    ) -> ComplianceVerdict:
        """Evaluate and, when allowed, commit the volume to the ledger.

        Check and commit run under the ledger lock for the identity and day,
        so concurrent orders cannot both pass against the same stale total.
        """

        identity_id = identity.identity_id if isinstance(identity, VerificationRecord) else identity
        day = self.operating_day(now)
        record = self._resolve_identity(identity)
        with self.ledger.reservation(identity_id, day):
            return self._evaluate(record, point, regulated_volume_ml, now, order_id=order_id, commit=True)

    def _evaluate(
        self,
        identity: VerificationRecord,
        point: Coordinate,
        regulated_volume_ml: int,
        now: datetime,
        *,
        order_id: str | None,
        commit: bool,
    ) -> ComplianceVerdict:
        _require_aware(now)
        _require_point(point)
        if isinstance(regulated_volume_ml, bool) or not isinstance(regulated_volume_ml, int) or regulated_volume_ml < 0:
            raise InvalidInput(f"regulated_volume_ml must be a non-negative integer, got {regulated_volume_ml!r}")
        if identity.date_of_birth is None:
            raise InvalidDate(f"Identity '{identity.identity_id}' has no date of birth on record")

        day = self.operating_day(now)
        age = evaluate_age(identity.date_of_birth, day, self.minimum_age)

        reasons: list[ReasonCode] = []
        events: list[ComplianceEvent] = []

        def record(event_type: EventType, passed: bool, detail: dict) -> None:
            events.append(
                emit_event(event_type, identity.identity_id, passed, detail, occurred_at=now, order_id=order_id)
            )

        if not age.eligible:
            reasons.append(ReasonCode.AGE_UNDER_MINIMUM)
        record(
            EventType.AGE_CHECK,
            age.eligible,
            {"age": age.age, "minimum_age": self.minimum_age, "age_verified": identity.age_verified},
        )

        if not identity.kyc_completed:
            reasons.append(ReasonCode.KYC_INCOMPLETE)
        record(EventType.KYC_CHECK, identity.kyc_completed, {"kyc_completed": identity.kyc_completed})

        location = evaluate_location(point, self.registry)
        location_reasons: list[ReasonCode] = []
        if not identity.location_verified:
            location_reasons.append(ReasonCode.LOCATION_NOT_VERIFIED)
        if location.restricted_zone_violations:
            location_reasons.append(ReasonCode.RESTRICTED_ZONE)
        if location.delivery_zone is None:
            location_reasons.append(ReasonCode.OUTSIDE_SERVICE_AREA)
        reasons.extend(location_reasons)
        record(
            EventType.LOCATION_CHECK,
            not location_reasons,
            {
                "point": point.as_dict(),
                "location_verified": identity.location_verified,
                **location.to_detail(),
            },
        )

        volume: VolumeCheck = self.ledger.check_and_reserve(
            identity.identity_id, day, regulated_volume_ml, self.daily_limit_ml
        )
        if not volume.allowed:
            reasons.append(ReasonCode.DAILY_LIMIT_EXCEEDED)
        record(EventType.VOLUME_CHECK, volume.allowed, volume.to_detail())

        allowed = not reasons
        committed = False
        if commit and allowed:
            self.ledger.commit_reservation(volume)
            committed = True

        record(
            EventType.ORDER_ADMISSION,
            allowed,
            {
                "allowed": allowed,
                "reasons": [reason.value for reason in reasons],
                "regulated_volume_ml": regulated_volume_ml,
                "checked_at": now.isoformat(),
                "committed": committed,
            },
        )

        if allowed:
            logger.info(f"Order for {identity.identity_id} admissible ({regulated_volume_ml}ml, day {day})")
        else:
            denied = ", ".join(reason.value for reason in reasons)
            logger.warning(f"Order for {identity.identity_id} denied: {denied}")
        return ComplianceVerdict(allowed=allowed, reasons=tuple(reasons), checked_at=now, events=tuple(events))

    # Verification steps

    def _load_record(self, identity_id: str) -> VerificationRecord:
        existing = self.verification_store.get(identity_id) if self.verification_store else None
        return existing or VerificationRecord(identity_id=identity_id, date_of_birth=None)

    def _save_record(self, record: VerificationRecord) -> VerificationRecord:
        if self.verification_store is not None:
            return self.verification_store.save(record)
        return record

    def verify_age(
        self,
        identity_id: str,
        date_of_birth: DateLike,
        now: datetime,
        *,
        document_number: str | None = None,
    ) -> AgeVerification:
        dob = coerce_date(date_of_birth, field_name="date_of_birth")
        result = self.evaluate_age(dob, now)

        record = self._load_record(identity_id)
        if result.eligible:
            record = self._save_record(
                replace(record, date_of_birth=dob, age_verified=True, last_verified_at=now)
            )

        detail: dict = {"age": result.age, "minimum_age": self.minimum_age}
        if document_number:
            detail["document"] = mask_document_number(document_number)
        event = emit_event(EventType.AGE_CHECK, identity_id, result.eligible, detail, occurred_at=now)
        return AgeVerification(result=result, record=record, event=event)

    def verify_location(
        self,
        identity_id: str,
        point: Coordinate,
        now: datetime,
        *,
        address: str | None = None,
    ) -> LocationVerification:
        _require_aware(now)
        verdict = self.evaluate_location(point)

        if address is None and self.geocoder is not None:
            try:
                address = self.geocoder.reverse(point)
            except ConnectionError as exc:
                logger.warning(f"Reverse geocoding failed, continuing without address: {exc}")

        record = self._load_record(identity_id)
        if verdict.eligible:
            record = self._save_record(replace(record, location_verified=True, last_verified_at=now))

        detail = {"point": point.as_dict(), "address": address, "message": verdict.message(), **verdict.to_detail()}
        event = emit_event(EventType.LOCATION_CHECK, identity_id, verdict.eligible, detail, occurred_at=now)
        return LocationVerification(verdict=verdict, address=address, record=record, event=event)

    def complete_kyc(self, identity_id: str, now: datetime) -> KycVerification:
        _require_aware(now)
        if self.kyc_provider is None:
            raise KycProviderUnavailable("No KYC provider configured.")
        try:
            result = self.kyc_provider.fetch_status(identity_id)
        except KycProviderUnavailable:
            raise
        except ConnectionError as exc:
            logger.error(f"KYC status lookup failed for {identity_id}: {exc}")
            raise KycProviderUnavailable(f"KYC provider could not be reached: {exc}") from exc

        record = self._load_record(identity_id)
        if result.complete:
            record = self._save_record(replace(record, kyc_completed=True, last_verified_at=now))

        event = emit_event(EventType.KYC_CHECK, identity_id, result.complete, result.to_detail(), occurred_at=now)
        return KycVerification(result=result, record=record, event=event)
