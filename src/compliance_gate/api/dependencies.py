"""Wiring of the compliance service and its collaborators for the API."""

from __future__ import annotations

import logging
import threading

from fastapi import Request

from ..config import settings
from ..db.supabase import get_supabase_client
from ..persistence.audit_sink import AuditSink, JsonlAuditSink
from ..persistence.ledger_store import InMemoryLedgerStore
from ..persistence.verification_store import InMemoryVerificationStore
from ..services.eligibility.service import ComplianceService
from ..services.volume.ledger import VolumeLedger

logger = logging.getLogger(__name__)

_build_lock = threading.Lock()


def build_compliance_service() -> ComplianceService:
    """Assemble the service from configured sources: Supabase when set up, local stores otherwise."""

    from ..data.zones_repository import load_zone_registry

    registry = load_zone_registry()
    if get_supabase_client() is not None:
        from ..persistence.database import SupabaseLedgerStore, SupabaseVerificationStore

        ledger_store = SupabaseLedgerStore()
        verification_store = SupabaseVerificationStore()
    else:
        logger.warning("Supabase not configured - volume ledger is process-local")
        ledger_store = InMemoryLedgerStore()
        verification_store = InMemoryVerificationStore()

    geocoder = None
    if settings.geocoder_base_url:
        from ..services.providers.geocoding import ReverseGeocodingClient

        geocoder = ReverseGeocodingClient()

    kyc_provider = None
    if settings.kyc_base_url:
        from ..services.providers.kyc import KycServiceClient

        kyc_provider = KycServiceClient()
    else:
        logger.warning("KYC provider not configured - KYC verification is unavailable")

    return ComplianceService(
        registry,
        VolumeLedger(ledger_store),
        verification_store=verification_store,
        kyc_provider=kyc_provider,
        geocoder=geocoder,
    )


def build_audit_sink() -> AuditSink:
    if get_supabase_client() is not None:
        from ..persistence.database import SupabaseAuditSink

        return SupabaseAuditSink()
    return JsonlAuditSink()


def get_compliance_service(request: Request) -> ComplianceService:
    state = request.app.state
    if getattr(state, "compliance", None) is None:
        with _build_lock:
            if getattr(state, "compliance", None) is None:
                state.compliance = build_compliance_service()
    return state.compliance


def get_audit_sink(request: Request) -> AuditSink:
    state = request.app.state
    if getattr(state, "audit_sink", None) is None:
        with _build_lock:
            if getattr(state, "audit_sink", None) is None:
                state.audit_sink = build_audit_sink()
    return state.audit_sink
