"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/zones", status_code=status.HTTP_200_OK)
def health_zones() -> dict:
    """Report whether zone reference data can be loaded."""
    from ...data.zones_repository import load_zone_registry
    from ...errors import ComplianceError

    try:
        registry = load_zone_registry()
    except ComplianceError as exc:
        return {"service": "zones", "healthy": False, "error": str(exc)}
    return {
        "service": "zones",
        "healthy": True,
        "exclusion_zones": len(registry.list_exclusion_zones()),
        "active_delivery_zones": len(registry.list_active_delivery_zones()),
    }


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and ledger table status."""
    from ...db.supabase import get_supabase_client
    from ...persistence.database import LEDGER_TABLE

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set CG_SUPABASE_URL and CG_SUPABASE_KEY environment variables.",
        }

    try:
        supabase.table(LEDGER_TABLE).select("identity_id", count="exact").limit(1).execute()
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
    return {"configured": True, "connected": True, "message": "Database connected."}
