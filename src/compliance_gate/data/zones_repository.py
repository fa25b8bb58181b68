"""Zone reference data loader with database-first approach, falling back to files."""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from openpyxl import load_workbook

from ..config import settings
from ..db.supabase import get_supabase_client
from ..errors import InvalidInput, ZoneRegistryUnavailable
from ..models.domain import Coordinate, DeliveryZone, ExclusionCategory, ExclusionZone
from ..services.zones.registry import StaticZoneRegistry

logger = logging.getLogger(__name__)

_CATEGORY_ALIASES = {
    "temple": ExclusionCategory.PLACE_OF_WORSHIP,
    "monastery": ExclusionCategory.PLACE_OF_WORSHIP,
    "church": ExclusionCategory.PLACE_OF_WORSHIP,
    "mosque": ExclusionCategory.PLACE_OF_WORSHIP,
    "worship": ExclusionCategory.PLACE_OF_WORSHIP,
    "govt": ExclusionCategory.GOVERNMENT,
    "dry_zone": ExclusionCategory.OTHER,
}


def parse_category(value: Any) -> ExclusionCategory:
    text = str(value or "").strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return ExclusionCategory(text)
    except ValueError:
        if text in _CATEGORY_ALIASES:
            return _CATEGORY_ALIASES[text]
        logger.warning(f"Unknown exclusion category '{value}', treating as 'other'")
        return ExclusionCategory.OTHER


def exclusion_zone_from_row(row: Mapping[str, Any]) -> ExclusionZone:
    zone_id = row.get("zone_id") or row.get("id")
    return ExclusionZone(
        zone_id=str(zone_id),
        name=str(row.get("name") or zone_id),
        category=parse_category(row.get("category") or row.get("type")),
        center=Coordinate(float(row["latitude"]), float(row["longitude"])),
        radius_meters=float(row.get("radius_meters", row.get("radius"))),
        description=str(row.get("description") or ""),
    )


def _parse_boundary(raw: Any) -> tuple[Coordinate, ...]:
    if isinstance(raw, str):
        raw = json.loads(raw)
    points = []
    for item in raw or []:
        if isinstance(item, Mapping):
            points.append(Coordinate(float(item["latitude"]), float(item["longitude"])))
        else:
            lat, lng = item
            points.append(Coordinate(float(lat), float(lng)))
    return tuple(points)


def delivery_zone_from_row(row: Mapping[str, Any]) -> DeliveryZone:
    zone_id = row.get("zone_id") or row.get("id")
    restrictions = row.get("restrictions") or []
    if isinstance(restrictions, str):
        restrictions = json.loads(restrictions)
    return DeliveryZone(
        zone_id=str(zone_id),
        name=str(row.get("name") or zone_id),
        boundary=_parse_boundary(row.get("boundary") or row.get("coordinates")),
        active=bool(row.get("active", row.get("is_active", True))),
        restrictions=frozenset(str(code) for code in restrictions),
    )


def _load_zones_from_database() -> tuple[tuple[ExclusionZone, ...], tuple[DeliveryZone, ...]] | None:
    """Load zones from Supabase. Returns None if the database is not available or empty."""
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        exclusion_rows = supabase.table("exclusion_zones").select("*").execute().data or []
        delivery_rows = supabase.table("delivery_zones").select("*").order("priority").execute().data or []
    except Exception as e:
        logger.warning(f"Zone query failed, falling back to file: {e}")
        return None
    if not exclusion_rows and not delivery_rows:
        return None

    try:
        exclusions = tuple(exclusion_zone_from_row(row) for row in exclusion_rows)
        deliveries = tuple(delivery_zone_from_row(row) for row in delivery_rows)
    except InvalidInput:
        raise
    except (ValueError, KeyError, TypeError) as exc:
        raise InvalidInput(f"Zone tables hold a malformed row: {exc}") from exc
    logger.info(f"Loaded zones from database ({len(exclusions)} exclusion, {len(deliveries)} delivery)")
    return exclusions, deliveries


def _load_zones_from_file(source: Path) -> tuple[tuple[ExclusionZone, ...], tuple[DeliveryZone, ...]]:
    if not source.exists():
        raise FileNotFoundError(f"Zones file not found: {source}")
    with source.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    exclusions = tuple(exclusion_zone_from_row(row) for row in payload.get("exclusion_zones", []))
    deliveries = tuple(delivery_zone_from_row(row) for row in payload.get("delivery_zones", []))
    return exclusions, deliveries


def load_exclusion_zones_from_workbook(source: Path) -> tuple[ExclusionZone, ...]:
    """Read exclusion zones from the first sheet of an Excel workbook."""
    if not source.exists():
        raise FileNotFoundError(f"Exclusion workbook not found: {source}")

    wb = load_workbook(source, data_only=True, read_only=True)
    try:
        sheet = wb.active
        rows = sheet.iter_rows(min_row=1, values_only=True)
        header = next(rows, None)
        if header is None:
            raise ValueError(f"Exclusion workbook '{source}' is empty.")

        header_map = {str(name).strip(): idx for idx, name in enumerate(header) if name is not None}
        missing_columns = {"Name", "Category", "Latitude", "Longitude", "Radius"} - set(header_map)
        if missing_columns:
            raise ValueError(f"Exclusion workbook missing columns: {', '.join(sorted(missing_columns))}")

        zones: list[ExclusionZone] = []
        for index, row in enumerate(rows, start=2):
            name = row[header_map["Name"]]
            if not name:
                continue
            zone_id = row[header_map["Id"]] if "Id" in header_map else None
            zones.append(
                exclusion_zone_from_row(
                    {
                        "zone_id": zone_id or f"xlsx_{index:03d}",
                        "name": name,
                        "category": row[header_map["Category"]],
                        "latitude": row[header_map["Latitude"]],
                        "longitude": row[header_map["Longitude"]],
                        "radius_meters": row[header_map["Radius"]],
                        "description": row[header_map["Description"]] if "Description" in header_map else "",
                    }
                )
            )
        return tuple(zones)
    finally:
        wb.close()


def _merge_exclusions(
    primary: Iterable[ExclusionZone], extra: Iterable[ExclusionZone]
) -> tuple[ExclusionZone, ...]:
    merged = {zone.zone_id: zone for zone in primary}
    for zone in extra:
        merged.setdefault(zone.zone_id, zone)
    return tuple(merged.values())


@functools.lru_cache(maxsize=1)
def load_zone_registry(source: Optional[Path] = None, workbook: Optional[Path] = None) -> StaticZoneRegistry:
    """Build the zone registry from the database, or the configured files when it is unavailable."""

    loaded = _load_zones_from_database()
    if loaded is None:
        zones_file = source or settings.zones_file
        try:
            loaded = _load_zones_from_file(zones_file)
        except FileNotFoundError as exc:
            raise ZoneRegistryUnavailable(f"No zone data available: {exc}") from exc
        except InvalidInput:
            raise
        except (ValueError, KeyError, TypeError) as exc:
            raise InvalidInput(f"Zones file '{zones_file}' is malformed: {exc}") from exc
        logger.info(f"Loaded zones from {zones_file}")

    exclusions, deliveries = loaded
    workbook_path = workbook or settings.exclusion_workbook
    if workbook_path is not None:
        exclusions = _merge_exclusions(exclusions, load_exclusion_zones_from_workbook(workbook_path))

    return StaticZoneRegistry(exclusion_zones=exclusions, delivery_zones=deliveries)
