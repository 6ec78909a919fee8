"""Exportación/importación JSON compatible con el archivo de la app web."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from dateutil import parser as date_parser

from caminata_tool.errors import DuplicateIdError, InvalidGeoPointError, InvalidWalkError, SnapshotFormatError
from caminata_tool.journey import JourneyState
from caminata_tool.ledger import WalkLedger, parse_day, parse_distance
from caminata_tool.model import GeoPoint, RouteConfig, WalkEntry

SNAPSHOT_VERSION = "1.0"


def walk_to_dict(entry: WalkEntry) -> dict[str, Any]:
    """Serialize a walk using the web app's field names."""
    return {
        "id": entry.id,
        "date": entry.date.isoformat(),
        "distance": entry.distance_km,
        "notes": entry.notes,
        "timestamp": entry.logged_at.isoformat() if entry.logged_at else None,
    }


def walk_from_dict(raw: Any) -> WalkEntry:
    """Validate and parse one serialized walk.

    Accepts ``distance`` or ``distanceKm`` and an optional ISO ``timestamp``.

    Raises:
        InvalidWalkError: If a required field is missing or invalid.
    """
    if not isinstance(raw, dict):
        raise InvalidWalkError("Walk must be an object")
    walk_id = raw.get("id")
    if walk_id is None or isinstance(walk_id, bool):
        raise InvalidWalkError("Walk id is required")
    day = parse_day(raw.get("date"))
    if day is None:
        raise InvalidWalkError(f"Invalid walk date: {raw.get('date')!r}")
    distance = parse_distance(raw.get("distance", raw.get("distanceKm")))
    if distance is None:
        raise InvalidWalkError(f"Invalid walk distance for id {walk_id}")
    return WalkEntry(
        id=str(walk_id),
        date=day,
        distance_km=distance,
        notes=str(raw.get("notes") or ""),
        logged_at=_parse_timestamp(raw.get("timestamp")),
    )


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date_parser.isoparse(value)
    except ValueError:
        return None


def route_config_to_dict(config: RouteConfig) -> dict[str, Any]:
    return {
        "startName": config.start_name,
        "endName": config.end_name,
        "startCoords": {
            "lat": config.start_point.lat,
            "lng": config.start_point.lng,
            "name": config.start_label or config.start_name,
        },
        "endCoords": {
            "lat": config.end_point.lat,
            "lng": config.end_point.lng,
            "name": config.end_label or config.end_name,
        },
    }


def route_config_from_dict(raw: Any) -> RouteConfig:
    """Parse a serialized route config.

    Raises:
        SnapshotFormatError: If names or coordinates are missing or invalid.
    """
    if not isinstance(raw, dict):
        raise SnapshotFormatError("routeConfig must be an object")
    try:
        start = raw["startCoords"]
        end = raw["endCoords"]
        return RouteConfig(
            start_name=str(raw["startName"]),
            end_name=str(raw["endName"]),
            start_point=GeoPoint.from_mapping(start),
            end_point=GeoPoint.from_mapping(end),
            start_label=_optional_str(start.get("name")),
            end_label=_optional_str(end.get("name")),
        )
    except (KeyError, AttributeError, InvalidGeoPointError) as exc:
        raise SnapshotFormatError(f"Invalid routeConfig: {exc}") from exc


def _optional_str(value: Any) -> str | None:
    return str(value) if value else None


def export_snapshot(state: JourneyState, now: datetime) -> dict[str, Any]:
    """Build the export payload ``{walks, routeConfig, exportDate, version}``."""
    return {
        "walks": [walk_to_dict(e) for e in state.ledger],
        "routeConfig": route_config_to_dict(state.route_config) if state.route_config else None,
        "exportDate": now.isoformat(),
        "version": SNAPSHOT_VERSION,
    }


def load_snapshot(payload: Any, state: JourneyState) -> JourneyState:
    """Return a new state with walks (and route config, if present) replaced.

    The cached polyline is kept only when the route config did not change.

    Raises:
        SnapshotFormatError: If the payload or any walk is invalid.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("walks"), list):
        raise SnapshotFormatError("Invalid data file format: 'walks' list missing")

    ledger = WalkLedger()
    for index, raw in enumerate(payload["walks"]):
        try:
            ledger.add(walk_from_dict(raw))
        except (InvalidWalkError, DuplicateIdError) as exc:
            raise SnapshotFormatError(f"Walk #{index + 1}: {exc}") from exc

    raw_config = payload.get("routeConfig")
    if raw_config is None:
        return JourneyState(route_config=state.route_config, route=state.route, ledger=ledger)

    config = route_config_from_dict(raw_config)
    route = state.route if config == state.route_config else None
    return JourneyState(route_config=config, route=route, ledger=ledger)


def write_snapshot(path: Path, state: JourneyState, now: datetime) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(export_snapshot(state, now), ensure_ascii=False, indent=2), encoding="utf-8")


def read_snapshot(path: Path, state: JourneyState) -> JourneyState:
    """Read an export file and load it over ``state``."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SnapshotFormatError(f"Not a valid export file: {exc}") from exc
    return load_snapshot(payload, state)
