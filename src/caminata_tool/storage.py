"""Persistencia SQLite para configuracion, caminatas y ruta."""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from dateutil import parser as date_parser

from caminata_tool.errors import InvalidGeoPointError, InvalidWalkError, SnapshotFormatError
from caminata_tool.ledger import WalkLedger, parse_day
from caminata_tool.model import RouteConfig, WalkEntry
from caminata_tool.route import RoutePolyline
from caminata_tool.snapshot import route_config_from_dict, route_config_to_dict
from caminata_tool.sources.nominatim import DEFAULT_NOMINATIM_URL
from caminata_tool.sources.osrm import DEFAULT_OSRM_URL
from caminata_tool.sources.overpass import DEFAULT_OVERPASS_URL

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS walks (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    date TEXT NOT NULL,
    distance_km REAL NOT NULL,
    notes TEXT NOT NULL DEFAULT ''
);

CREATE INDEX IF NOT EXISTS idx_walks_date ON walks(date);
"""

_ROUTE_CONFIG_KEY = "route_config"
_ROUTE_POINTS_KEY = "route_points"


@dataclass(frozen=True)
class AppConfig:
    """Configuracion persistida de la app."""

    timezone: str = "Asia/Kolkata"
    nominatim_url: str = DEFAULT_NOMINATIM_URL
    osrm_url: str = DEFAULT_OSRM_URL
    overpass_url: str = DEFAULT_OVERPASS_URL
    user_agent: str = "caminata-tool/0.1.0"
    timeout_seconds: float = 20.0


CONFIG_KEYS = tuple(AppConfig.__dataclass_fields__)


class SQLiteStore:
    """Repositorio SQLite para la app."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            self._migrate(conn)
            conn.commit()

    def _migrate(self, conn: sqlite3.Connection) -> None:
        """Apply lightweight schema migrations."""
        cols = {row["name"] for row in conn.execute("PRAGMA table_info(walks)")}
        if "logged_at" not in cols:
            conn.execute("ALTER TABLE walks ADD COLUMN logged_at TEXT")

    def load_config(self) -> AppConfig:
        """Devuelve configuracion guardada o defaults."""
        defaults = asdict(AppConfig())
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows if row["key"] in CONFIG_KEYS}
        merged = {**defaults, **values}
        try:
            timeout = float(merged["timeout_seconds"])
        except (TypeError, ValueError):
            timeout = defaults["timeout_seconds"]
        return AppConfig(
            timezone=str(merged["timezone"]),
            nominatim_url=str(merged["nominatim_url"]),
            osrm_url=str(merged["osrm_url"]),
            overpass_url=str(merged["overpass_url"]),
            user_agent=str(merged["user_agent"]),
            timeout_seconds=timeout,
        )

    def save_config(self, config: AppConfig) -> None:
        """Guarda la configuracion en tabla key/value."""
        payload = {key: str(value) for key, value in asdict(config).items()}
        self._set_values(payload)

    def _set_values(self, payload: dict[str, str]) -> None:
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                payload.items(),
            )
            conn.commit()

    def _get_value(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM app_config WHERE key = ?", (key,)).fetchone()
        return None if row is None else str(row["value"])

    def save_route(self, config: RouteConfig | None, route: RoutePolyline | None) -> None:
        """Guarda configuracion de ruta y polilinea cacheada (None las borra).

        Borrado e insercion van en una sola transaccion: si algo falla, la
        ruta anterior queda intacta.
        """
        payload: dict[str, str] = {}
        if config is not None:
            payload[_ROUTE_CONFIG_KEY] = json.dumps(route_config_to_dict(config))
        if route is not None:
            payload[_ROUTE_POINTS_KEY] = json.dumps(route.to_pairs())

        with self._connect() as conn:
            conn.execute(
                "DELETE FROM app_config WHERE key IN (?, ?)",
                (_ROUTE_CONFIG_KEY, _ROUTE_POINTS_KEY),
            )
            conn.executemany(
                "INSERT INTO app_config(key, value) VALUES(?, ?)",
                payload.items(),
            )
            conn.commit()

    def load_route(self) -> tuple[RouteConfig | None, RoutePolyline | None]:
        """Carga configuracion de ruta y polilinea; datos corruptos se ignoran."""
        config: RouteConfig | None = None
        route: RoutePolyline | None = None

        raw_config = self._get_value(_ROUTE_CONFIG_KEY)
        if raw_config:
            try:
                config = route_config_from_dict(json.loads(raw_config))
            except (json.JSONDecodeError, SnapshotFormatError) as exc:
                logger.warning("Stored route config is unreadable: %s", exc)

        raw_points = self._get_value(_ROUTE_POINTS_KEY)
        if raw_points:
            try:
                route = RoutePolyline.from_pairs(json.loads(raw_points))
            except (json.JSONDecodeError, TypeError, InvalidGeoPointError) as exc:
                logger.warning("Stored route polyline is unreadable: %s", exc)
        return config, route

    def load_ledger(self) -> WalkLedger:
        """Carga las caminatas en orden de insercion."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, date, distance_km, notes, logged_at FROM walks ORDER BY seq"
            ).fetchall()

        ledger = WalkLedger()
        for row in rows:
            entry = _row_to_entry(row)
            if entry is not None:
                ledger.add(entry)
        return ledger

    def save_ledger(self, ledger: WalkLedger) -> None:
        """Reemplaza todas las caminatas guardadas por las del registro."""
        with self._connect() as conn:
            conn.execute("DELETE FROM walks")
            conn.executemany(
                """
                INSERT INTO walks(id, date, distance_km, notes, logged_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                [_entry_to_row(e) for e in ledger],
            )
            conn.commit()

    def add_walk(self, entry: WalkEntry) -> None:
        """Inserta una caminata (falla si el id ya existe)."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO walks(id, date, distance_km, notes, logged_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                _entry_to_row(entry),
            )
            conn.commit()

    def delete_walk(self, walk_id: str) -> bool:
        """Borra una caminata. Devuelve True si existia."""
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM walks WHERE id = ?", (walk_id,))
            conn.commit()
        return cur.rowcount > 0


def _entry_to_row(entry: WalkEntry) -> tuple[object, ...]:
    return (
        entry.id,
        entry.date.isoformat(),
        entry.distance_km,
        entry.notes,
        entry.logged_at.isoformat() if entry.logged_at else None,
    )


def _row_to_entry(row: Any) -> WalkEntry | None:
    day = parse_day(row["date"])
    if day is None:
        logger.warning("Skipping stored walk %s with invalid date %r", row["id"], row["date"])
        return None
    logged_at = None
    if row["logged_at"]:
        try:
            logged_at = date_parser.isoparse(row["logged_at"])
        except ValueError:
            logged_at = None
    try:
        return WalkEntry(
            id=str(row["id"]),
            date=day,
            distance_km=float(row["distance_km"]),
            notes=str(row["notes"] or ""),
            logged_at=logged_at,
        )
    except InvalidWalkError as exc:
        logger.warning("Skipping stored walk %s: %s", row["id"], exc)
        return None
