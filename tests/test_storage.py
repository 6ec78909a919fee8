from __future__ import annotations

import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from caminata_tool.ledger import WalkLedger
from caminata_tool.model import GeoPoint, RouteConfig, WalkEntry
from caminata_tool.route import RoutePolyline
from caminata_tool.storage import AppConfig, SQLiteStore

NOW = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)

CONFIG = RouteConfig(
    start_name="Kanyakumari",
    end_name="Leh",
    start_point=GeoPoint(8.0883, 77.5385),
    end_point=GeoPoint(34.1526, 77.5771),
    start_label="Kanyakumari, TN",
    end_label="Leh, Ladakh",
)


def test_store_config_defaults_and_saved_values(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert store.load_config() == AppConfig()

    store.save_config(AppConfig(timezone="Europe/Madrid", timeout_seconds=5.0))
    loaded = store.load_config()
    assert loaded.timezone == "Europe/Madrid"
    assert loaded.timeout_seconds == 5.0
    assert loaded.osrm_url == AppConfig().osrm_url


def test_store_route_round_trip_and_clear(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert store.load_route() == (None, None)

    route = RoutePolyline.build([[8.0883, 77.5385], [20.0, 77.0], [34.1526, 77.5771]])
    store.save_route(CONFIG, route)
    config, loaded = store.load_route()
    assert config == CONFIG
    assert loaded is not None
    assert loaded.points == route.points
    assert loaded.total_distance_km == route.total_distance_km

    store.save_route(CONFIG, None)
    assert store.load_route() == (CONFIG, None)

    store.save_route(None, None)
    assert store.load_route() == (None, None)


def test_store_ignores_corrupt_route(tmp_path: Path) -> None:
    db = tmp_path / "app.sqlite3"
    store = SQLiteStore(db)
    with sqlite3.connect(db) as conn:
        conn.execute("INSERT INTO app_config(key, value) VALUES ('route_config', '{not json')")
        conn.execute("INSERT INTO app_config(key, value) VALUES ('route_points', '[[999, 0]]')")
        conn.commit()
    assert store.load_route() == (None, None)


def test_store_ledger_keeps_order_and_fields(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    ledger = WalkLedger(
        [
            WalkEntry(id="z", date=date(2024, 1, 5), distance_km=4.0, notes="late", logged_at=NOW),
            WalkEntry(id="a", date=date(2024, 1, 1), distance_km=1.5),
        ]
    )
    store.save_ledger(ledger)
    loaded = store.load_ledger()
    assert loaded.entries() == ledger.entries()

    store.save_ledger(WalkLedger())
    assert len(store.load_ledger()) == 0


def test_store_add_and_delete_walk(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    entry = WalkEntry(id="w1", date=date(2024, 1, 1), distance_km=2.0, logged_at=NOW)
    store.add_walk(entry)
    with pytest.raises(sqlite3.IntegrityError):
        store.add_walk(entry)

    assert store.delete_walk("w1") is True
    assert store.delete_walk("w1") is False
    assert len(store.load_ledger()) == 0


def test_store_skips_invalid_rows(tmp_path: Path) -> None:
    db = tmp_path / "app.sqlite3"
    store = SQLiteStore(db)
    with sqlite3.connect(db) as conn:
        conn.executemany(
            "INSERT INTO walks(id, date, distance_km, notes) VALUES (?, ?, ?, ?)",
            [("ok", "2024-01-01", 3.0, ""), ("bad-date", "01/01/2024", 1.0, ""), ("neg", "2024-01-02", -2.0, "")],
        )
        conn.commit()
    assert [e.id for e in store.load_ledger()] == ["ok"]


def test_store_migrates_old_walks_table(tmp_path: Path) -> None:
    db = tmp_path / "old.sqlite3"
    with sqlite3.connect(db) as conn:
        conn.execute(
            """
            CREATE TABLE walks (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                date TEXT NOT NULL,
                distance_km REAL NOT NULL,
                notes TEXT NOT NULL DEFAULT ''
            )
            """
        )
        conn.execute("INSERT INTO walks(id, date, distance_km) VALUES ('w', '2024-01-01', 2.5)")
        conn.commit()

    store = SQLiteStore(db)
    walks = store.load_ledger().entries()
    assert [(w.id, w.distance_km, w.logged_at) for w in walks] == [("w", 2.5, None)]


def test_store_route_save_is_atomic(tmp_path: Path) -> None:
    db = tmp_path / "app.sqlite3"
    store = SQLiteStore(db)
    route = RoutePolyline.build([[8.0883, 77.5385], [34.1526, 77.5771]])
    store.save_route(CONFIG, route)

    with sqlite3.connect(db) as conn:
        conn.execute(
            "CREATE TRIGGER fail_points BEFORE INSERT ON app_config WHEN NEW.key = 'route_points' "
            "BEGIN SELECT RAISE(ABORT, 'disk full'); END"
        )
        conn.commit()

    other = RouteConfig(
        start_name="Leh",
        end_name="Kanyakumari",
        start_point=CONFIG.end_point,
        end_point=CONFIG.start_point,
    )
    with pytest.raises(sqlite3.DatabaseError, match="disk full"):
        store.save_route(other, RoutePolyline.build([[34.1526, 77.5771], [8.0883, 77.5385]]))

    config, loaded = store.load_route()
    assert config == CONFIG
    assert loaded is not None
    assert loaded.points == route.points
