"""CLI para seguir un viaje virtual: ruta, caminatas, progreso y períodos."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime, tzinfo
from pathlib import Path

import requests
from dateutil import tz

from caminata_tool.errors import InvalidRangeError, InvalidWalkError, JourneyError
from caminata_tool.excel_writer import ExcelLayout, write_history_xlsx
from caminata_tool.journey import (
    JourneyState,
    current_progress,
    log_walk,
    nearby_places,
    period_view,
    rebuild_route,
    set_route,
)
from caminata_tool.ledger import parse_day, walk_warnings
from caminata_tool.periods import PeriodMode, PeriodSelection
from caminata_tool.snapshot import read_snapshot, write_snapshot
from caminata_tool.sources.base import NearbyPlace, ServiceConfig
from caminata_tool.sources.nominatim import NominatimGeocoder
from caminata_tool.sources.osrm import OsrmRouter
from caminata_tool.sources.overpass import OverpassPlaces
from caminata_tool.storage import CONFIG_KEYS, AppConfig, SQLiteStore
from caminata_tool.sync import JsonFileCloud, sync_with_cloud

logger = logging.getLogger(__name__)

DEFAULT_DB = Path.home() / ".caminata_tool" / "caminata.sqlite3"

Handler = Callable[[argparse.Namespace, SQLiteStore], int]


def _local_tz(config: AppConfig) -> tzinfo:
    zone = tz.gettz(config.timezone)
    if zone is None:
        logger.warning("Unknown timezone %r, using local time", config.timezone)
        return tz.tzlocal()
    return zone


def _now(config: AppConfig) -> datetime:
    return datetime.now(tz=_local_tz(config))


def _load_state(store: SQLiteStore) -> JourneyState:
    route_config, route = store.load_route()
    return JourneyState(route_config=route_config, route=route, ledger=store.load_ledger())


def _services(config: AppConfig) -> tuple[NominatimGeocoder, OsrmRouter]:
    geocoder = NominatimGeocoder(
        ServiceConfig(config.nominatim_url, config.user_agent, config.timeout_seconds)
    )
    router = OsrmRouter(ServiceConfig(config.osrm_url, config.user_agent, config.timeout_seconds))
    return geocoder, router


def _places(config: AppConfig) -> OverpassPlaces:
    return OverpassPlaces(ServiceConfig(config.overpass_url, config.user_agent, config.timeout_seconds))


def _selection(values: Sequence[str]) -> PeriodSelection:
    """Parse ``all`` | ``last N`` | ``custom START END``."""
    if not values:
        raise InvalidRangeError("Period mode is required (all, last N, custom START END)")
    try:
        mode = PeriodMode(values[0])
    except ValueError as exc:
        raise InvalidRangeError(f"Unknown period mode: {values[0]}") from exc

    if mode is PeriodMode.ALL:
        return PeriodSelection(mode=mode)
    if mode is PeriodMode.LAST:
        if len(values) != 2 or not values[1].lstrip("-").isdigit():
            raise InvalidRangeError("Usage: last N")
        return PeriodSelection(mode=mode, days=int(values[1]))
    if len(values) != 3:
        raise InvalidRangeError("Usage: custom START END")
    start, end = parse_day(values[1]), parse_day(values[2])
    if start is None or end is None:
        raise InvalidRangeError("Custom dates must be YYYY-MM-DD")
    return PeriodSelection(mode=mode, start=start, end=end)


def _cmd_route_set(args: argparse.Namespace, store: SQLiteStore) -> int:
    config = store.load_config()
    state = _load_state(store)
    geocoder, router = _services(config)
    state = set_route(state, args.start, args.end, geocoder=geocoder, router=router)
    store.save_route(state.route_config, state.route)

    total_km = state.route.total_distance_km if state.route else 0.0
    print(f"OK: Route {args.start} -> {args.end}: {total_km:.0f} km")
    if len(state.ledger):
        print(
            f"OK: {len(state.ledger)} walk(s) totaling {state.ledger.total_distance():.1f} km kept; "
            "progress recalculated on the new route"
        )
    return 0


def _cmd_route_refresh(args: argparse.Namespace, store: SQLiteStore) -> int:
    config = store.load_config()
    state = _load_state(store)
    _, router = _services(config)
    state = rebuild_route(state, router=router)
    store.save_route(state.route_config, state.route)
    if state.route is not None:
        print(f"OK: Route refreshed: {len(state.route)} points, {state.route.total_distance_km:.0f} km")
    return 0


def _cmd_route_show(args: argparse.Namespace, store: SQLiteStore) -> int:
    route_config, route = store.load_route()
    if route_config is None:
        print("No route configured. Use: route set START END")
        return 0
    print(f"Route: {route_config.start_name} -> {route_config.end_name}")
    print(f"Start: {route_config.start_point.lat:.5f}, {route_config.start_point.lng:.5f}")
    print(f"End: {route_config.end_point.lat:.5f}, {route_config.end_point.lng:.5f}")
    if route is None:
        print("Polyline: not fetched (use: route refresh)")
    else:
        print(f"Polyline: {len(route)} points, {route.total_distance_km:.1f} km")
    return 0


def _cmd_log(args: argparse.Namespace, store: SQLiteStore) -> int:
    config = store.load_config()
    now = _now(config)
    day = parse_day(args.date) if args.date else now.date()
    if day is None:
        raise InvalidWalkError(f"Invalid date: {args.date} (expected YYYY-MM-DD)")

    state = _load_state(store)
    _, entry = log_walk(state, args.distance, day, now=now, notes=args.notes)
    for warning in walk_warnings(entry, now.date()):
        print(f"WARNING: {warning}")
    store.add_walk(entry)
    print(f"OK: Walk {entry.id} logged: {entry.distance_km:.2f} km on {entry.date.isoformat()}")
    return 0


def _cmd_delete(args: argparse.Namespace, store: SQLiteStore) -> int:
    if store.delete_walk(args.id):
        print(f"OK: Walk {args.id} deleted")
    else:
        print(f"Walk {args.id} not found; nothing to delete")
    return 0


def _cmd_clear(args: argparse.Namespace, store: SQLiteStore) -> int:
    state = _load_state(store)
    count = len(state.ledger)
    state.ledger.clear()
    store.save_ledger(state.ledger)
    print(f"OK: {count} walk(s) cleared")
    return 0


def _cmd_import(args: argparse.Namespace, store: SQLiteStore) -> int:
    config = store.load_config()
    text = Path(args.file).read_text(encoding="utf-8")
    state = _load_state(store)
    result = state.ledger.bulk_import(text, _now(config))
    if result.imported_count:
        store.save_ledger(state.ledger)
        print(f"OK: Imported {result.imported_count} walk(s)")
    else:
        print("No walks were imported. Check the data format: date, distance[, notes]")
    for error in result.errors:
        print(f"ERROR: {error}")
    return 0 if result.imported_count else 1


def _cmd_status(args: argparse.Namespace, store: SQLiteStore) -> int:
    state = _load_state(store)
    progress = current_progress(state)
    if state.route_config is not None:
        print(f"Route: {state.route_config.start_name} -> {state.route_config.end_name}")
    print(f"Distance covered: {progress.distance_covered_km:.1f} km")
    print(f"Remaining: {progress.remaining_km:.0f} km")
    print(f"Progress: {progress.percent_complete:.1f}%")
    print(f"Current location: {progress.location_label}")
    if progress.position is not None:
        print(f"Position: {progress.position.lat:.5f}, {progress.position.lng:.5f}")
    if state.route is not None:
        completed, pending = state.route.completed_and_pending(progress.distance_covered_km)
        print(f"Route points: completed={len(completed)} pending={len(pending)}")
        if progress.distance_covered_km > 0 and not args.no_places:
            _print_places(nearby_places(state, _places(store.load_config())))
    return 0


def _print_places(places: list[NearbyPlace]) -> None:
    if not places:
        print("Nearby: no major landmarks found (rural or remote area)")
        return
    print("Nearby:")
    for place in places:
        print(f"  {place.name} ({place.kind}) {place.distance_km:.1f} km away")


def _cmd_sync(args: argparse.Namespace, store: SQLiteStore) -> int:
    state = _load_state(store)
    result = sync_with_cloud(state.ledger, state.route_config, JsonFileCloud(Path(args.file)))
    store.save_ledger(state.ledger)
    print(
        f"OK: Synced with {args.file}: added={result.added} updated={result.updated} "
        f"removed={result.removed} skipped={result.skipped}"
    )
    return 0


def _cmd_history(args: argparse.Namespace, store: SQLiteStore) -> int:
    ledger = store.load_ledger()
    if not len(ledger):
        print("No walks logged yet. Start your journey!")
        return 0
    for entry in ledger.sorted_history():
        notes = f"  {entry.notes}" if entry.notes else ""
        print(f"{entry.date.isoformat()}  {entry.distance_km:8.2f} km  [{entry.id}]{notes}")
    return 0


def _cmd_period(args: argparse.Namespace, store: SQLiteStore) -> int:
    config = store.load_config()
    state = _load_state(store)
    view = period_view(state, _selection(args.values), today=_now(config).date())
    print(f"Period: {view.date_range.start.isoformat()} .. {view.date_range.end.isoformat()}")
    print(f"Distance: {view.stats.total_km:.2f} km")
    print(f"Walks: {view.stats.walk_count}")
    print(f"Average: {view.stats.avg_km:.2f} km")
    print(f"Distance before period: {view.distance_before_km:.2f} km")
    print(f"Highlighted segment: {len(view.highlight)} points")
    for cp in view.checkpoints:
        where = (
            f"{cp.position.lat:.5f}, {cp.position.lng:.5f}"
            if cp.position is not None
            else "position unavailable"
        )
        print(
            f"Day {cp.day_index}: {cp.date.isoformat()}  {cp.distance_that_day:.1f} km  "
            f"(total {cp.cumulative_distance:.1f} km)  {where}"
        )
    return 0


def _cmd_export_json(args: argparse.Namespace, store: SQLiteStore) -> int:
    config = store.load_config()
    state = _load_state(store)
    out = Path(args.out)
    write_snapshot(out, state, _now(config))
    print(f"OK: {len(state.ledger)} walks exported to {out}")
    return 0


def _cmd_import_json(args: argparse.Namespace, store: SQLiteStore) -> int:
    config = store.load_config()
    state = read_snapshot(Path(args.file), _load_state(store))
    if state.route_config is not None and state.route is None and not args.no_route:
        _, router = _services(config)
        state = rebuild_route(state, router=router)
    store.save_ledger(state.ledger)
    store.save_route(state.route_config, state.route)
    route = (
        f"{state.route_config.start_name} -> {state.route_config.end_name}"
        if state.route_config
        else "No route"
    )
    print(f"OK: {len(state.ledger)} walks loaded; route: {route}")
    return 0


def _cmd_export_xlsx(args: argparse.Namespace, store: SQLiteStore) -> int:
    config = store.load_config()
    state = _load_state(store)
    checkpoints = None
    if args.period:
        view = period_view(state, _selection(args.period), today=_now(config).date())
        checkpoints = view.checkpoints
    out = Path(args.out)
    write_history_xlsx(state.ledger.to_frame(), out, ExcelLayout(), checkpoints)
    print(f"OK: Output: {out}")
    return 0


def _cmd_config_show(args: argparse.Namespace, store: SQLiteStore) -> int:
    config = store.load_config()
    for key in CONFIG_KEYS:
        print(f"{key} = {getattr(config, key)}")
    return 0


def _cmd_config_set(args: argparse.Namespace, store: SQLiteStore) -> int:
    config = store.load_config()
    value: object = args.value
    if args.key == "timezone" and tz.gettz(args.value) is None:
        raise JourneyError(f"Unknown timezone: {args.value}")
    if args.key == "timeout_seconds":
        try:
            value = float(args.value)
        except ValueError as exc:
            raise JourneyError(f"timeout_seconds must be a number: {args.value}") from exc
    store.save_config(replace(config, **{args.key: value}))
    print(f"OK: {args.key} = {value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        prog="caminata-tool",
        description="Viaje virtual: registra caminatas y avanza sobre una ruta real.",
    )
    parser.add_argument("--db", default=str(DEFAULT_DB), help="Ruta de la base SQLite.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log de depuración.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_route = sub.add_parser("route", help="Configurar o ver la ruta")
    route_sub = p_route.add_subparsers(dest="route_cmd", required=True)
    p_rset = route_sub.add_parser("set", help="Geocodificar inicio/fin y calcular la ruta")
    p_rset.add_argument("start", help="Lugar de inicio (ej. 'Kanyakumari, India')")
    p_rset.add_argument("end", help="Lugar de destino (ej. 'Leh, India')")
    p_rset.set_defaults(func=_cmd_route_set)
    p_rshow = route_sub.add_parser("show", help="Mostrar la ruta guardada")
    p_rshow.set_defaults(func=_cmd_route_show)
    p_rref = route_sub.add_parser("refresh", help="Volver a pedir la polilínea de la ruta")
    p_rref.set_defaults(func=_cmd_route_refresh)

    p_log = sub.add_parser("log", help="Registrar una caminata")
    p_log.add_argument("distance", type=float, help="Distancia en km")
    p_log.add_argument("--date", default=None, help="Fecha YYYY-MM-DD (default: hoy)")
    p_log.add_argument("--notes", default="", help="Notas")
    p_log.set_defaults(func=_cmd_log)

    p_del = sub.add_parser("delete", help="Borrar una caminata por id")
    p_del.add_argument("id")
    p_del.set_defaults(func=_cmd_delete)

    p_clear = sub.add_parser("clear", help="Borrar todas las caminatas")
    p_clear.set_defaults(func=_cmd_clear)

    p_imp = sub.add_parser("import", help="Importación masiva: 'fecha, km[, notas]' por línea")
    p_imp.add_argument("file")
    p_imp.set_defaults(func=_cmd_import)

    p_status = sub.add_parser("status", help="Progreso actual sobre la ruta")
    p_status.add_argument("--no-places", action="store_true", help="No buscar lugares cercanos")
    p_status.set_defaults(func=_cmd_status)

    p_hist = sub.add_parser("history", help="Historial (más reciente primero)")
    p_hist.set_defaults(func=_cmd_history)

    p_period = sub.add_parser("period", help="Período: all | last N | custom START END")
    p_period.add_argument("values", nargs="+", metavar="MODE")
    p_period.set_defaults(func=_cmd_period)

    p_exj = sub.add_parser("export-json", help="Exportar caminatas y ruta a JSON")
    p_exj.add_argument("out")
    p_exj.set_defaults(func=_cmd_export_json)

    p_imj = sub.add_parser("import-json", help="Reemplazar datos desde un JSON exportado")
    p_imj.add_argument("file")
    p_imj.add_argument("--no-route", action="store_true", help="No pedir la polilínea de la ruta")
    p_imj.set_defaults(func=_cmd_import_json)

    p_exx = sub.add_parser("export-xlsx", help="Exportar historial a Excel")
    p_exx.add_argument("out")
    p_exx.add_argument("--period", nargs="+", default=None, metavar="MODE", help="Agregar checkpoints")
    p_exx.set_defaults(func=_cmd_export_xlsx)

    p_sync = sub.add_parser("sync", help="Fusionar caminatas con un archivo de sincronización")
    p_sync.add_argument("file")
    p_sync.set_defaults(func=_cmd_sync)

    p_cfg = sub.add_parser("config", help="Ver o cambiar la configuración")
    cfg_sub = p_cfg.add_subparsers(dest="config_cmd", required=True)
    p_cshow = cfg_sub.add_parser("show")
    p_cshow.set_defaults(func=_cmd_config_show)
    p_cset = cfg_sub.add_parser("set")
    p_cset.add_argument("key", choices=CONFIG_KEYS)
    p_cset.add_argument("value")
    p_cset.set_defaults(func=_cmd_config_set)

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    return build_parser().parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code (0 on success, 1 on a recoverable error).
    """
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = SQLiteStore(Path(ns.db).expanduser())
    handler: Handler = ns.func
    try:
        return int(handler(ns, store))
    except JourneyError as exc:
        print(f"ERROR: {exc}")
        return 1
    except requests.RequestException as exc:
        print(f"ERROR: network request failed: {exc}")
        return 1
