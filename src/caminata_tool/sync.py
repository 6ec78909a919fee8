"""Fusión de caminatas con un servicio de sincronización en la nube."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from caminata_tool.errors import InvalidWalkError, SnapshotFormatError
from caminata_tool.ledger import WalkLedger
from caminata_tool.model import RouteConfig, WalkEntry
from caminata_tool.snapshot import route_config_to_dict, walk_from_dict, walk_to_dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteChanges:
    """Records pulled from the cloud (raw, unvalidated) plus deletions."""

    walks: list[dict[str, Any]] = field(default_factory=list)
    removed_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class MergeResult:
    """Counts of what a merge changed locally."""

    added: int = 0
    updated: int = 0
    removed: int = 0
    skipped: int = 0


class CloudSync(ABC):
    """Abstract cloud store keyed by walk id."""

    @abstractmethod
    def pull(self) -> RemoteChanges:
        """Fetch remote walk records and deletions."""

    @abstractmethod
    def push(self, walks: Sequence[dict[str, Any]], route_config: RouteConfig | None) -> None:
        """Upload every local walk record and the route config."""


def _remote_wins(local: WalkEntry, remote: WalkEntry) -> bool:
    if local.logged_at is None or remote.logged_at is None:
        return True
    try:
        return remote.logged_at >= local.logged_at
    except TypeError:
        # naive vs aware timestamps
        return True


def merge_remote_walks(
    ledger: WalkLedger,
    remote_walks: Iterable[dict[str, Any]],
    removed_ids: Iterable[str] = (),
) -> MergeResult:
    """Merge remote records into ``ledger`` with last-writer-wins on ``logged_at``.

    Invalid remote records are skipped and logged. A record without a
    timestamp on either side replaces the local copy.
    """
    added = updated = removed = skipped = 0
    for raw in remote_walks:
        try:
            remote = walk_from_dict(raw)
        except InvalidWalkError as exc:
            logger.warning("Skipping invalid remote walk %r: %s", raw.get("id") if isinstance(raw, dict) else raw, exc)
            skipped += 1
            continue

        local = ledger.get(remote.id)
        if local is None:
            ledger.add(remote)
            added += 1
        elif local != remote and _remote_wins(local, remote):
            ledger.upsert(remote)
            updated += 1

    for walk_id in removed_ids:
        if ledger.remove(walk_id):
            removed += 1

    result = MergeResult(added=added, updated=updated, removed=removed, skipped=skipped)
    logger.info("Cloud merge: %s", result)
    return result


def sync_with_cloud(ledger: WalkLedger, route_config: RouteConfig | None, cloud: CloudSync) -> MergeResult:
    """Pull and merge remote changes, then push the merged ledger."""
    changes = cloud.pull()
    result = merge_remote_walks(ledger, changes.walks, changes.removed_ids)
    cloud.push([walk_to_dict(e) for e in ledger], route_config)
    return result


class JsonFileCloud(CloudSync):
    """Cloud store kept in one JSON file (a shared folder, a mounted drive).

    Layout: ``{"walks": [...], "deletedIds": [...], "routeConfig": {...}}``
    with walks in the export-file shape. A missing file is an empty store.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise SnapshotFormatError(f"Not a valid sync file: {exc}") from exc
        if not isinstance(payload, dict):
            raise SnapshotFormatError("Sync file must contain an object")
        return payload

    def pull(self) -> RemoteChanges:
        payload = self._read()
        walks = payload.get("walks") or []
        removed = payload.get("deletedIds") or []
        if not isinstance(walks, list) or not isinstance(removed, list):
            raise SnapshotFormatError("Sync file 'walks' and 'deletedIds' must be lists")
        return RemoteChanges(walks=walks, removed_ids=[str(i) for i in removed])

    def push(self, walks: Sequence[dict[str, Any]], route_config: RouteConfig | None) -> None:
        payload = self._read()
        payload["walks"] = list(walks)
        payload.setdefault("deletedIds", [])
        if route_config is not None:
            payload["routeConfig"] = route_config_to_dict(route_config)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        logger.info("Pushed %s walk(s) to %s", len(payload["walks"]), self._path)
