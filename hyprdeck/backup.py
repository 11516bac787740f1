"""Configuration backups: creation, restore and retention cleanup.

Each backup is a directory under the backup root holding copies of the
original files and a ``manifest.json`` recording where each copy came
from, so a restore knows where to put it back.
"""

import json
import logging
import shutil
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

from hyprdeck.errors import ValidationError
from hyprdeck.orchestration.results import utcnow

_logging = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"


@dataclass(frozen=True)
class BackupEntry:
    original: str
    stored: str
    size: int


@dataclass
class Backup:
    id: str
    created_at: datetime
    path: Path
    reason: str = ""
    entries: list[BackupEntry] = field(default_factory=list)

    @property
    def size_bytes(self) -> int:
        return sum(e.size for e in self.entries)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "reason": self.reason,
            "files": [e.original for e in self.entries],
            "size_bytes": self.size_bytes,
        }


class BackupStore:
    def __init__(self, root: Path):
        self.root = Path(root)

    def create(self, paths: list[Path], reason: str = "") -> Backup:
        """Copy the given files into a new backup."""
        created_at = utcnow()
        backup_id = f"{created_at.strftime('%Y%m%dT%H%M%S')}-{uuid.uuid4().hex[:8]}"
        backup_dir = self.root / backup_id
        files_dir = backup_dir / "files"
        files_dir.mkdir(parents=True, exist_ok=False)

        entries = []
        for index, source in enumerate(paths):
            source = Path(source)
            stored = f"{index:03d}-{source.name}"
            shutil.copy2(source, files_dir / stored)
            entries.append(
                BackupEntry(original=str(source), stored=stored, size=source.stat().st_size)
            )

        backup = Backup(backup_id, created_at, backup_dir, reason, entries)
        self._write_manifest(backup)
        _logging.debug(f"Created backup {backup_id} with {len(entries)} file(s)")
        return backup

    def _write_manifest(self, backup: Backup) -> None:
        manifest = {
            "id": backup.id,
            "created_at": backup.created_at.isoformat(),
            "reason": backup.reason,
            "files": [
                {"original": e.original, "stored": e.stored, "size": e.size}
                for e in backup.entries
            ],
        }
        (backup.path / MANIFEST_NAME).write_text(json.dumps(manifest, indent=2))

    def _read(self, backup_dir: Path) -> Backup:
        manifest = json.loads((backup_dir / MANIFEST_NAME).read_text())
        return Backup(
            id=manifest["id"],
            created_at=datetime.fromisoformat(manifest["created_at"]),
            path=backup_dir,
            reason=manifest.get("reason", ""),
            entries=[BackupEntry(**f) for f in manifest.get("files", [])],
        )

    def list_backups(self) -> list[Backup]:
        """All readable backups, newest first."""
        if not self.root.is_dir():
            return []
        backups = []
        for child in self.root.iterdir():
            if not (child / MANIFEST_NAME).is_file():
                continue
            try:
                backups.append(self._read(child))
            except (OSError, ValueError, KeyError, TypeError) as e:
                _logging.warning(f"Ignoring unreadable backup {child.name}: {e}")
        backups.sort(key=lambda b: b.created_at, reverse=True)
        return backups

    def get(self, backup_id: str) -> Backup | None:
        backup_dir = self.root / backup_id
        if not (backup_dir / MANIFEST_NAME).is_file():
            return None
        return self._read(backup_dir)

    def delete(self, backup_id: str) -> None:
        shutil.rmtree(self.root / backup_id)

    def stored_path(self, backup: Backup, entry: BackupEntry) -> Path:
        return backup.path / "files" / entry.stored


def restore_backup(store: BackupStore, backup_id: str) -> list[Exception]:
    """Copy every file of a backup back to its original location.

    Restoring continues past files that cannot be written; their errors
    are returned.
    """
    backup = store.get(backup_id)
    if backup is None:
        raise ValidationError(f"backup '{backup_id}' not found")

    errors: list[Exception] = []
    for entry in backup.entries:
        try:
            target = Path(entry.original)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(store.stored_path(backup, entry), target)
        except OSError as e:
            _logging.warning(f"Could not restore {entry.original}: {e}")
            errors.append(e)
    return errors


@dataclass
class CleanupResult:
    removed_ids: list[str] = field(default_factory=list)
    freed_bytes: int = 0
    remaining_count: int = 0
    dry_run: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return len(self.removed_ids)

    def to_dict(self) -> dict:
        return {
            "removed_count": self.removed_count,
            "removed_ids": list(self.removed_ids),
            "freed_bytes": self.freed_bytes,
            "remaining_count": self.remaining_count,
            "dry_run": self.dry_run,
            "errors": list(self.errors),
        }


def select_expired(
    backups: list[Backup], retention_days: int, keep_minimum: int, now: datetime
) -> list[Backup]:
    """Pick the backups a cleanup would remove.

    Backups older than the retention window are candidates, except that the
    newest candidates are kept back until at least keep_minimum remain.
    """
    if retention_days < 0:
        raise ValidationError("retention_days must not be negative")
    if keep_minimum < 0:
        raise ValidationError("keep_minimum must not be negative")

    cutoff = now - timedelta(days=retention_days)
    ordered = sorted(backups, key=lambda b: b.created_at, reverse=True)
    kept = [b for b in ordered if b.created_at >= cutoff]
    expired = [b for b in ordered if b.created_at < cutoff]

    shortfall = keep_minimum - len(kept)
    if shortfall > 0:
        expired = expired[shortfall:]
    return expired


def cleanup_backups(
    store: BackupStore,
    retention_days: int,
    keep_minimum: int,
    dry_run: bool = False,
    now: datetime | None = None,
) -> CleanupResult:
    backups = store.list_backups()
    expired = select_expired(backups, retention_days, keep_minimum, now or utcnow())

    result = CleanupResult(dry_run=dry_run)
    for backup in expired:
        if not dry_run:
            try:
                store.delete(backup.id)
            except OSError as e:
                _logging.warning(f"Could not remove backup {backup.id}: {e}")
                result.errors.append(f"{backup.id}: {e}")
                continue
        result.removed_ids.append(backup.id)
        result.freed_bytes += backup.size_bytes

    result.remaining_count = len(backups) - result.removed_count
    return result


__all__ = [
    "Backup",
    "BackupEntry",
    "BackupStore",
    "CleanupResult",
    "restore_backup",
    "select_expired",
    "cleanup_backups",
]
