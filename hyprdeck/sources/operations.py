"""Rollback-capable edits of an APT sources file."""

import logging
import os
from pathlib import Path
from typing import Any, Callable

from hyprdeck.backup import BackupStore, restore_backup
from hyprdeck.errors import ValidationError
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.operations import Installer
from hyprdeck.orchestration.results import OperationResult, SetupStatus

from .model import SourcesList

_logging = logging.getLogger(__name__)

DEFAULT_SOURCES_FILE = Path("/etc/apt/sources.list")

SourcesEdit = Callable[[SourcesList], int]


def read_sources(path: Path) -> SourcesList:
    try:
        return SourcesList.parse(Path(path).read_text())
    except FileNotFoundError:
        raise ValidationError(f"sources file {path} not found")


class SourcesEditOperation(Installer):
    """Apply an edit to a sources file after backing it up."""

    def __init__(self, name: str, path: Path, edit: SourcesEdit, backups: BackupStore):
        self.path = Path(path)
        self.edit = edit
        self.backups = backups
        self.component = f"sources:{self.path.name}"
        self.name = name
        self.backup_id: str | None = None

    async def execute(self, ctx: RunContext) -> OperationResult:
        result = OperationResult.start(self.component, f"Updating {self.path}")
        try:
            sources = read_sources(self.path)
            changed = self.edit(sources)
            if not changed:
                return OperationResult.skipped(self.component, f"{self.path} already up to date")
            backup = self.backups.create([self.path], reason=self.name)
            tmp = self.path.with_name(f".{self.path.name}.hyprdeck-tmp")
            tmp.write_text(sources.render())
            os.chmod(tmp, self.path.stat().st_mode & 0o777)
            os.replace(tmp, self.path)
        except (OSError, ValidationError) as e:
            return result.with_error(e).with_details(str(e)).complete(
                SetupStatus.FAILED, f"Failed to update {self.path}"
            )

        self.backup_id = backup.id
        _logging.info(f"Updated {self.path} ({changed} change(s), backup {backup.id})")
        return result.with_details(
            f"{changed} line(s) changed", f"Backup {backup.id} at {backup.path}"
        ).complete(SetupStatus.COMPLETED, f"Updated {self.path}")

    async def rollback(self, ctx: RunContext) -> None:
        if self.backup_id is None:
            return
        errors = restore_backup(self.backups, self.backup_id)
        if errors:
            raise errors[0]

    def rollback_intent(self) -> dict[str, Any]:
        return {
            "action": "restore_backup",
            "component": self.component,
            "backup_id": self.backup_id,
        }


__all__ = ["DEFAULT_SOURCES_FILE", "SourcesEdit", "SourcesEditOperation", "read_sources"]
