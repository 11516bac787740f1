"""Templated configuration file deployment with backups."""

import logging
import os
import string
from pathlib import Path

from hyprdeck.backup import BackupStore, restore_backup
from hyprdeck.orchestration.context import RunContext

from .interfaces import DeployResult, FileSpec

_logging = logging.getLogger(__name__)


def expand_target(target: str, variables: dict[str, str]) -> Path:
    expanded = string.Template(target).safe_substitute(variables)
    return Path(os.path.expanduser(expanded))


def render_template(template: str, variables: dict[str, str]) -> str:
    """Substitute ``$name`` / ``${name}`` placeholders, leaving unknown ones intact."""
    return string.Template(template).safe_substitute(variables)


def should_backup_existing(path: Path) -> bool:
    return path.is_file() and not path.is_symlink()


class FileConfigDeployer:
    """Writes rendered templates to disk, backing up files it replaces."""

    def __init__(self, backups: BackupStore):
        self.backups = backups

    async def deploy_with_backup(
        self, ctx: RunContext, spec: FileSpec, variables: dict[str, str]
    ) -> DeployResult:
        target = expand_target(spec.target, variables)
        result = DeployResult(success=False, target=str(target))

        if should_backup_existing(target):
            try:
                backup = self.backups.create([target], reason=f"deploy {spec.component}")
                result.backup_id = backup.id
                result.backup_path = str(backup.path)
            except OSError as e:
                _logging.warning(f"Backup of {target} failed: {e}")
                result.warnings.append(f"backup of {target} failed: {e}")

        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(f".{target.name}.hyprdeck-tmp")
        tmp.write_text(render_template(spec.template, variables), encoding="utf-8")
        os.chmod(tmp, spec.mode)
        os.replace(tmp, target)
        result.success = True
        _logging.debug(f"Deployed {spec.component} config to {target}")
        return result

    async def undo(self, ctx: RunContext, result: DeployResult) -> None:
        """Put back whatever the deploy replaced, or remove the new file."""
        if result.backup_id:
            errors = restore_backup(self.backups, result.backup_id)
            if errors:
                raise errors[0]
            return
        Path(result.target).unlink(missing_ok=True)
