"""Timestamped stylesheet backups with rollback and restoration."""
import shutil
import secrets
from dataclasses import dataclass
from pathlib import Path
from datetime import datetime
from typing import List, Tuple

from .manifest import Manifest
from ..errors import BackupError


@dataclass(frozen=True)
class BackupRecord:
    """A byte-for-byte copy of a stylesheet taken just before it is rewritten."""
    original_path: Path
    backup_path: Path
    timestamp: str
    backup_id: str = ""


class BackupManager:
    """Creates backups next to the original file and restores them on demand.

    Backups are never overwritten: a name collision gets a random suffix.
    """

    def __init__(self, manifest_dir: str | Path | None = None):
        """Initialize backup manager.

        Args:
            manifest_dir: Directory for manifest.json; None disables the manifest
        """
        self.manifest = Manifest(manifest_dir) if manifest_dir is not None else None

    def backup(self, file_path: str | Path) -> BackupRecord:
        """Copy file_path to '<name>.<YYYYmmdd_HHMMSS>.bak' beside it.

        Args:
            file_path: Stylesheet about to be rewritten

        Returns:
            BackupRecord for the new copy

        Raises:
            BackupError: If the copy cannot be created or does not match
        """
        file_path = Path(file_path)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = file_path.with_name(f"{file_path.name}.{timestamp}.bak")
        while backup_path.exists():
            backup_path = file_path.with_name(
                f"{file_path.name}.{timestamp}_{secrets.token_hex(3)}.bak"
            )

        try:
            shutil.copy2(file_path, backup_path)
            original_hash = Manifest.calculate_file_hash(file_path)
            backup_hash = Manifest.calculate_file_hash(backup_path)
        except OSError as e:
            raise BackupError(f"Could not back up {file_path}: {e}") from e

        if original_hash != backup_hash:
            raise BackupError(f"Backup of {file_path} does not match the original")

        backup_id = f"{timestamp}_{secrets.token_hex(3)}"
        if self.manifest is not None:
            try:
                self.manifest.add_backup(
                    backup_id=backup_id,
                    original_path=str(file_path.resolve()),
                    backup_path=str(backup_path.resolve()),
                    timestamp=timestamp,
                    file_hash=backup_hash,
                )
            except OSError as e:
                raise BackupError(f"Could not record backup of {file_path}: {e}") from e

        return BackupRecord(file_path, backup_path, timestamp, backup_id)

    def rollback(self, record: BackupRecord):
        """Put a backup back over its original.

        Raises:
            BackupError: If the backup is missing or cannot be copied
        """
        _copy_back(record.backup_path, record.original_path)
        if self.manifest is not None and record.backup_id:
            self.manifest.mark_restored(record.backup_id)

    def restore(self, backup_id: str):
        """Restore one manifest entry, verifying the backup's hash first.

        Raises:
            ValueError: If the backup ID is unknown or no manifest is configured
            BackupError: If the backup is missing, altered or cannot be copied
        """
        if self.manifest is None:
            raise ValueError("Restore requires a backup manifest")

        record = self.manifest.get_backup(backup_id)
        if not record:
            raise ValueError(f"Backup ID not found: {backup_id}")

        # Already restored
        if record.get("restored", False):
            return

        backup_path = Path(record["backup_path"])
        if not backup_path.exists():
            raise BackupError(f"Backup file not found: {backup_path}")
        if Manifest.calculate_file_hash(backup_path) != record["file_hash"]:
            raise BackupError(f"Backup file was modified since it was taken: {backup_path}")

        _copy_back(backup_path, Path(record["original_path"]))
        self.manifest.mark_restored(backup_id)

    def restore_all(self) -> Tuple[List[dict], List[str]]:
        """Restore every unrestored backup, newest first.

        Restoring newest first means a file backed up by several runs ends up
        with its oldest recorded content.

        Returns:
            Tuple of (restored records, error messages)
        """
        if self.manifest is None:
            raise ValueError("Restore requires a backup manifest")

        restored = []
        errors = []
        for record in self.manifest.get_unrestored_backups():
            try:
                self.restore(record["id"])
                restored.append(record)
            except (ValueError, BackupError, OSError) as e:
                errors.append(f"{record['id']}: {e}")

        return restored, errors


def _copy_back(backup_path: Path, original_path: Path):
    if not backup_path.exists():
        raise BackupError(f"Backup file not found: {backup_path}")

    temp_path = original_path.with_name(f".{original_path.name}.restore.tmp")
    try:
        original_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(backup_path, temp_path)
        temp_path.replace(original_path)
    except OSError as e:
        temp_path.unlink(missing_ok=True)
        raise BackupError(f"Could not restore {original_path}: {e}") from e
