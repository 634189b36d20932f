"""Backup manifest for restoring rewritten stylesheets."""
import json
from pathlib import Path
from datetime import datetime
from typing import List, Dict, Optional
import hashlib


class Manifest:
    """Manage a JSON manifest of stylesheet backups."""

    VERSION = "1.0"

    def __init__(self, manifest_dir: str | Path):
        """Initialize manifest.

        Args:
            manifest_dir: Directory holding manifest.json (created on first write)
        """
        self.manifest_dir = Path(manifest_dir)
        self.manifest_path = self.manifest_dir / "manifest.json"

    def _read_manifest(self) -> Dict:
        """Read manifest from disk.

        Returns:
            Manifest dictionary (empty if missing or unreadable)
        """
        try:
            with open(self.manifest_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            return {"version": self.VERSION, "backups": []}

        if not isinstance(data, dict) or not isinstance(data.get("backups"), list):
            return {"version": self.VERSION, "backups": []}
        return data

    def _write_manifest(self, data: Dict):
        """Write manifest to disk atomically.

        Args:
            data: Manifest dictionary to write
        """
        self.manifest_dir.mkdir(parents=True, exist_ok=True)
        temp_path = self.manifest_path.with_suffix('.tmp')
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        temp_path.replace(self.manifest_path)

    def add_backup(self, backup_id: str, original_path: str, backup_path: str,
                   timestamp: str, file_hash: str, reason: str = "class_removal"):
        """Add a backup record to the manifest.

        Args:
            backup_id: Unique backup identifier
            original_path: Stylesheet that is about to be rewritten
            backup_path: Byte-for-byte copy of the original
            timestamp: Timestamp embedded in the backup filename
            file_hash: SHA256 of the backup, verified before restoring
            reason: Why the backup was taken
        """
        manifest = self._read_manifest()

        manifest["backups"].append({
            "id": backup_id,
            "original_path": str(original_path),
            "backup_path": str(backup_path),
            "timestamp": timestamp,
            "created_at": datetime.now().isoformat(),
            "reason": reason,
            "file_hash": file_hash,
            "restored": False,
        })
        self._write_manifest(manifest)

    def get_backup(self, backup_id: str) -> Optional[Dict]:
        """Get backup record by ID, or None if not found."""
        for record in self._read_manifest()["backups"]:
            if record["id"] == backup_id:
                return record
        return None

    def mark_restored(self, backup_id: str):
        """Mark a backup as restored."""
        manifest = self._read_manifest()

        for record in manifest["backups"]:
            if record["id"] == backup_id:
                record["restored"] = True
                break

        self._write_manifest(manifest)

    def get_all_backups(self) -> List[Dict]:
        return self._read_manifest()["backups"]

    def get_unrestored_backups(self) -> List[Dict]:
        """Get unrestored backup records, newest first."""
        pending = [b for b in self.get_all_backups() if not b.get("restored", False)]
        return sorted(pending, key=lambda b: b.get("created_at", ""), reverse=True)

    @staticmethod
    def calculate_file_hash(file_path: str | Path) -> str:
        """Calculate SHA256 hash of file.

        Args:
            file_path: Path to file

        Returns:
            SHA256 hash as hex string
        """
        sha256_hash = hashlib.sha256()

        with open(file_path, "rb") as f:
            for byte_block in iter(lambda: f.read(4096), b""):
                sha256_hash.update(byte_block)

        return sha256_hash.hexdigest()
