"""File discovery and tolerant reading for stylesheet and component trees."""
from pathlib import Path
from typing import Iterable, List, Optional

from ..utils.logger import WarningLog

STYLESHEET_EXTENSIONS = ('.scss', '.css')
COMPONENT_EXTENSIONS = ('.tsx', '.jsx', '.ts', '.js', '.vue', '.html', '.svelte')

EXCLUDED_DIRS = {
    'node_modules', '.git', 'dist', 'build', 'coverage',
    '.next', '.nuxt', '.output', '.cache', 'vendor',
    '.venv', 'venv', '__pycache__', '.stylesweep',
}


def find_files(root: str | Path, extensions: Iterable[str]) -> List[Path]:
    """Recursively list files under root with one of the given extensions.

    Build output, dependency and VCS directories are skipped.

    Args:
        root: Directory to search
        extensions: Suffixes to match (e.g. '.scss'), compared case-insensitively

    Returns:
        Sorted list of absolute paths
    """
    root = Path(root).resolve()
    wanted = {ext.lower() for ext in extensions}
    found = []

    for path in root.rglob('*'):
        if path.suffix.lower() not in wanted or not path.is_file():
            continue
        relative_parts = path.relative_to(root).parts[:-1]
        if any(part in EXCLUDED_DIRS for part in relative_parts):
            continue
        found.append(path)

    return sorted(found)


def find_stylesheets(root: str | Path) -> List[Path]:
    return find_files(root, STYLESHEET_EXTENSIONS)


def find_components(root: str | Path) -> List[Path]:
    return find_files(root, COMPONENT_EXTENSIONS)


def read_text(path: Path, warnings: WarningLog) -> Optional[str]:
    """Read a file as UTF-8, recording a warning instead of raising.

    Args:
        path: File to read
        warnings: Log that receives 'read' or 'empty' warnings

    Returns:
        File text, or None if the file was unreadable or empty
    """
    try:
        text = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        warnings.warn('read', f"Skipped unreadable file ({e})", path)
        return None

    if not text.strip():
        warnings.warn('empty', "Skipped empty file", path)
        return None

    return text
