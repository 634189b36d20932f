"""Configuration management for stylesweep.

Loads environment variables (and an optional .env in the working directory)
and provides centralized config access. CLI options override these values.
"""
import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

__version__ = "1.2.0"

# Utility-class prefixes that are almost always composed dynamically or come
# from a design-system layer, so they are never reported or deleted.
DEFAULT_EXCLUDE_PATTERNS = [
    "m-*", "mt-*", "mb-*", "ml-*", "mr-*", "mx-*", "my-*",
    "p-*", "pt-*", "pb-*", "pl-*", "pr-*", "px-*", "py-*",
    "gap-*", "w-*", "h-*", "col-*", "row-*", "grid-*",
    "flex*", "d-*", "align-*", "justify-*", "order-*",
    "text-*", "font-*", "fw-*", "fs-*", "lh-*",
    "hidden", "visible", "sr-only",
    "is-*", "has-*", "js-*",
]

CONFIDENCE_LEVELS = ("high", "medium", "low")
OUTPUT_FORMATS = ("summary", "detailed", "json")

_TRUTHY = {"1", "true", "yes", "on"}


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_file: str | Path | None = None):
        """Initialize config by loading a .env file.

        Args:
            env_file: Explicit .env path (default: .env in the working directory)
        """
        env_path = Path(env_file) if env_file else Path.cwd() / ".env"
        load_dotenv(env_path)

        self._validate()

    def _validate(self):
        """Validate enumerated settings.

        Raises:
            ValueError: If STYLESWEEP_CONFIDENCE or STYLESWEEP_FORMAT is unknown
        """
        if self.confidence not in CONFIDENCE_LEVELS:
            raise ValueError(
                f"STYLESWEEP_CONFIDENCE must be one of {', '.join(CONFIDENCE_LEVELS)}, "
                f"got '{self.confidence}'."
            )
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"STYLESWEEP_FORMAT must be one of {', '.join(OUTPUT_FORMATS)}, "
                f"got '{self.output_format}'."
            )

    @property
    def styles_dir(self) -> str:
        """Root directory of stylesheet files."""
        return os.getenv("STYLESWEEP_STYLES_DIR", "src/styles")

    @property
    def components_dir(self) -> str:
        """Root directory of component source files."""
        return os.getenv("STYLESWEEP_COMPONENTS_DIR", "src")

    @property
    def exclude_patterns(self) -> List[str]:
        """Get exclusion globs.

        STYLESWEEP_EXCLUDE is a comma-separated list and replaces the defaults.

        Returns:
            List of glob patterns
        """
        raw = os.getenv("STYLESWEEP_EXCLUDE")
        if raw is None:
            return list(DEFAULT_EXCLUDE_PATTERNS)
        return [p.strip() for p in raw.split(",") if p.strip()]

    @property
    def confidence(self) -> str:
        """Minimum confidence tier to report (high, medium, low)."""
        return os.getenv("STYLESWEEP_CONFIDENCE", "medium").strip().lower()

    @property
    def output_format(self) -> str:
        """Report format (summary, detailed, json)."""
        return os.getenv("STYLESWEEP_FORMAT", "summary").strip().lower()

    @property
    def backup_enabled(self) -> bool:
        """Whether deletion creates backups before rewriting a stylesheet."""
        return os.getenv("STYLESWEEP_BACKUP", "true").strip().lower() in _TRUTHY


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
