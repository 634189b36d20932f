"""Class-name validity checks and confidence scoring.

Confidence is a heuristic safety signal, not a correctness guarantee. HIGH means
a name looks like an intentional, hand-written, stable selector; LOW flags
patterns typical of generated or templated output, which static text scanning
is least likely to match correctly.
"""
import re
from enum import Enum
from pathlib import Path

VALID_NAME = re.compile(r'^[A-Za-z][A-Za-z0-9_-]*$')
KEBAB_NAME = re.compile(r'^[a-z]+(-[a-z]+)*$')
BEM_ELEMENT_AND_MODIFIER = re.compile(r'__.+--')
DIGIT_RUN = re.compile(r'\d{3,}')

# Tokens that show up after a '.' in URLs, namespaces, file names and data URIs
DENY_LIST = {
    'com', 'org', 'net', 'www', 'http', 'https',
    'svg', 'xml', 'xmlns', 'w3', 'html', 'xhtml',
    'png', 'jpg', 'jpeg', 'gif', 'webp', 'avif', 'ico', 'bmp',
    'woff', 'woff2', 'ttf', 'otf', 'eot',
    'css', 'scss', 'sass', 'js', 'json',
    'base64', 'utf8', 'charset',
}

COMPONENT_DIRS = {'components', 'features'}
GENERATED_DIRS = {'mixins', 'utilities', 'utils', 'helpers'}


class Confidence(Enum):
    """Trust tier for an unused finding."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]

    def meets(self, threshold: "Confidence") -> bool:
        """True if this tier is at or above the threshold in trust."""
        return self.rank >= threshold.rank

    @classmethod
    def parse(cls, value: "str | Confidence") -> "Confidence":
        if isinstance(value, Confidence):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown confidence level: {value!r}") from None


def is_valid_class_name(name: str) -> bool:
    """Reject names that cannot be real, human-meaningful class selectors."""
    if not VALID_NAME.match(name):
        return False
    if name.isdigit():
        return False
    return name.lower() not in DENY_LIST


def _path_has_dir(source_file: str | Path, tokens: set) -> bool:
    parts = {part.lower() for part in Path(source_file).parts[:-1]}
    return not parts.isdisjoint(tokens)


def classify(name: str, source_file: str | Path) -> Confidence:
    """Assign a confidence tier to a class name defined in source_file.

    Rules are evaluated in order and the first match wins. Only the directories
    in source_file count, so pass the path relative to the styles root to keep
    an enclosing checkout directory (e.g. src/components/styles) from lifting
    every file to HIGH; pass the full path to score on it instead.
    """
    if KEBAB_NAME.match(name):
        return Confidence.HIGH
    if BEM_ELEMENT_AND_MODIFIER.search(name):
        return Confidence.HIGH
    if _path_has_dir(source_file, COMPONENT_DIRS):
        return Confidence.HIGH
    if len(name) < 3:
        return Confidence.LOW
    if DIGIT_RUN.search(name):
        return Confidence.LOW
    if _path_has_dir(source_file, GENERATED_DIRS) and name.endswith(('-', '_')):
        return Confidence.LOW
    return Confidence.MEDIUM
