"""Class selector extraction from SCSS/CSS source text.

This is a line-based state machine, not a grammar. A SelectorStack tracks the
class blocks that are currently open so nested BEM selectors (&__element,
&--modifier) resolve against their parent. The same scanner drives the
deletion engine, so extraction and deletion agree on what each line defines.
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .classifier import Confidence, classify, is_valid_class_name


class DefinitionContext(Enum):
    """How a class name was written in the stylesheet."""
    DIRECT = "direct"
    BEM_ELEMENT = "bem_element"
    BEM_MODIFIER = "bem_modifier"


@dataclass(frozen=True)
class ClassDefinition:
    """A class selector defined in one stylesheet."""
    name: str
    confidence: Confidence
    context: DefinitionContext
    source_file: str


# --- Pre-strip of non-selector constructs ---

URL_CALL = re.compile(r'url\(\s*(?:"[^"\n]*"|\'[^\'\n]*\'|[^)\n]*)\)', re.IGNORECASE)
COMMENT_OR_STRING = re.compile(
    r'"(?:\\.|[^"\\\n])*"'
    r"|'(?:\\.|[^'\\\n])*'"
    r'|/\*.*?\*/'
    r'|(?<![:\\])//[^\n]*',
    re.DOTALL,
)
DATA_URI = re.compile(r'data:[\w/+.-]+(?:;[\w=.+-]+)*,[^\s\'")]*', re.IGNORECASE)
NAMESPACE_FRAGMENT = re.compile(r'xmlns(?::[\w-]+)?=\S*|https?://[^\s\'")]*', re.IGNORECASE)
INTERPOLATION = re.compile(r"#\{[^{}]*\}")
# identifier(...), identifier.identifier(...) and bare (...) groups without
# nested parens, braces or semicolons; applied repeatedly for nesting.
CALL_OR_GROUP = re.compile(r'(?:[A-Za-z_][\w-]*(?:\.[A-Za-z_][\w-]*)?)?\([^(){};]*\)')


def _keep_newlines(match: re.Match) -> str:
    return '\n' * match.group(0).count('\n')


def _blank_comment_or_string(match: re.Match) -> str:
    token = match.group(0)
    if token[0] in '"\'':
        return token[0] * 2
    return _keep_newlines(match)


def strip_non_selectors(text: str) -> str:
    """Remove text that can look like '.identifier' but is never a selector.

    Comments, strings, url(...) payloads, data URIs, namespace/URL fragments,
    #{...} interpolation and function-call arguments are blanked. Newlines
    are preserved, so the result splits into the same number of lines as the
    input.
    """
    text = URL_CALL.sub('url()', text)
    text = COMMENT_OR_STRING.sub(_blank_comment_or_string, text)
    text = DATA_URI.sub('', text)
    text = NAMESPACE_FRAGMENT.sub('', text)
    text = INTERPOLATION.sub('', text)

    previous = None
    while previous != text:
        previous = text
        text = CALL_OR_GROUP.sub(_keep_newlines, text)

    return text


def _blank(match: re.Match) -> str:
    return re.sub(r'[^\n]', ' ', match.group(0))


def mask_non_selectors(text: str) -> str:
    """Column-preserving variant of strip_non_selectors.

    Blanked characters become spaces, so every offset in the result lines up
    with the input. Only constructs that can hide braces or semicolons are
    masked.
    """
    for pattern in (URL_CALL, COMMENT_OR_STRING, DATA_URI, NAMESPACE_FRAGMENT, INTERPOLATION):
        text = pattern.sub(_blank, text)
    return text


# --- Selector lines ---

BEM_ELEMENT = re.compile(r'^&__([A-Za-z0-9_-]+)')
BEM_MODIFIER = re.compile(r'^&--([A-Za-z0-9_-]+)')
CLASS_TOKEN = re.compile(r'\.([A-Za-z_-][\w-]*)')
ATTRIBUTE_SELECTOR = re.compile(r'\[[^\]]*\]')
# Extraction also splits after every brace or semicolon so one-line rules
# like ".a { &__b { } }" nest the same way as their multi-line form.
STATEMENT_BOUNDARY = re.compile(r'(?<=[{};])')


@dataclass
class SelectorMember:
    """One comma-separated member of a selector line, with resolved names."""
    names: List[Tuple[str, DefinitionContext]] = field(default_factory=list)
    primary: Optional[str] = None


def parse_selector_members(text: str, parent: Optional[str]) -> Optional[List[SelectorMember]]:
    """Resolve the class names on a cleaned selector line.

    Only lines starting with '.' or '&' are selector lines. BEM members need
    a parent; without one they resolve to nothing (ambiguous, so dropped).

    Returns:
        One SelectorMember per comma-separated member, or None if the line
        is not a class selector line
    """
    if not text or text[0] not in '.&':
        return None

    selector = text.split('{', 1)[0].strip()
    if '{' not in text and selector.endswith(';'):
        return None

    selector = ATTRIBUTE_SELECTOR.sub('', selector)
    members = []

    for raw_member in selector.split(','):
        raw_member = raw_member.strip()
        if not raw_member:
            continue

        member = SelectorMember()
        rest = raw_member
        bem = None

        for pattern, context, separator in (
            (BEM_ELEMENT, DefinitionContext.BEM_ELEMENT, '__'),
            (BEM_MODIFIER, DefinitionContext.BEM_MODIFIER, '--'),
        ):
            match = pattern.match(raw_member)
            if match:
                rest = raw_member[match.end():]
                if parent is not None:
                    bem = (f"{parent}{separator}{match.group(1)}", context)
                break

        if bem is not None and is_valid_class_name(bem[0]):
            member.names.append(bem)
            member.primary = bem[0]

        for token in CLASS_TOKEN.findall(rest):
            if is_valid_class_name(token):
                member.names.append((token, DefinitionContext.DIRECT))
                if bem is None:
                    member.primary = token

        members.append(member)

    return members


class SelectorStack:
    """Stack of open parent class names, aligned with brace depth.

    A name pushed when its block opens is popped when the brace that opened
    it is balanced. Closing past depth zero is ignored, so stray braces in
    malformed input never raise.
    """

    def __init__(self):
        self._frames: List[Tuple[str, int]] = []
        self.depth = 0

    @property
    def top(self) -> Optional[str]:
        return self._frames[-1][0] if self._frames else None

    def push(self, name: str):
        self._frames.append((name, self.depth + 1))

    def feed(self, text: str, opener: Optional[str] = None):
        """Apply a cleaned line's braces in order.

        Args:
            text: Line with comments and strings already removed
            opener: Class name to push at the line's first '{', if any
        """
        for char in text:
            if char == '{':
                if opener is not None:
                    self.push(opener)
                    opener = None
                self.depth += 1
            elif char == '}':
                if self.depth == 0:
                    continue
                self.depth -= 1
                while self._frames and self._frames[-1][1] > self.depth:
                    self._frames.pop()


@dataclass
class ScannedLine:
    """What one stylesheet line defines, before the scanner state is updated."""
    text: str
    members: Optional[List[SelectorMember]] = None
    opener: Optional[str] = None
    carry: Optional[str] = None

    @property
    def opens(self) -> int:
        return self.text.count('{')

    @property
    def closes(self) -> int:
        return self.text.count('}')

    @property
    def definitions(self) -> List[Tuple[str, DefinitionContext]]:
        if not self.members:
            return []
        return [name for member in self.members for name in member.names]


class SelectorScanner:
    """Line-by-line selector state machine shared by extraction and deletion.

    inspect() is side-effect free; commit() applies a line to the state.
    The deletion engine inspects a line, and only commits it when the line
    is kept, so removed blocks never disturb the stack.
    """

    def __init__(self):
        self.stack = SelectorStack()
        # Parent for a selector whose '{' has not been seen yet
        self.pending: Optional[str] = None

    def inspect(self, lines: List[str], index: int) -> Optional[ScannedLine]:
        """Describe lines[index] (a pre-stripped line); None for blank lines."""
        text = lines[index].strip()
        if not text:
            return None

        if text.startswith('@'):
            return ScannedLine(text=text)

        parent = self.pending if self.pending is not None else self.stack.top
        members = parse_selector_members(text, parent)

        if members is None:
            opener = self.pending if text.startswith('{') else None
            return ScannedLine(text=text, opener=opener)

        primary = None
        for member in members:
            if member.primary is not None:
                primary = member.primary

        scanned = ScannedLine(text=text, members=members)
        if '{' in text:
            scanned.opener = primary
        elif text.endswith(',') or _next_line_continues(lines, index):
            scanned.carry = primary if primary is not None else self.pending
        return scanned

    def commit(self, scanned: Optional[ScannedLine]):
        if scanned is None:
            return
        self.stack.feed(scanned.text, scanned.opener)
        self.pending = scanned.carry


def _next_line_continues(lines: List[str], index: int) -> bool:
    """One-line lookahead: does the selector's block open on the next line?

    True when the next non-blank line starts with '{' or is itself a nested
    selector. This is a heuristic and can misjudge multi-line headers.
    """
    for line in lines[index + 1:]:
        text = line.strip()
        if text:
            return text[0] in '{&'
    return False


def extract(text: str, source_file: str | Path = "<string>",
            scoring_path: str | Path | None = None) -> List[ClassDefinition]:
    """Extract class definitions from one stylesheet's text.

    Pure function over a text buffer: no file-system access.

    Args:
        text: SCSS or CSS source
        source_file: Path recorded on each definition
        scoring_path: Path whose directories drive confidence scoring
            (default: source_file); pass it relative to the styles root

    Returns:
        Definitions deduplicated by name, in first-seen order
    """
    source_file = str(source_file)
    if scoring_path is None:
        scoring_path = source_file
    lines = [
        statement
        for line in strip_non_selectors(text).split('\n')
        for statement in STATEMENT_BOUNDARY.split(line)
    ]
    scanner = SelectorScanner()
    found: Dict[str, ClassDefinition] = {}

    for index in range(len(lines)):
        scanned = scanner.inspect(lines, index)
        if scanned is not None:
            for name, context in scanned.definitions:
                if name not in found:
                    found[name] = ClassDefinition(
                        name=name,
                        confidence=classify(name, scoring_path),
                        context=context,
                        source_file=source_file,
                    )
        scanner.commit(scanned)

    return list(found.values())

