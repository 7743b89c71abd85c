"""Line-oriented textual protocol shared by experiment files and trained state.

A stream is a sequence of assignments, one per line::

    crossValidationFolds=10
    feature_tok=DependencyPath(minFeatureOccurrence=2, useRelationTypes=true)
    {
        0=<nsubj>dobj
        1=<nsubj
    }
    gridSearchParameterValues=C(0.1, 1, 10)

The right-hand side is either a bare value or a call ``Name(arg, ...)``.
Arguments of a component call are ``name=value`` pairs; arguments of a list
are bare values. An assignment may be followed by a ``{ ... }`` block of
``key=value`` lines. Blank lines and lines starting with ``#`` are skipped
outside blocks.

Inside values, ``\\``, ``,``, ``(``, ``)`` and newlines are backslash-escaped so
that any string survives a round trip.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import ConfigurationError

_ESCAPES = {"\\": "\\\\", ",": "\\,", "(": "\\(", ")": "\\)", "\n": "\\n"}
_UNESCAPES = {"\\": "\\", ",": ",", "(": "(", ")": ")", "n": "\n"}

BLOCK_OPEN = "{"
BLOCK_CLOSE = "}"


def escape_value(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def unescape_value(value: str) -> str:
    out = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "\\" and i + 1 < len(value):
            nxt = value[i + 1]
            out.append(_UNESCAPES.get(nxt, nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _find_unescaped(text: str, target: str, start: int = 0) -> int:
    i = start
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == target:
            return i
        i += 1
    return -1


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """Split on ``separator`` outside parentheses, honouring escapes.

    Pieces keep their escapes and are stripped of surrounding whitespace.
    """
    pieces: List[str] = []
    depth = 0
    current: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            current.append(text[i : i + 2])
            i += 2
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise ConfigurationError(f"Unbalanced ')' in '{text}'")
        if ch == separator and depth == 0:
            pieces.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    if depth != 0:
        raise ConfigurationError(f"Unbalanced '(' in '{text}'")
    tail = "".join(current).strip()
    if tail or pieces:
        pieces.append(tail)
    return pieces


def split_pair(text: str) -> Tuple[str, str]:
    """Split ``name=value`` at the first unescaped ``=``."""
    idx = _find_unescaped(text, "=")
    if idx < 0:
        raise ConfigurationError(f"Expected 'name=value' but found '{text}'")
    return text[:idx].strip(), text[idx + 1 :].strip()


def parse_call(text: str) -> Tuple[str, List[str]]:
    """Parse ``Name(a, b, ...)`` into the name and its raw (escaped) arguments."""
    text = text.strip()
    open_idx = _find_unescaped(text, "(")
    if open_idx < 0 or not text.endswith(")"):
        raise ConfigurationError(f"Expected 'Name(...)' but found '{text}'")
    name = text[:open_idx].strip()
    inner = text[open_idx + 1 : -1]
    return name, split_top_level(inner)


def serialize_call(name: str, arguments: Iterable[str]) -> str:
    return f"{name}({', '.join(arguments)})"


def serialize_parameters(pairs: Iterable[Tuple[str, str]]) -> List[str]:
    return [f"{name}={escape_value(value)}" for name, value in pairs]


def serialize_list(values: Sequence[str]) -> str:
    return serialize_call("", [escape_value(v) for v in values])


def deserialize_list(text: str) -> List[str]:
    """Inverse of :func:`serialize_list`; also accepts ``name(...)`` forms."""
    _, arguments = parse_call(text)
    return [unescape_value(a) for a in arguments]


@dataclass
class Assignment:
    label: str
    value: str
    line: int


@dataclass
class BlockEntry:
    key: str
    value: str
    line: int


class ConfigReader:
    """Pull-style reader over the protocol, tracking 1-based line numbers."""

    def __init__(self, text: str):
        self._lines = text.splitlines()
        self._pos = 0

    @property
    def line(self) -> int:
        return self._pos

    def _skip_ignorable(self) -> None:
        while self._pos < len(self._lines):
            stripped = self._lines[self._pos].strip()
            if stripped and not stripped.startswith("#"):
                return
            self._pos += 1

    def read_assignment(self) -> Optional[Assignment]:
        self._skip_ignorable()
        if self._pos >= len(self._lines):
            return None
        raw = self._lines[self._pos].strip()
        self._pos += 1
        if raw == BLOCK_OPEN or raw == BLOCK_CLOSE:
            raise ConfigurationError("Block without a preceding assignment", line=self._pos)
        try:
            label, value = split_pair(raw)
        except ConfigurationError as e:
            raise e.at(line=self._pos)
        if not label:
            raise ConfigurationError("Missing label", line=self._pos)
        return Assignment(label=label, value=value, line=self._pos)

    def read_block(self) -> Optional[List[BlockEntry]]:
        """Consume a ``{ ... }`` block if one follows, else return ``None``."""
        self._skip_ignorable()
        if self._pos >= len(self._lines) or self._lines[self._pos].strip() != BLOCK_OPEN:
            return None
        start_line = self._pos + 1
        self._pos += 1
        entries: List[BlockEntry] = []
        while self._pos < len(self._lines):
            raw = self._lines[self._pos].strip()
            self._pos += 1
            if raw == BLOCK_CLOSE:
                return entries
            if not raw:
                continue
            try:
                key, value = split_pair(raw)
            except ConfigurationError as e:
                raise e.at(line=self._pos)
            entries.append(BlockEntry(key=key, value=unescape_value(value), line=self._pos))
        raise ConfigurationError("Unterminated block", line=start_line)


def serialize_block(entries: Iterable[Tuple[str, str]], indent: str = "\t") -> str:
    body = [f"{indent}{key}={escape_value(value)}" for key, value in entries]
    return "\n".join([BLOCK_OPEN, *body, BLOCK_CLOSE])
