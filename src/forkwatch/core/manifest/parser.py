"""
Manifest parser.

Reads the hand-editable parts of a generated ``<Unit>.manifest.ts`` file.
The file is TypeScript, but only a small subset matters here, described by
this grammar:

    manifest := ... "const" "VERSIONS" "=" object ...
    object   := "{" [ entry { "," entry } [ "," ] ] "}"
    entry    := key ":" ( object | value )
    key      := STRING | WORD
    value    := any tokens up to "," or "}" at nesting depth 0

Comments and whitespace are skipped by the tokenizer, so reformatted or
multi-line blocks parse the same as generated ones. Render references are
never trusted from disk; only ``label`` and ``description`` string values are
read back.

Two entry points:

- ``parse_document`` is strict and raises ManifestSyntaxError. It keeps the
  character spans of entries and field values for in-place edits.
- ``parse`` is tolerant and returns an empty mapping on any failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from forkwatch.core.errors import ManifestSyntaxError
from forkwatch.core.versions.models import VersionMetadata

logger = logging.getLogger(__name__)

EXPORT_NAME = "VERSIONS"

STRING = "string"
WORD = "word"
PUNCT = "punct"

_OPENERS = {"{": "}", "(": ")", "[": "]"}
_CLOSERS = {"}", ")", "]"}
_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int
    value: str | None = None


@dataclass
class ManifestField:
    """A ``name: value`` pair inside a version block."""

    name: str
    raw: str
    start: int
    end: int
    value: str | None = None


@dataclass
class ManifestEntry:
    """One version block: ``"v1": { render: ..., label: "..." }``."""

    key: str
    start: int
    end: int
    fields: dict[str, ManifestField] = field(default_factory=dict)

    @property
    def metadata(self) -> VersionMetadata:
        label = self.fields.get("label")
        description = self.fields.get("description")
        return VersionMetadata(
            label=label.value if label else None,
            description=description.value if description else None,
        )


@dataclass
class ManifestDocument:
    """Structured view of a manifest file."""

    text: str
    start: int
    end: int
    entries: dict[str, ManifestEntry] = field(default_factory=dict)

    def keys(self) -> set[str]:
        return set(self.entries)

    def metadata(self) -> dict[str, VersionMetadata]:
        return {key: entry.metadata for key, entry in self.entries.items()}


def tokenize(text: str) -> list[Token]:
    """
    Split manifest text into tokens.

    Raises:
        ManifestSyntaxError: On an unterminated string or block comment
    """
    tokens: list[Token] = []
    i = 0
    length = len(text)

    while i < length:
        char = text[i]

        if char.isspace():
            i += 1
            continue

        if text.startswith("//", i):
            newline = text.find("\n", i)
            i = length if newline == -1 else newline + 1
            continue

        if text.startswith("/*", i):
            close = text.find("*/", i + 2)
            if close == -1:
                raise ManifestSyntaxError("Unterminated comment", offset=i)
            i = close + 2
            continue

        if char in "\"'`":
            end, value = _read_string(text, i)
            tokens.append(Token(STRING, text[i:end], i, end, value))
            i = end
            continue

        if char.isalnum() or char in "_$":
            start = i
            while i < length and (text[i].isalnum() or text[i] in "_$."):
                i += 1
            tokens.append(Token(WORD, text[start:i], start, i))
            continue

        tokens.append(Token(PUNCT, char, i, i + 1))
        i += 1

    return tokens


def _read_string(text: str, start: int) -> tuple[int, str]:
    quote = text[start]
    chars: list[str] = []
    i = start + 1

    while i < len(text):
        char = text[i]
        if char == "\\":
            if i + 1 >= len(text):
                break
            escaped = text[i + 1]
            if escaped == "u":
                digits = text[i + 2 : i + 6]
                if len(digits) == 4 and all(c in "0123456789abcdefABCDEF" for c in digits):
                    chars.append(chr(int(digits, 16)))
                    i += 6
                    continue
            if escaped == "\n":
                i += 2
                continue
            chars.append(_ESCAPES.get(escaped, escaped))
            i += 2
            continue
        if char == quote:
            return i + 1, "".join(chars)
        if char == "\n" and quote != "`":
            break
        chars.append(char)
        i += 1

    raise ManifestSyntaxError("Unterminated string literal", offset=start)


class _Parser:
    def __init__(self, text: str, tokens: list[Token]) -> None:
        self.text = text
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            raise ManifestSyntaxError("Unexpected end of manifest", offset=len(self.text))
        self.pos += 1
        return token

    def expect(self, text: str) -> Token:
        token = self.advance()
        if token.kind != PUNCT or token.text != text:
            raise ManifestSyntaxError(f"Expected '{text}', found '{token.text}'", token.start)
        return token

    def at(self, text: str) -> bool:
        token = self.peek()
        return token is not None and token.kind == PUNCT and token.text == text

    def seek_export(self) -> None:
        """Position the parser on the ``{`` opening the VERSIONS object."""
        tokens = self.tokens
        for i in range(len(tokens) - 3):
            window = tokens[i : i + 4]
            if (
                window[0].kind == WORD
                and window[0].text == "const"
                and window[1].kind == WORD
                and window[1].text == EXPORT_NAME
                and window[2].text == "="
                and window[3].text == "{"
            ):
                self.pos = i + 3
                return
        raise ManifestSyntaxError(f"No 'const {EXPORT_NAME} = {{' declaration found")

    def parse_versions(self) -> ManifestDocument:
        open_brace = self.expect("{")
        entries: dict[str, ManifestEntry] = {}

        while not self.at("}"):
            key_token = self.parse_key()
            self.expect(":")
            if self.at("{"):
                key = key_token.value if key_token.kind == STRING else key_token.text
                entry = self.parse_block(key)
                entries[entry.key] = entry
            else:
                # Non-object values are not version blocks
                self.parse_value()
            if not self.at("}"):
                self.expect(",")

        close_brace = self.expect("}")
        return ManifestDocument(
            text=self.text,
            start=open_brace.start,
            end=close_brace.end,
            entries=entries,
        )

    def parse_key(self) -> Token:
        token = self.advance()
        if token.kind not in (STRING, WORD):
            raise ManifestSyntaxError(f"Expected a key, found '{token.text}'", token.start)
        return token

    def parse_block(self, key: str) -> ManifestEntry:
        open_brace = self.expect("{")
        fields: dict[str, ManifestField] = {}

        while not self.at("}"):
            name_token = self.parse_key()
            name = name_token.value if name_token.kind == STRING else name_token.text
            self.expect(":")
            value_tokens = self.parse_value()
            if not value_tokens:
                raise ManifestSyntaxError(f"Missing value for '{name}'", name_token.end)
            start, end = value_tokens[0].start, value_tokens[-1].end
            value = value_tokens[0].value if (
                len(value_tokens) == 1 and value_tokens[0].kind == STRING
            ) else None
            fields[name] = ManifestField(
                name=name,
                raw=self.text[start:end],
                start=start,
                end=end,
                value=value,
            )
            if not self.at("}"):
                self.expect(",")

        close_brace = self.expect("}")
        return ManifestEntry(key=key, start=open_brace.start, end=close_brace.end, fields=fields)

    def parse_value(self) -> list[Token]:
        """Collect tokens up to a ``,`` or ``}`` at nesting depth 0."""
        collected: list[Token] = []
        stack: list[str] = []

        while True:
            token = self.peek()
            if token is None:
                raise ManifestSyntaxError("Unexpected end of manifest", offset=len(self.text))
            if token.kind == PUNCT:
                if not stack and token.text in (",", "}"):
                    return collected
                if token.text in _OPENERS:
                    stack.append(_OPENERS[token.text])
                elif token.text in _CLOSERS:
                    if not stack or stack.pop() != token.text:
                        raise ManifestSyntaxError(
                            f"Unbalanced '{token.text}'", offset=token.start
                        )
            collected.append(self.advance())


def parse_document(text: str) -> ManifestDocument:
    """
    Parse manifest text strictly.

    Args:
        text: Full manifest file content

    Returns:
        ManifestDocument with entries keyed by version key

    Raises:
        ManifestSyntaxError: If the text does not match the grammar
    """
    parser = _Parser(text, tokenize(text))
    parser.seek_export()
    return parser.parse_versions()


def parse(text: str) -> dict[str, VersionMetadata]:
    """
    Parse label/description metadata from manifest text.

    Fails soft: any structural problem yields an empty mapping so that
    regeneration can always proceed.

    Example:
        >>> parse('export const VERSIONS = { "v1": { render: A, label: "Draft" } }')
        {'v1': VersionMetadata(label='Draft', description=None)}
    """
    try:
        return parse_document(text).metadata()
    except ManifestSyntaxError as e:
        logger.debug("Ignoring unparseable manifest: %s", e)
        return {}
