"""Env file parser – ``KEY=VALUE`` assignments with spacing and quoting preserved."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import ClassVar

from infralint.core.models import FileType
from infralint.parsers.base import BaseParser, ParsedModel, SourceFile

__all__ = ["Assignment", "EnvModel", "EnvParser", "unquote"]

_EXPORT_RE = re.compile(r"^export\s+")
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.\-]*$")
_INLINE_COMMENT_RE = re.compile(r"\s+#")
_QUOTES = ("'", '"')


@dataclass(frozen=True)
class Assignment:
    key: str
    raw_value: str
    quoted: bool
    line: int
    raw_key: str = ""
    equals_column: int = 0

    @property
    def value(self) -> str:
        """The value with surrounding quotes or a trailing comment removed."""
        return unquote(self.raw_value)

    @property
    def has_spacing(self) -> bool:
        return self.raw_key != self.raw_key.rstrip() or self.raw_value != self.raw_value.lstrip()


@dataclass(frozen=True)
class EnvModel(ParsedModel):
    file_type: ClassVar[FileType] = FileType.ENV

    assignments: list[Assignment] = field(default_factory=list)


class EnvParser(BaseParser):
    file_type = FileType.ENV

    def parse(self, source: SourceFile) -> EnvModel:
        assignments: list[Assignment] = []
        errors = []
        for index, raw in enumerate(source.lines):
            lineno = index + 1
            stripped = raw.strip()
            if not stripped or stripped.startswith("#"):
                continue

            body = raw.lstrip()
            prefix = len(raw) - len(body)
            export = _EXPORT_RE.match(body)
            if export:
                prefix += export.end()
                body = body[export.end():]

            if "=" not in body:
                errors.append(self.parse_error(source, lineno, f"Expected KEY=VALUE, got '{stripped}'", prefix + 1))
                continue
            raw_key, raw_value = body.split("=", 1)
            key = raw_key.strip()
            if not key:
                errors.append(self.parse_error(source, lineno, "Missing key before '='", prefix + 1))
                continue
            if not _KEY_RE.match(key):
                errors.append(self.parse_error(source, lineno, f"Invalid key '{key}'", prefix + 1))
                continue

            value_text = raw_value.strip()
            quoted = value_text[:1] in _QUOTES
            end = _closing_quote(value_text) if quoted else None
            if quoted and end is None:
                errors.append(self.parse_error(source, lineno, f"Unterminated quoted value for '{key}'"))
                continue
            if quoted:
                trailing = value_text[end + 1:].strip()
                if trailing and not trailing.startswith("#"):
                    errors.append(self.parse_error(source, lineno, f"Unexpected text after quoted value for '{key}'"))
                    continue

            assignments.append(Assignment(
                key=key, raw_value=raw_value, quoted=quoted, line=lineno,
                raw_key=raw_key, equals_column=prefix + len(raw_key) + 1,
            ))
        return EnvModel(path=source.path, errors=errors, assignments=assignments)


def unquote(raw_value: str) -> str:
    text = raw_value.strip()
    if text[:1] in _QUOTES:
        end = _closing_quote(text)
        return text[1:end] if end is not None else text[1:]
    return _INLINE_COMMENT_RE.split(text, 1)[0].rstrip()


def _closing_quote(text: str) -> int | None:
    quote = text[0]
    escaped = False
    for index in range(1, len(text)):
        ch = text[index]
        if escaped:
            escaped = False
        elif ch == "\\" and quote == '"':
            escaped = True
        elif ch == quote:
            return index
    return None
