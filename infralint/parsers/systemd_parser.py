"""Systemd unit parser – ``[Section]`` headers and ``Key=Value`` directives."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import ClassVar

from infralint.core.models import FileType
from infralint.parsers.base import BaseParser, ParsedModel, SourceFile

__all__ = ["Directive", "Section", "SystemdModel", "SystemdParser"]

_HEADER_RE = re.compile(r"^\[([^\[\]]+)\]$")


@dataclass(frozen=True)
class Directive:
    key: str
    value: str
    line: int


@dataclass(frozen=True)
class Section:
    name: str
    line: int
    directives: list[Directive] = field(default_factory=list)

    def get(self, key: str) -> Directive | None:
        """Return the last directive named *key*; later assignments win."""
        found = None
        for directive in self.directives:
            if directive.key == key:
                found = directive
        return found


@dataclass(frozen=True)
class SystemdModel(ParsedModel):
    file_type: ClassVar[FileType] = FileType.SYSTEMD_UNIT

    sections: list[Section] = field(default_factory=list)

    def find(self, name: str) -> list[Section]:
        return [s for s in self.sections if s.name == name]


class SystemdParser(BaseParser):
    file_type = FileType.SYSTEMD_UNIT

    def parse(self, source: SourceFile) -> SystemdModel:
        lines = source.lines
        total = len(lines)
        sections: list[Section] = []
        errors = []
        current: Section | None = None

        i = 0
        while i < total:
            lineno = i + 1
            stripped = lines[i].strip()
            if not stripped or stripped[0] in "#;":
                i += 1
                continue

            if stripped.startswith("["):
                header = _HEADER_RE.match(stripped)
                if header is None:
                    errors.append(self.parse_error(source, lineno, f"Malformed section header '{stripped}'", 1))
                    current = None
                else:
                    current = Section(name=header.group(1).strip(), line=lineno)
                    sections.append(current)
                i += 1
                continue

            text = stripped
            while text.endswith("\\") and i + 1 < total:
                i += 1
                text = text[:-1].rstrip() + " " + lines[i].strip()

            if current is None:
                errors.append(self.parse_error(source, lineno, "Directive appears before any [Section] header", 1))
            elif "=" not in text:
                errors.append(self.parse_error(source, lineno, f"Expected Key=Value, got '{text}'", 1))
            else:
                key, value = text.split("=", 1)
                if not key.strip():
                    errors.append(self.parse_error(source, lineno, "Missing key before '='", 1))
                else:
                    current.directives.append(Directive(key=key.strip(), value=value.strip(), line=lineno))
            i += 1
        return SystemdModel(path=source.path, errors=errors, sections=sections)
