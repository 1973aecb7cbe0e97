"""Dockerfile parser – joins continuations and heredocs into instructions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import ClassVar

from infralint.core.models import FileType
from infralint.parsers.base import BaseParser, ParsedModel, SourceFile

__all__ = ["Instruction", "DockerfileModel", "DockerfileParser", "VALID_INSTRUCTIONS"]

VALID_INSTRUCTIONS: frozenset[str] = frozenset({
    "FROM", "RUN", "CMD", "LABEL", "MAINTAINER", "EXPOSE", "ENV",
    "ADD", "COPY", "ENTRYPOINT", "VOLUME", "USER", "WORKDIR",
    "ARG", "ONBUILD", "STOPSIGNAL", "HEALTHCHECK", "SHELL",
})

_DIRECTIVE_RE = re.compile(r"^#\s*([A-Za-z]+)\s*=\s*(\S+)\s*$")
_HEREDOC_RE = re.compile(r"<<-?([\"']?)([A-Za-z_][A-Za-z0-9_]*)\1")
_HEREDOC_KEYWORDS = frozenset({"RUN", "COPY", "ADD"})


@dataclass(frozen=True)
class Instruction:
    keyword: str
    arguments: str
    line: int
    column: int = 1
    end_line: int = 0


@dataclass(frozen=True)
class DockerfileModel(ParsedModel):
    file_type: ClassVar[FileType] = FileType.DOCKERFILE

    instructions: list[Instruction] = field(default_factory=list)

    def find(self, keyword: str) -> list[Instruction]:
        return [i for i in self.instructions if i.keyword == keyword]

    def has(self, keyword: str) -> bool:
        return any(i.keyword == keyword for i in self.instructions)


class DockerfileParser(BaseParser):
    file_type = FileType.DOCKERFILE

    def parse(self, source: SourceFile) -> DockerfileModel:
        lines = source.lines
        total = len(lines)
        instructions: list[Instruction] = []
        errors = []
        escape = "\\"

        i = 0
        # Parser directives are only honoured before anything else in the file.
        while i < total:
            match = _DIRECTIVE_RE.match(lines[i].strip())
            if match is None:
                break
            if match.group(1).lower() == "escape" and match.group(2) in ("\\", "`"):
                escape = match.group(2)
            i += 1

        while i < total:
            raw = lines[i]
            stripped = raw.strip()
            if not stripped or stripped.startswith("#"):
                i += 1
                continue

            start = i + 1
            column = len(raw) - len(raw.lstrip()) + 1
            text = stripped
            while text.endswith(escape):
                text = text[:-1].rstrip()
                i += 1
                while i < total and (not lines[i].strip() or lines[i].lstrip().startswith("#")):
                    i += 1
                if i >= total:
                    i = total - 1
                    break
                text = f"{text} {lines[i].strip()}"

            parts = text.split(None, 1)
            keyword = parts[0].upper()
            arguments = parts[1] if len(parts) > 1 else ""

            if keyword in _HEREDOC_KEYWORDS:
                body: list[str] = []
                for word in [m.group(2) for m in _HEREDOC_RE.finditer(arguments)]:
                    chunk, stop = self._consume_heredoc(lines, i + 1, word)
                    body.extend(chunk)
                    if stop is None:
                        errors.append(self.parse_error(source, start, f"Unterminated heredoc '{word}'", column))
                        i = total - 1
                        break
                    i = stop
                if body:
                    arguments = arguments + "\n" + "\n".join(body)

            if keyword == "ARG":
                i += 1
                continue
            if keyword not in VALID_INSTRUCTIONS:
                errors.append(self.parse_error(source, start, f"Unknown instruction '{parts[0]}'", column))
            else:
                instructions.append(Instruction(
                    keyword=keyword, arguments=arguments,
                    line=start, column=column, end_line=i + 1,
                ))
            i += 1

        if not any(inst.keyword == "FROM" for inst in instructions):
            errors.append(self.parse_error(source, 1, "Dockerfile has no FROM instruction"))
        return DockerfileModel(path=source.path, errors=errors, instructions=instructions)

    @staticmethod
    def _consume_heredoc(lines: tuple[str, ...], start: int, word: str) -> tuple[list[str], int | None]:
        for index in range(start, len(lines)):
            if lines[index].strip() == word:
                return list(lines[start:index]), index
        return list(lines[start:]), None
