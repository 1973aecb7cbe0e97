"""Abstract base parser and the source/model types every format shares."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar

from infralint.core.models import PARSE_ERROR_RULE_ID, Diagnostic, FileType, Severity

__all__ = ["SourceFile", "ParsedModel", "BaseParser"]


@dataclass(frozen=True)
class SourceFile:
    """Raw text of one input file, split into lines."""

    path: str
    lines: tuple[str, ...]
    file_type: FileType = FileType.UNKNOWN

    @classmethod
    def from_text(cls, path: str, text: str, file_type: FileType = FileType.UNKNOWN) -> SourceFile:
        return cls(path=path, lines=tuple(text.splitlines()), file_type=file_type)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class ParsedModel:
    """Common shape of every parsed variant; ``file_type`` is the variant tag."""

    file_type: ClassVar[FileType] = FileType.UNKNOWN

    path: str
    errors: list[Diagnostic] = field(default_factory=list)


class BaseParser(ABC):
    """Interface that each format parser must implement."""

    file_type: FileType = FileType.UNKNOWN

    @abstractmethod
    def parse(self, source: SourceFile) -> ParsedModel:
        """Turn raw lines into a position-tagged model; never raises on bad input."""

    @staticmethod
    def parse_error(source: SourceFile, line: int, message: str, column: int = 0) -> Diagnostic:
        return Diagnostic(
            severity=Severity.ERROR, path=source.path, line=line, column=column,
            rule_id=PARSE_ERROR_RULE_ID, message=message,
        )
