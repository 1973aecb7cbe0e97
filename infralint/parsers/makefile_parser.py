"""Makefile parser – targets, recipes, .PHONY declarations and variable references."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import ClassVar

from infralint.core.models import FileType
from infralint.parsers.base import BaseParser, ParsedModel, SourceFile

__all__ = ["RecipeLine", "Target", "VariableRef", "MakefileModel", "MakefileParser"]

_ASSIGN_RE = re.compile(r"^(?:export\s+|override\s+)*[A-Za-z0-9_.\-]+\s*(?::::=|::=|:=|\?=|\+=|!=|=)")
_TARGET_RE = re.compile(r"^(?P<names>[^\s:=#][^:=#]*?)\s*(?P<sep>::?)(?P<rest>.*)$")
_SPECIAL_TARGET_RE = re.compile(r"^\.[A-Z_]+$")
_CONDITIONAL_RE = re.compile(r"^(?:ifeq|ifneq|ifdef|ifndef|else|endif)\b")
_DIRECTIVE_RE = re.compile(r"^(?:-?include|sinclude|vpath|export|unexport|undefine)\b")
_DEFINE_RE = re.compile(r"^(?:export\s+|override\s+)*define\b")
_VAR_REF_RE = re.compile(r"(?<!\$)\$[({]([A-Za-z_][A-Za-z0-9_.\-]*)(?::[^)}]*)?[)}]")


@dataclass(frozen=True)
class RecipeLine:
    text: str
    line: int


@dataclass(frozen=True)
class Target:
    name: str
    line: int
    prerequisites: list[str] = field(default_factory=list)
    recipe: list[RecipeLine] = field(default_factory=list)
    double_colon: bool = False


@dataclass(frozen=True)
class VariableRef:
    name: str
    quoted: bool
    line: int
    column: int = 0


@dataclass(frozen=True)
class MakefileModel(ParsedModel):
    file_type: ClassVar[FileType] = FileType.MAKEFILE

    targets: list[Target] = field(default_factory=list)
    phony: set[str] = field(default_factory=set)
    variable_refs: list[VariableRef] = field(default_factory=list)


class MakefileParser(BaseParser):
    file_type = FileType.MAKEFILE

    def parse(self, source: SourceFile) -> MakefileModel:
        lines = source.lines
        total = len(lines)
        targets: list[Target] = []
        phony: set[str] = set()
        refs: list[VariableRef] = []
        errors = []
        current: list[Target] = []
        in_define = False

        i = 0
        while i < total:
            raw = lines[i]
            lineno = i + 1

            if in_define:
                if raw.strip().startswith("endef"):
                    in_define = False
                i += 1
                continue

            if raw.startswith("\t"):
                if not current:
                    if raw.strip() and not raw.strip().startswith("#"):
                        errors.append(self.parse_error(source, lineno, "Recipe line found before any target", 1))
                    i += 1
                    continue
                # A recipe line and any backslash-continued lines that follow it.
                while True:
                    text = lines[i][1:] if lines[i].startswith("\t") else lines[i]
                    self._add_recipe_line(current, refs, lines[i], text, i + 1)
                    if not lines[i].rstrip().endswith("\\") or i + 1 >= total:
                        break
                    i += 1
                i += 1
                continue

            stripped = raw.strip()
            if not stripped or stripped.startswith("#"):
                i += 1
                continue

            if current and raw[0] == " " and "=" not in stripped and not _CONDITIONAL_RE.match(stripped):
                errors.append(self.parse_error(
                    source, lineno, "Recipe line must start with a tab, not spaces", 1,
                ))
                i += 1
                continue

            text = raw
            while text.rstrip().endswith("\\") and i + 1 < total:
                i += 1
                text = text.rstrip()[:-1] + " " + lines[i].strip()
            stripped = text.strip()

            if _CONDITIONAL_RE.match(stripped):
                pass
            elif _DEFINE_RE.match(stripped):
                in_define = True
                current = []
            elif _ASSIGN_RE.match(stripped) or _DIRECTIVE_RE.match(stripped):
                current = []
            else:
                match = _TARGET_RE.match(text) if raw[0] not in " \t" else None
                if match is None:
                    errors.append(self.parse_error(source, lineno, f"Missing separator in '{stripped}'", 1))
                    current = []
                else:
                    current = self._start_targets(match, text, lineno, targets, phony, refs)
            i += 1

        return MakefileModel(path=source.path, errors=errors, targets=targets, phony=phony, variable_refs=refs)

    def _start_targets(
        self, match: re.Match[str], text: str, lineno: int,
        targets: list[Target], phony: set[str], refs: list[VariableRef],
    ) -> list[Target]:
        rest = match.group("rest")
        inline_recipe: str | None = None
        if ";" in rest:
            rest, inline_recipe = rest.split(";", 1)
        rest = rest.split("#", 1)[0]
        names = match.group("names").split()
        prerequisites = [p for p in rest.split() if p != "|"]

        if any(_SPECIAL_TARGET_RE.match(n) for n in names):
            if ".PHONY" in names:
                phony.update(prerequisites)
            return []
        if "=" in rest:
            # Target-specific variable assignment, not a rule.
            return []

        started = [
            Target(name=name, line=lineno, prerequisites=list(prerequisites), double_colon=match.group("sep") == "::")
            for name in names
        ]
        targets.extend(started)
        if inline_recipe is not None and inline_recipe.strip():
            offset = text.index(";") + 1
            for target in started:
                target.recipe.append(RecipeLine(text=inline_recipe.strip(), line=lineno))
            refs.extend(_variable_refs(inline_recipe, lineno, offset))
        return started

    @staticmethod
    def _add_recipe_line(current: list[Target], refs: list[VariableRef], raw: str, text: str, lineno: int) -> None:
        for target in current:
            target.recipe.append(RecipeLine(text=text.strip(), line=lineno))
        refs.extend(_variable_refs(raw, lineno))


def _variable_refs(text: str, line: int, offset: int = 0) -> list[VariableRef]:
    return [
        VariableRef(name=m.group(1), quoted=_inside_quotes(text, m.start()), line=line, column=offset + m.start() + 1)
        for m in _VAR_REF_RE.finditer(text)
    ]


def _inside_quotes(text: str, position: int) -> bool:
    quote: str | None = None
    escaped = False
    for ch in text[:position]:
        if escaped:
            escaped = False
        elif ch == "\\" and quote != "'":
            escaped = True
        elif quote is not None:
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
    return quote is not None
