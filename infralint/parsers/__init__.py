"""Format parsers, one per supported file type."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from infralint.core.models import FileType
from infralint.parsers.base import BaseParser, ParsedModel, SourceFile
from infralint.parsers.crontab_parser import CrontabParser
from infralint.parsers.dockerfile_parser import DockerfileParser
from infralint.parsers.env_parser import EnvParser
from infralint.parsers.makefile_parser import MakefileParser
from infralint.parsers.systemd_parser import SystemdParser

__all__ = ["PARSERS", "get_parser", "BaseParser", "ParsedModel", "SourceFile"]

PARSERS: Mapping[FileType, BaseParser] = MappingProxyType({
    parser.file_type: parser
    for parser in (DockerfileParser(), MakefileParser(), EnvParser(), CrontabParser(), SystemdParser())
})


def get_parser(file_type: FileType) -> BaseParser | None:
    return PARSERS.get(file_type)
