from __future__ import annotations

import re
from dataclasses import dataclass

from sorrel.core.errors import MalformedIdentifier

_LINE_RE = re.compile(r"^[1-9][0-9]*$")


@dataclass(frozen=True)
class FeatureIdentifier:
    filename: str
    scenario_line: str | None = None

    def __str__(self) -> str:
        if self.scenario_line is None:
            return self.filename
        return f"{self.filename}:{self.scenario_line}"


def parse_identifier(identifier: str) -> FeatureIdentifier:
    """Split `path` or `path:line` into a FeatureIdentifier.

    The line is kept in string form; scenarios are selected by comparing it with
    the stringified scenario line.
    """
    if not identifier or not identifier.strip():
        raise MalformedIdentifier(identifier, "empty identifier")
    if ":" not in identifier:
        return FeatureIdentifier(filename=identifier)

    filename, line = identifier.rsplit(":", 1)
    if not filename:
        raise MalformedIdentifier(identifier, "missing file path")
    if not _LINE_RE.match(line):
        raise MalformedIdentifier(identifier, f"scenario line must be a positive integer, got {line!r}")
    return FeatureIdentifier(filename=filename, scenario_line=line)
