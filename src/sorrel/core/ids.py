from __future__ import annotations

import hashlib
import re

import ulid

RUN_ID_RE = re.compile(r"^run_[0-9A-Z]{26}$")
SCENARIO_ID_RE = re.compile(r"^sc_[0-9a-f]{12}$")


def _hex12(payload: str) -> str:
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()[:12]


def run_id() -> str:
    return f"run_{ulid.new()}"


def scenario_id(*, feature_name: str, line: int) -> str:
    """Stable id for a scenario: same feature name and line, same id."""
    return f"sc_{_hex12(f'scenario|{feature_name}|{line}')}"


def is_run_id(value: str) -> bool:
    return bool(RUN_ID_RE.fullmatch(value))


def is_scenario_id(value: str) -> bool:
    return bool(SCENARIO_ID_RE.fullmatch(value))
