# pytest configuration hooks.
#
# Policy: No skipped tests. Skips hide real problems.
# If something cannot run in this environment, use xfail with a clear reason (and fix it later).

from __future__ import annotations

import os
from pathlib import Path
import pytest

from sorrel.core import config

# Register pytest-bdd step definitions as a pytest plugin so fixtures are discoverable.
pytest_plugins = ["tests.bdd.steps"]

_SKIP_COUNT = 0


def pytest_configure() -> None:
    # Keep the developer's own ~/.config/sorrel out of test runs (and of CLI subprocesses).
    if "SORREL_CONFIG_PATH" not in os.environ:
        path = Path(__file__).resolve().parents[1] / ".sorrel-test-config.toml"
        os.environ["SORREL_CONFIG_PATH"] = str(path)
    os.environ.pop("SORREL_STEPS", None)


@pytest.fixture(autouse=True)
def _fresh_config():
    config.reset_config_cache()
    yield
    config.reset_config_cache()


def pytest_runtest_logreport(report: pytest.TestReport) -> None:
    global _SKIP_COUNT
    if report.when == "setup" and report.outcome == "skipped":
        _SKIP_COUNT += 1


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    if _SKIP_COUNT > 0:
        pytest.exit(f"Skipped tests are not allowed (skipped={_SKIP_COUNT}).", returncode=2)
