from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sorrel.core.errors import StepNotDefined
from sorrel.core.parser import ScenarioDescriptor, StepDescriptor
from sorrel.core.reporting import Reporter

logger = logging.getLogger(__name__)

FAILED = "failed"
UNDEFINED = "undefined"


@dataclass(frozen=True)
class Failure:
    feature_name: str
    scenario: ScenarioDescriptor
    step: StepDescriptor
    kind: str
    error: BaseException

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


class ScenarioRunner:
    """Runs one scenario's steps against a feature implementation.

    A failing or undefined step ends the scenario: the remaining steps are
    reported as skipped and a Failure is returned. Hook errors propagate.
    """

    def __init__(self, feature_name: str, implementation: Any, scenario: ScenarioDescriptor, reporter: Reporter) -> None:
        self.feature_name = feature_name
        self.implementation = implementation
        self.scenario = scenario
        self.reporter = reporter

    def run(self) -> Failure | None:
        logger.debug("Running scenario %r (line %d)", self.scenario.name, self.scenario.line)
        self.reporter.on_scenario_started(self.feature_name, self.scenario)
        self.implementation.run_hook("before_scenario", self.scenario)

        failure: Failure | None = None
        for step in self.scenario.steps:
            if failure is not None:
                self.reporter.on_step_skipped(step)
                continue
            failure = self._run_step(step)

        self.implementation.run_hook("after_scenario", self.scenario)
        self.reporter.on_scenario_finished(self.scenario, failure)
        return failure

    def _run_step(self, step: StepDescriptor) -> Failure | None:
        self.implementation.run_hook("before_step", step)
        try:
            self.implementation.execute_step(step)
        except StepNotDefined as exc:
            self.reporter.on_step_undefined(step)
            failure = Failure(self.feature_name, self.scenario, step, UNDEFINED, exc)
        except Exception as exc:
            self.reporter.on_step_failed(step, exc)
            failure = Failure(self.feature_name, self.scenario, step, FAILED, exc)
        else:
            self.reporter.on_step_passed(step)
            failure = None
        self.implementation.run_hook("after_step", step)
        return failure
