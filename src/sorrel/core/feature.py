from __future__ import annotations

import logging
from functools import cached_property
from typing import Any, Callable

from sorrel.core.identifiers import parse_identifier
from sorrel.core.parser import FeatureDocument, ScenarioDescriptor, parse_feature
from sorrel.core.registry import REGISTRY
from sorrel.core.reporting import Reporter
from sorrel.core.scenario import Failure, ScenarioRunner

logger = logging.getLogger(__name__)


class FeatureRunner:
    """Runs every selected scenario of one feature file.

    `identifier` is `path` or `path:line`; with a line only the scenario declared
    on that line runs. Parsing and implementation lookup happen lazily, once, and
    any error from them (or from the `before`/`after` hooks) propagates.
    """

    def __init__(
        self,
        identifier: str,
        reporter: Reporter,
        *,
        parser: Callable[[str], FeatureDocument] = parse_feature,
        resolver: Callable[[str], Any] = REGISTRY.resolve,
    ) -> None:
        parsed = parse_identifier(identifier)
        self.filename = parsed.filename
        self.scenario_line = parsed.scenario_line
        self.reporter = reporter
        self._parser = parser
        self._resolver = resolver

    @cached_property
    def data(self) -> FeatureDocument:
        return self._parser(self.filename)

    @cached_property
    def feature_name(self) -> str:
        return self.data.name

    @cached_property
    def scenarios(self) -> tuple[ScenarioDescriptor, ...]:
        return tuple(self.data.scenarios or ())

    @cached_property
    def implementation(self) -> Any:
        return self._resolver(self.feature_name)

    def _selected(self, scenario: ScenarioDescriptor) -> bool:
        return self.scenario_line is None or str(scenario.line) == self.scenario_line

    def run(self) -> bool:
        self.reporter.on_feature_started(self.feature_name)
        failures: list[Failure] = []

        self.implementation.run_hook("before", self.feature_name)

        ran = 0
        for scenario in self.scenarios:
            if not self._selected(scenario):
                continue
            ran += 1
            failure = ScenarioRunner(self.feature_name, self.implementation, scenario, self.reporter).run()
            if failure is not None:
                failures.append(failure)

        self.implementation.run_hook("after", self.feature_name)

        if self.scenario_line is not None and ran == 0:
            logger.warning("No scenario declared at %s:%s", self.filename, self.scenario_line)
            self.reporter.on_no_scenario_matched(self.filename, self.scenario_line)

        logger.debug("Feature %r ran %d scenario(s), %d failed", self.feature_name, ran, len(failures))
        if failures:
            self.reporter.on_error_summary(failures)
            return False
        return True
