from __future__ import annotations

from typing import Sequence

from sorrel.core.errors import ParseError, StepNotDefined
from sorrel.core.parser import FeatureDocument, ScenarioDescriptor, StepDescriptor
from sorrel.core.reporting import Reporter


def scenario(line: int, *texts: str, name: str | None = None) -> ScenarioDescriptor:
    steps = tuple(StepDescriptor(keyword="Given", text=t, line=line + i + 1) for i, t in enumerate(texts))
    return ScenarioDescriptor(name=name or f"scenario at {line}", line=line, steps=steps)


def document(*scenarios: ScenarioDescriptor, name: str = "Shopping") -> FeatureDocument:
    return FeatureDocument(name=name, scenarios=tuple(scenarios), path="shopping.feature")


class FakeParser:
    def __init__(self, doc: FeatureDocument | None = None, *, error: bool = False) -> None:
        self.doc = doc
        self.error = error
        self.calls: list[str] = []

    def __call__(self, path: str) -> FeatureDocument:
        self.calls.append(path)
        if self.error or self.doc is None:
            raise ParseError(path, "unexpected token")
        return self.doc


class FakeImplementation:
    """Step texts decide the outcome: `fail ...` raises, `undefined ...` is undefined."""

    def __init__(self, log: list, *, failing_hook: str | None = None) -> None:
        self.log = log
        self.failing_hook = failing_hook

    def run_hook(self, phase: str, *args) -> None:
        if phase == self.failing_hook:
            raise RuntimeError(f"{phase} hook exploded")
        if phase in ("before", "after"):
            self.log.append(("hook", phase, args[0]))

    def execute_step(self, step: StepDescriptor) -> None:
        self.log.append(("step", step.text))
        if step.text.startswith("fail"):
            raise AssertionError(step.text)
        if step.text.startswith("undefined"):
            raise StepNotDefined(step.text)


class FakeResolver:
    def __init__(self, log: list, **kwargs) -> None:
        self.log = log
        self.kwargs = kwargs
        self.calls: list[str] = []

    def __call__(self, name: str) -> FakeImplementation:
        self.calls.append(name)
        return FakeImplementation(self.log, **self.kwargs)


class RecordingReporter(Reporter):
    def __init__(self) -> None:
        self.events: list[tuple] = []

    def on_feature_started(self, name: str) -> None:
        self.events.append(("feature_started", name))

    def on_scenario_started(self, feature_name: str, scenario: ScenarioDescriptor) -> None:
        self.events.append(("scenario_started", scenario.line))

    def on_step_passed(self, step: StepDescriptor) -> None:
        self.events.append(("passed", step.text))

    def on_step_failed(self, step: StepDescriptor, error: BaseException) -> None:
        self.events.append(("failed", step.text))

    def on_step_undefined(self, step: StepDescriptor) -> None:
        self.events.append(("undefined", step.text))

    def on_step_skipped(self, step: StepDescriptor) -> None:
        self.events.append(("skipped", step.text))

    def on_scenario_finished(self, scenario: ScenarioDescriptor, failure) -> None:
        self.events.append(("scenario_finished", scenario.line, failure is not None))

    def on_no_scenario_matched(self, filename: str, line: str) -> None:
        self.events.append(("no_scenario_matched", filename, line))

    def on_error_summary(self, failures: Sequence) -> None:
        self.events.append(("error_summary", list(failures)))

    def named(self, kind: str) -> list[tuple]:
        return [e for e in self.events if e[0] == kind]
