from __future__ import annotations

import traceback
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Sequence

import typer

from sorrel.core import ids
from sorrel.core.parser import ScenarioDescriptor, StepDescriptor

if TYPE_CHECKING:
    from sorrel.core.scenario import Failure


class Reporter:
    """Event sink for a run. Every event is a no-op here; subclasses pick what to render."""

    def on_feature_started(self, name: str) -> None:
        pass

    def on_scenario_started(self, feature_name: str, scenario: ScenarioDescriptor) -> None:
        pass

    def on_step_passed(self, step: StepDescriptor) -> None:
        pass

    def on_step_failed(self, step: StepDescriptor, error: BaseException) -> None:
        pass

    def on_step_undefined(self, step: StepDescriptor) -> None:
        pass

    def on_step_skipped(self, step: StepDescriptor) -> None:
        pass

    def on_scenario_finished(self, scenario: ScenarioDescriptor, failure: Failure | None) -> None:
        pass

    def on_no_scenario_matched(self, filename: str, line: str) -> None:
        pass

    def on_error_summary(self, failures: Sequence[Failure]) -> None:
        pass

    def on_run_finished(self, success: bool) -> None:
        pass


@dataclass
class Tally:
    scenarios_passed: int = 0
    scenarios_failed: int = 0
    steps_passed: int = 0
    steps_failed: int = 0
    steps_undefined: int = 0
    steps_skipped: int = 0


class CountingReporter(Reporter):
    def __init__(self) -> None:
        self.tally = Tally()

    def on_step_passed(self, step: StepDescriptor) -> None:
        self.tally.steps_passed += 1

    def on_step_failed(self, step: StepDescriptor, error: BaseException) -> None:
        self.tally.steps_failed += 1

    def on_step_undefined(self, step: StepDescriptor) -> None:
        self.tally.steps_undefined += 1

    def on_step_skipped(self, step: StepDescriptor) -> None:
        self.tally.steps_skipped += 1

    def on_scenario_finished(self, scenario: ScenarioDescriptor, failure: Failure | None) -> None:
        if failure is None:
            self.tally.scenarios_passed += 1
        else:
            self.tally.scenarios_failed += 1


def failure_to_dict(failure: Failure) -> dict:
    return {
        "feature": failure.feature_name,
        "scenario": failure.scenario.name,
        "scenario_line": failure.scenario.line,
        "step": f"{failure.step.keyword} {failure.step.text}",
        "step_line": failure.step.line,
        "kind": failure.kind,
        "error_type": type(failure.error).__name__,
        "message": failure.message,
    }


class ConsoleReporter(CountingReporter):
    def __init__(self, *, show_tracebacks: bool = False) -> None:
        super().__init__()
        self.show_tracebacks = show_tracebacks

    def _step_line(self, step: StepDescriptor, mark: str, color: str, suffix: str = "") -> None:
        typer.echo(typer.style(f"    {mark} {step.keyword} {step.text}{suffix}", fg=color))

    def on_feature_started(self, name: str) -> None:
        typer.echo("")
        typer.echo(typer.style(f"Feature: {name}", fg=typer.colors.MAGENTA, bold=True))

    def on_scenario_started(self, feature_name: str, scenario: ScenarioDescriptor) -> None:
        typer.echo("")
        typer.echo(typer.style(f"  {scenario.keyword}: {scenario.name}", fg=typer.colors.GREEN))

    def on_step_passed(self, step: StepDescriptor) -> None:
        super().on_step_passed(step)
        self._step_line(step, "✔", typer.colors.GREEN)

    def on_step_failed(self, step: StepDescriptor, error: BaseException) -> None:
        super().on_step_failed(step, error)
        self._step_line(step, "✘", typer.colors.RED)
        typer.echo(typer.style(f"      {type(error).__name__}: {error}", fg=typer.colors.RED))
        if self.show_tracebacks:
            for line in traceback.format_exception(type(error), error, error.__traceback__):
                typer.echo(typer.style(f"      {line.rstrip()}", fg=typer.colors.RED))

    def on_step_undefined(self, step: StepDescriptor) -> None:
        super().on_step_undefined(step)
        self._step_line(step, "?", typer.colors.YELLOW, " (undefined)")

    def on_step_skipped(self, step: StepDescriptor) -> None:
        super().on_step_skipped(step)
        self._step_line(step, "~", typer.colors.CYAN, " (skipped)")

    def on_no_scenario_matched(self, filename: str, line: str) -> None:
        typer.echo(typer.style(f"  No scenario found at {filename}:{line}", fg=typer.colors.YELLOW))

    def on_error_summary(self, failures: Sequence[Failure]) -> None:
        typer.echo("")
        typer.echo(typer.style("Error summary:", fg=typer.colors.RED, bold=True))
        for kind, title in (("failed", "Failed steps"), ("undefined", "Undefined steps")):
            selected = [f for f in failures if f.kind == kind]
            if not selected:
                continue
            typer.echo(typer.style(f"  {title} ({len(selected)})", fg=typer.colors.RED))
            for failure in selected:
                typer.echo(
                    f"    {failure.feature_name} :: {failure.scenario.name} "
                    f"(line {failure.scenario.line}): {failure.step.keyword} {failure.step.text}"
                )

    def on_run_finished(self, success: bool) -> None:
        t = self.tally
        typer.echo("")
        typer.echo(
            f"{t.scenarios_passed + t.scenarios_failed} scenarios "
            f"({t.scenarios_passed} passed, {t.scenarios_failed} failed)"
        )
        typer.echo(
            f"{t.steps_passed + t.steps_failed + t.steps_undefined + t.steps_skipped} steps "
            f"({t.steps_passed} passed, {t.steps_failed} failed, "
            f"{t.steps_undefined} undefined, {t.steps_skipped} skipped)"
        )


@dataclass
class _FeatureRecord:
    name: str
    scenarios: list[dict] = field(default_factory=list)


class JsonReporter(CountingReporter):
    """Collects the run into a plain dict for the JSON envelope."""

    def __init__(self) -> None:
        super().__init__()
        self.features: list[_FeatureRecord] = []
        self.failures: list[dict] = []
        self.warnings: list[dict] = []
        self._scenario: dict | None = None

    def _record_step(self, step: StepDescriptor, status: str, error: BaseException | None = None) -> None:
        entry: dict = {"keyword": step.keyword, "text": step.text, "line": step.line, "status": status}
        if error is not None:
            entry["error"] = {"type": type(error).__name__, "message": str(error)}
        if self._scenario is not None:
            self._scenario["steps"].append(entry)

    def on_feature_started(self, name: str) -> None:
        self.features.append(_FeatureRecord(name=name))

    def on_scenario_started(self, feature_name: str, scenario: ScenarioDescriptor) -> None:
        self._scenario = {
            "id": ids.scenario_id(feature_name=feature_name, line=scenario.line),
            "name": scenario.name,
            "line": scenario.line,
            "tags": list(scenario.tags),
            "status": "running",
            "steps": [],
        }
        if self.features:
            self.features[-1].scenarios.append(self._scenario)

    def on_step_passed(self, step: StepDescriptor) -> None:
        super().on_step_passed(step)
        self._record_step(step, "passed")

    def on_step_failed(self, step: StepDescriptor, error: BaseException) -> None:
        super().on_step_failed(step, error)
        self._record_step(step, "failed", error)

    def on_step_undefined(self, step: StepDescriptor) -> None:
        super().on_step_undefined(step)
        self._record_step(step, "undefined")

    def on_step_skipped(self, step: StepDescriptor) -> None:
        super().on_step_skipped(step)
        self._record_step(step, "skipped")

    def on_scenario_finished(self, scenario: ScenarioDescriptor, failure: Failure | None) -> None:
        super().on_scenario_finished(scenario, failure)
        if self._scenario is not None:
            self._scenario["status"] = "passed" if failure is None else failure.kind
        self._scenario = None

    def on_no_scenario_matched(self, filename: str, line: str) -> None:
        self.warnings.append({"type": "NO_SCENARIO_MATCHED", "filename": filename, "line": int(line)})

    def on_error_summary(self, failures: Sequence[Failure]) -> None:
        self.failures.extend(failure_to_dict(f) for f in failures)

    def data(self) -> dict:
        return {
            "features": [{"name": f.name, "scenarios": f.scenarios} for f in self.features],
            "failures": list(self.failures),
            "warnings": list(self.warnings),
            "summary": asdict(self.tally),
        }
