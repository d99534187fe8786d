"""Step definitions and lifecycle hooks for feature implementations.

A feature is implemented by a `FeatureSteps` subclass bound to the feature name
with `@feature("Name")`:

    @feature("Calculator")
    class CalculatorSteps(FeatureSteps):
        @given("I have entered {number:d}")
        def enter(self, number):
            ...

        @hook("before_scenario")
        def reset(self, scenario):
            ...

Patterns use the `parse` format syntax. Named fields are passed as keyword
arguments and anonymous fields positionally. Steps carrying a doc string or a
data table also receive `doc_string=` / `data_table=`. Matching is
case-insensitive, the `parse` default that pytest-bdd's `parsers.parse` shares.
"""

from __future__ import annotations

import hashlib
import importlib
import importlib.util
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable

import parse

from sorrel.core.errors import HookError, StepModuleError, StepNotDefined
from sorrel.core.parser import StepDescriptor

logger = logging.getLogger(__name__)

HOOK_PHASES = ("before", "after", "before_scenario", "after_scenario", "before_step", "after_step")

F = Callable[..., Any]


def step(pattern: str) -> Callable[[F], F]:
    def decorate(func: F) -> F:
        patterns = getattr(func, "_sorrel_steps", ())
        func._sorrel_steps = (*patterns, pattern)  # type: ignore[attr-defined]
        return func

    return decorate


# Gherkin keywords are not part of matching; these aliases only read better.
given = when = then = step


def hook(phase: str) -> Callable[[F], F]:
    if phase not in HOOK_PHASES:
        raise ValueError(f"Unknown hook phase: {phase!r} (expected one of {', '.join(HOOK_PHASES)})")

    def decorate(func: F) -> F:
        func._sorrel_hook = phase  # type: ignore[attr-defined]
        return func

    return decorate


@dataclass(frozen=True)
class StepDefinition:
    pattern: str
    attr: str
    matcher: parse.Parser


class FeatureSteps:
    feature_name: str | None = None
    _step_definitions: tuple[StepDefinition, ...] = ()
    _hooks: dict[str, tuple[str, ...]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # Base classes first; a redefined method name replaces the inherited one in place.
        members: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if callable(value):
                    members[name] = value

        definitions: list[StepDefinition] = []
        hooks: dict[str, list[str]] = {phase: [] for phase in HOOK_PHASES}
        for name, func in members.items():
            for pattern in getattr(func, "_sorrel_steps", ()):
                definitions.append(StepDefinition(pattern=pattern, attr=name, matcher=parse.compile(pattern)))
            phase = getattr(func, "_sorrel_hook", None)
            if phase is not None:
                hooks[phase].append(name)
        cls._step_definitions = tuple(definitions)
        cls._hooks = {phase: tuple(names) for phase, names in hooks.items()}

    def run_hook(self, phase: str, *args: Any) -> None:
        if phase not in HOOK_PHASES:
            raise ValueError(f"Unknown hook phase: {phase!r}")
        for name in self._hooks.get(phase, ()):
            logger.debug("Running %s hook %s.%s", phase, type(self).__name__, name)
            try:
                getattr(self, name)(*args)
            except Exception as exc:
                raise HookError(phase, f"{type(self).__name__}.{name}") from exc

    def find_step(self, text: str) -> tuple[StepDefinition, parse.Result] | None:
        for definition in self._step_definitions:
            match = definition.matcher.parse(text)
            if match is not None:
                return definition, match
        return None

    def execute_step(self, step: StepDescriptor) -> Any:
        found = self.find_step(step.text)
        if found is None:
            raise StepNotDefined(step.text)
        definition, match = found
        kwargs = dict(match.named)
        if step.doc_string is not None:
            kwargs["doc_string"] = step.doc_string
        if step.data_table is not None:
            kwargs["data_table"] = step.data_table
        return getattr(self, definition.attr)(*match.fixed, **kwargs)


def _load_file(path: Path) -> None:
    resolved = path.resolve()
    digest = hashlib.sha1(str(resolved).encode("utf-8")).hexdigest()[:8]
    module_name = f"_sorrel_steps_{resolved.stem}_{digest}"
    if module_name in sys.modules:
        return
    spec = importlib.util.spec_from_file_location(module_name, resolved)
    if spec is None or spec.loader is None:
        raise StepModuleError(str(path), "not an importable Python file")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        del sys.modules[module_name]
        raise


def load_step_modules(specs: Iterable[str]) -> list[str]:
    """Import step modules given as dotted names or `.py` file paths.

    Importing registers the feature classes they define. Returns the specs loaded.
    """
    loaded: list[str] = []
    for spec in specs:
        spec = spec.strip()
        if not spec:
            continue
        try:
            if spec.endswith(".py"):
                path = Path(spec).expanduser()
                if not path.is_file():
                    raise StepModuleError(spec, "file not found")
                _load_file(path)
            else:
                importlib.import_module(spec)
        except (ImportError, OSError, SyntaxError) as exc:
            raise StepModuleError(spec, str(exc)) from exc
        logger.debug("Loaded step module %s", spec)
        loaded.append(spec)
    return loaded
