from __future__ import annotations

from typing import Iterable


class SorrelError(Exception):
    """Base class for fatal engine errors (anything that aborts a run)."""


class MalformedIdentifier(SorrelError, ValueError):
    def __init__(self, identifier: str, reason: str) -> None:
        super().__init__(f"Malformed feature identifier {identifier!r}: {reason}")
        self.identifier = identifier
        self.reason = reason


class ParseError(SorrelError):
    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"Could not parse feature file {path}: {message}")
        self.path = path


class ImplementationNotFound(SorrelError, LookupError):
    def __init__(self, feature_name: str, known: Iterable[str] = (), *, message: str | None = None) -> None:
        super().__init__(message or f"No steps implementation registered for feature: {feature_name!r}")
        self.feature_name = feature_name
        self.known = sorted(known)


class ImplementationFactoryError(ImplementationNotFound):
    """A steps implementation is registered but constructing it raised."""

    def __init__(self, feature_name: str, known: Iterable[str] = ()) -> None:
        super().__init__(
            feature_name,
            known,
            message=f"Could not create steps implementation for feature: {feature_name!r}",
        )


class HookError(SorrelError):
    def __init__(self, phase: str, hook_name: str) -> None:
        super().__init__(f"Hook {hook_name!r} failed during {phase!r}")
        self.phase = phase
        self.hook_name = hook_name


class StepModuleError(SorrelError):
    def __init__(self, spec: str, message: str) -> None:
        super().__init__(f"Could not load step module {spec!r}: {message}")
        self.spec = spec


# Raised inside scenario execution; never escapes ScenarioRunner.run().
class StepNotDefined(Exception):
    def __init__(self, text: str) -> None:
        super().__init__(f"Step not defined: {text!r}")
        self.text = text
