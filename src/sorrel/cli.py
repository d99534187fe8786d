from __future__ import annotations

import typer

from sorrel.core import (
    config as config_core,
    envelope,
    suite,
)
from sorrel.core.errors import (
    HookError,
    ImplementationNotFound,
    MalformedIdentifier,
    ParseError,
    StepModuleError,
)
from sorrel.core.jsonio import dumps
from sorrel.core.parser import document_to_dict, parse_feature
from sorrel.core.registry import REGISTRY
from sorrel.core.reporting import ConsoleReporter, JsonReporter
from sorrel.core.steps import load_step_modules

VERSION = "0.1.0"

app = typer.Typer(add_completion=False, help="sorrel - run Gherkin features against Python step classes")


def _emit(out: dict) -> None:
    typer.echo(dumps(out))
    if out.get("ok") is True:
        raise typer.Exit(code=0)
    raise typer.Exit(code=1)


def _describe(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


def _error_envelope(command: str, exc: Exception) -> dict:
    if isinstance(exc, MalformedIdentifier):
        return envelope.err(
            command=command,
            error_type="INVALID_ARGUMENT",
            message=str(exc),
            details={"identifier": exc.identifier},
        )
    if isinstance(exc, StepModuleError):
        return envelope.err(command=command, error_type="INVALID_ARGUMENT", message=str(exc), details={"steps": exc.spec})
    if isinstance(exc, ParseError):
        return envelope.err(command=command, error_type="PARSE_ERROR", message=str(exc), details={"path": exc.path})
    if isinstance(exc, ImplementationNotFound):
        details = {"feature": exc.feature_name, "known": exc.known}
        if exc.__cause__ is not None:
            details["cause"] = _describe(exc.__cause__)
        return envelope.err(
            command=command,
            error_type="IMPLEMENTATION_NOT_FOUND",
            message=str(exc),
            details=details,
        )
    if isinstance(exc, HookError):
        cause = exc.__cause__
        return envelope.err(
            command=command,
            error_type="HOOK_FAILED",
            message=str(exc),
            details={
                "phase": exc.phase,
                "hook": exc.hook_name,
                "cause": _describe(cause) if cause is not None else None,
            },
        )
    return envelope.err(command=command, error_type="INVALID_ARGUMENT", message=str(exc))


def _fail(command: str, exc: Exception, *, json_output: bool) -> None:
    out = _error_envelope(command, exc)
    if json_output:
        _emit(out)
    typer.echo(typer.style(f"Error: {out['error']['message']}", fg=typer.colors.RED), err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG|INFO|WARNING|ERROR (default WARNING)"),
):
    try:
        level = config_core.resolve_log_level(log_level)
    except ValueError as exc:
        # Invalid config file.
        typer.echo(typer.style(f"Error: {exc}", fg=typer.colors.RED), err=True)
        raise typer.Exit(code=1) from exc
    try:
        config_core.configure_logging(level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc


# ---- Global commands ----
@app.command()
def version(json_output: bool = typer.Option(False, "--json", help="Output JSON envelope")):
    if json_output:
        _emit(envelope.ok(command="version", data={"version": VERSION}))
    typer.echo(f"sorrel {VERSION}")


@app.command()
def run(
    identifiers: list[str] = typer.Argument(..., help="Feature files, each optionally suffixed with :LINE"),
    steps: list[str] | None = typer.Option(None, "--steps", help="Step module (dotted name or .py path); repeatable"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON envelope"),
    tracebacks: bool = typer.Option(False, "--tracebacks", help="Print full tracebacks for failed steps"),
):
    """Run features; exit 1 if any selected scenario fails."""
    if not json_output:
        json_output = config_core.get_config_value("run", "reporter") == "json"

    reporter = JsonReporter() if json_output else ConsoleReporter(show_tracebacks=tracebacks)
    try:
        load_step_modules(config_core.resolve_step_modules(steps))
        result = suite.run_features(identifiers, reporter)
    except (MalformedIdentifier, StepModuleError, ParseError, ImplementationNotFound, HookError, ValueError) as exc:
        _fail("run", exc, json_output=json_output)

    if not json_output:
        raise typer.Exit(code=0 if result.success else 1)

    data = {"run_id": result.run_id, "outcomes": result.features, **reporter.data()}
    if result.success:
        _emit(envelope.ok(command="run", data=data))
    failed = data["summary"]["scenarios_failed"]
    _emit(
        envelope.err(
            command="run",
            error_type="SCENARIOS_FAILED",
            message=f"{failed} scenario(s) failed",
            details=data,
        )
    )


@app.command("parse")
def parse_command(
    path: str = typer.Argument(..., help="Feature file to parse"),
    json_output: bool = typer.Option(True, "--json"),
):
    """Print the parsed feature document (backgrounds folded in, outlines expanded)."""
    try:
        document = parse_feature(path)
    except ParseError as exc:
        _fail("parse", exc, json_output=True)
    _emit(envelope.ok(command="parse", data={"feature": document_to_dict(document)}))


@app.command()
def features(
    steps: list[str] | None = typer.Option(None, "--steps", help="Step module (dotted name or .py path); repeatable"),
    json_output: bool = typer.Option(True, "--json"),
):
    """List feature names with a registered steps implementation."""
    try:
        load_step_modules(config_core.resolve_step_modules(steps))
    except (StepModuleError, ValueError) as exc:
        _fail("features", exc, json_output=True)
    _emit(envelope.ok(command="features", data={"features": REGISTRY.names()}))


if __name__ == "__main__":
    app()
