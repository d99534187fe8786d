"""Gherkin feature file parsing.

Turns a `.feature` file into an immutable FeatureDocument. Backgrounds are folded
into each scenario, rules are flattened, and outlines are expanded one scenario
per example row (the row's line becomes the scenario line, so `path:line`
selects a single example).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gherkin.errors import CompositeParserException, ParserError
from gherkin.parser import Parser
from gherkin.token_scanner import TokenScanner

from sorrel.core.errors import ParseError

OUTLINE_KEYWORDS = frozenset({"Scenario Outline", "Scenario Template"})


@dataclass(frozen=True)
class StepDescriptor:
    keyword: str
    text: str
    line: int
    doc_string: str | None = None
    data_table: tuple[tuple[str, ...], ...] | None = None


@dataclass(frozen=True)
class ScenarioDescriptor:
    name: str
    line: int
    steps: tuple[StepDescriptor, ...]
    keyword: str = "Scenario"
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class FeatureDocument:
    name: str
    scenarios: tuple[ScenarioDescriptor, ...]
    path: str = ""
    description: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)


def _tags(node: dict[str, Any]) -> tuple[str, ...]:
    return tuple(tag["name"] for tag in node.get("tags", []))


def _substitute(text: str, values: dict[str, str]) -> str:
    for key, value in values.items():
        text = text.replace(f"<{key}>", value)
    return text


def _step(raw: dict[str, Any], values: dict[str, str] | None = None) -> StepDescriptor:
    values = values or {}
    doc_string = None
    if raw.get("docString") is not None:
        doc_string = _substitute(raw["docString"]["content"], values)
    data_table = None
    if raw.get("dataTable") is not None:
        data_table = tuple(
            tuple(_substitute(cell["value"], values) for cell in row["cells"])
            for row in raw["dataTable"]["rows"]
        )
    return StepDescriptor(
        keyword=raw["keyword"].strip(),
        text=_substitute(raw["text"], values),
        line=raw["location"]["line"],
        doc_string=doc_string,
        data_table=data_table,
    )


def _expand_scenario(
    raw: dict[str, Any],
    background: tuple[StepDescriptor, ...],
    inherited_tags: tuple[str, ...],
) -> list[ScenarioDescriptor]:
    keyword = raw["keyword"].strip()
    tags = inherited_tags + _tags(raw)
    examples = raw.get("examples") or []
    if keyword in OUTLINE_KEYWORDS and not examples:
        return []
    if not examples:
        return [
            ScenarioDescriptor(
                name=raw["name"],
                line=raw["location"]["line"],
                steps=background + tuple(_step(s) for s in raw.get("steps", [])),
                keyword=keyword,
                tags=tags,
            )
        ]

    expanded: list[ScenarioDescriptor] = []
    for block in examples:
        header = block.get("tableHeader")
        if header is None:
            continue
        keys = [cell["value"] for cell in header["cells"]]
        for row in block.get("tableBody", []):
            values = dict(zip(keys, (cell["value"] for cell in row["cells"])))
            label = ", ".join(f"{k}={v}" for k, v in values.items())
            expanded.append(
                ScenarioDescriptor(
                    name=f"{_substitute(raw['name'], values)} ({label})",
                    line=row["location"]["line"],
                    steps=background + tuple(_step(s, values) for s in raw.get("steps", [])),
                    keyword=keyword,
                    tags=tags + _tags(block),
                )
            )
    return expanded


def _collect(
    children: list[dict[str, Any]],
    background: tuple[StepDescriptor, ...],
    inherited_tags: tuple[str, ...],
) -> list[ScenarioDescriptor]:
    scenarios: list[ScenarioDescriptor] = []
    for child in children:
        if "background" in child:
            background = background + tuple(_step(s) for s in child["background"].get("steps", []))
        elif "scenario" in child:
            scenarios.extend(_expand_scenario(child["scenario"], background, inherited_tags))
        elif "rule" in child:
            rule = child["rule"]
            scenarios.extend(_collect(rule.get("children", []), background, inherited_tags + _tags(rule)))
    return scenarios


def parse_text(text: str, *, path: str = "<string>") -> FeatureDocument:
    try:
        document = Parser().parse(TokenScanner(text))
    except (CompositeParserException, ParserError) as exc:
        raise ParseError(path, str(exc)) from exc

    feature = document.get("feature")
    if not feature:
        raise ParseError(path, "no Feature declared")

    tags = _tags(feature)
    return FeatureDocument(
        name=feature["name"],
        scenarios=tuple(_collect(feature.get("children", []), (), tags)),
        path=path,
        description=(feature.get("description") or "").strip(),
        tags=tags,
    )


def parse_feature(path: str | Path) -> FeatureDocument:
    file_path = Path(path).expanduser()
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ParseError(str(path), exc.strerror or str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise ParseError(str(path), str(exc)) from exc
    return parse_text(text, path=str(path))


def document_to_dict(document: FeatureDocument) -> dict:
    return {
        "name": document.name,
        "path": document.path,
        "description": document.description,
        "tags": list(document.tags),
        "scenarios": [
            {
                "name": scenario.name,
                "keyword": scenario.keyword,
                "line": scenario.line,
                "tags": list(scenario.tags),
                "steps": [
                    {"keyword": step.keyword, "text": step.text, "line": step.line}
                    for step in scenario.steps
                ],
            }
            for scenario in document.scenarios
        ],
    }
