from __future__ import annotations

import logging

import pytest

from sorrel.core.errors import ImplementationNotFound, MalformedIdentifier, ParseError
from sorrel.core.feature import FeatureRunner
from sorrel.core.registry import Registry
from tests.unit._fakes import FakeParser, FakeResolver, RecordingReporter, document, scenario

TWO_PASSING = document(scenario(5, "one"), scenario(10, "two"))


def _runner(identifier, doc=TWO_PASSING, **resolver_kwargs):
    log: list = []
    parser = FakeParser(doc)
    resolver = FakeResolver(log, **resolver_kwargs)
    reporter = RecordingReporter()
    runner = FeatureRunner(identifier, reporter, parser=parser, resolver=resolver)
    return runner, reporter, parser, resolver, log


def test_construction_splits_identifier_without_parsing():
    runner, _, parser, resolver, _ = _runner("features/shopping.feature:10")
    assert runner.filename == "features/shopping.feature"
    assert runner.scenario_line == "10"
    assert parser.calls == []
    assert resolver.calls == []


def test_construction_rejects_malformed_identifier():
    with pytest.raises(MalformedIdentifier):
        FeatureRunner("shopping.feature:ten", RecordingReporter(), parser=FakeParser(TWO_PASSING))


def test_all_scenarios_pass_without_filter():
    runner, reporter, _, _, log = _runner("shopping.feature")
    assert runner.run() is True
    assert reporter.named("feature_started") == [("feature_started", "Shopping")]
    assert reporter.named("error_summary") == []
    assert log == [
        ("hook", "before", "Shopping"),
        ("step", "one"),
        ("step", "two"),
        ("hook", "after", "Shopping"),
    ]


def test_line_filter_runs_only_the_matching_scenario():
    runner, reporter, _, _, log = _runner("shopping.feature:10")
    assert runner.run() is True
    assert [e[1] for e in reporter.named("scenario_started")] == [10]
    assert ("step", "one") not in log


def test_failures_are_collected_and_summarised_in_order():
    doc = document(scenario(5, "fail first"), scenario(10, "fine"), scenario(15, "undefined later"))
    runner, reporter, _, _, log = _runner("shopping.feature", doc)

    assert runner.run() is False
    assert [e[1] for e in reporter.named("scenario_started")] == [5, 10, 15]
    (summary,) = reporter.named("error_summary")
    failures = summary[1]
    assert [f.scenario.line for f in failures] == [5, 15]
    assert [f.kind for f in failures] == ["failed", "undefined"]
    assert log[-1] == ("hook", "after", "Shopping")


def test_one_failure_out_of_two():
    doc = document(scenario(5, "fail"), scenario(10, "pass"))
    runner, reporter, _, _, _ = _runner("shopping.feature", doc)
    assert runner.run() is False
    (summary,) = reporter.named("error_summary")
    assert len(summary[1]) == 1
    assert summary[1][0].scenario.line == 5


def test_filter_matching_nothing_still_runs_hooks_and_succeeds(caplog):
    runner, reporter, _, _, log = _runner("shopping.feature:99")
    with caplog.at_level(logging.WARNING, logger="sorrel.core.feature"):
        assert runner.run() is True
    assert log == [("hook", "before", "Shopping"), ("hook", "after", "Shopping")]
    assert reporter.named("scenario_started") == []
    assert reporter.named("no_scenario_matched") == [("no_scenario_matched", "shopping.feature", "99")]
    assert "No scenario declared at shopping.feature:99" in caplog.text


def test_feature_without_scenarios_runs_hooks_once():
    runner, reporter, _, _, log = _runner("shopping.feature", document())
    assert runner.run() is True
    assert log == [("hook", "before", "Shopping"), ("hook", "after", "Shopping")]
    assert reporter.named("no_scenario_matched") == []


def test_parse_error_aborts_before_any_hook():
    log: list = []
    resolver = FakeResolver(log)
    reporter = RecordingReporter()
    runner = FeatureRunner("broken.feature", reporter, parser=FakeParser(error=True), resolver=resolver)

    with pytest.raises(ParseError):
        runner.run()
    assert log == []
    assert resolver.calls == []
    assert reporter.events == []


def test_missing_implementation_aborts_before_any_hook():
    reporter = RecordingReporter()
    runner = FeatureRunner("shopping.feature", reporter, parser=FakeParser(TWO_PASSING), resolver=Registry().resolve)

    with pytest.raises(ImplementationNotFound):
        runner.run()
    assert reporter.named("scenario_started") == []


def test_before_hook_failure_prevents_scenarios_and_after_hook():
    runner, reporter, _, _, log = _runner("shopping.feature", failing_hook="before")
    with pytest.raises(RuntimeError, match="before hook exploded"):
        runner.run()
    assert reporter.named("scenario_started") == []
    assert log == []


def test_after_hook_failure_propagates_after_scenarios_ran():
    doc = document(scenario(5, "fail"))
    runner, reporter, _, _, log = _runner("shopping.feature", doc, failing_hook="after")
    with pytest.raises(RuntimeError, match="after hook exploded"):
        runner.run()
    assert ("step", "fail") in log
    assert reporter.named("error_summary") == []


def test_document_is_parsed_and_implementation_resolved_once():
    runner, _, parser, resolver, _ = _runner("shopping.feature")
    assert runner.feature_name == runner.feature_name == "Shopping"
    assert runner.scenarios == runner.scenarios
    assert [s.line for s in runner.scenarios] == [5, 10]
    runner.run()
    assert parser.calls == ["shopping.feature"]
    assert resolver.calls == ["Shopping"]
    assert runner.implementation is runner.implementation
