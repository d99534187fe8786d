from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from sorrel.core import ids
from sorrel.core.feature import FeatureRunner
from sorrel.core.parser import FeatureDocument, parse_feature
from sorrel.core.registry import REGISTRY
from sorrel.core.reporting import Reporter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SuiteResult:
    run_id: str
    success: bool
    features: list[dict] = field(default_factory=list)


def run_features(
    identifiers: Sequence[str],
    reporter: Reporter,
    *,
    parser: Callable[[str], FeatureDocument] = parse_feature,
    resolver: Callable[[str], Any] = REGISTRY.resolve,
) -> SuiteResult:
    """Run each feature identifier in order, one FeatureRunner per identifier.

    Every feature runs even after another one failed; fatal errors stop the suite.
    """
    run_id = ids.run_id()
    outcomes: list[dict] = []
    for identifier in identifiers:
        runner = FeatureRunner(identifier, reporter, parser=parser, resolver=resolver)
        success = runner.run()
        logger.info("Feature %s %s", identifier, "passed" if success else "failed")
        outcomes.append({"identifier": identifier, "feature": runner.feature_name, "success": success})

    success = all(o["success"] for o in outcomes)
    reporter.on_run_finished(success)
    return SuiteResult(run_id=run_id, success=success, features=outcomes)
