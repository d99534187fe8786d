import pytest

from sorrel.core.errors import MalformedIdentifier
from sorrel.core.identifiers import FeatureIdentifier, parse_identifier


def test_plain_path_selects_all_scenarios():
    parsed = parse_identifier("features/login.feature")
    assert parsed == FeatureIdentifier(filename="features/login.feature", scenario_line=None)


def test_path_with_line_keeps_line_as_string():
    parsed = parse_identifier("features/login.feature:12")
    assert parsed.filename == "features/login.feature"
    assert parsed.scenario_line == "12"


def test_str_round_trips_the_identifier():
    assert str(parse_identifier("a.feature:3")) == "a.feature:3"
    assert str(parse_identifier("a.feature")) == "a.feature"


@pytest.mark.parametrize("identifier", ["", "   ", ":12", "a.feature:", "a.feature:abc", "a.feature:0", "a.feature:-1"])
def test_malformed_identifiers_are_rejected(identifier):
    with pytest.raises(MalformedIdentifier):
        parse_identifier(identifier)


def test_malformed_identifier_is_a_value_error():
    with pytest.raises(ValueError, match="positive integer"):
        parse_identifier("a.feature:x1")
