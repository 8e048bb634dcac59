from apptrack.core.event import Occurrence, OccurrenceKind
from apptrack.core.matching import WildcardExactMatcher, match, match_occurrence
from apptrack.core.rules import Configuration, Rule

STATE = OccurrenceKind.STATE
EVENT = OccurrenceKind.EVENT


def test_wildcard_exact_matcher():
    m = WildcardExactMatcher()
    assert m.matches(None, "anything")
    assert m.matches(None, None)
    assert m.matches("Home", "Home")
    assert not m.matches("Home", "HomeScreen")
    assert not m.matches("Home*", "HomeScreen")
    assert not m.matches("Home", None)


def test_order_preserved_for_all_matching_rules():
    cfg = Configuration([
        Rule(STATE, parameters={"r": 1}),
        Rule(STATE, target="HomeScreen", member="on_did_appear", parameters={"r": 2}),
        Rule(STATE, parameters={"r": 3}),
    ])
    assert match(cfg, "HomeScreen", "on_did_appear", STATE) == [{"r": 1}, {"r": 2}, {"r": 3}]


def test_match_is_deterministic_and_pure():
    cfg = Configuration([
        Rule(EVENT, target="Cart", member="checkout", parameters={"a": 1}),
        Rule(EVENT, target="Cart", parameters={"b": 2}),
    ])
    first = match(cfg, "Cart", "checkout", EVENT)
    second = match(cfg, "Cart", "checkout", EVENT)
    assert first == second == [{"a": 1}, {"b": 2}]
    first[0]["a"] = 99
    assert cfg.rules[0].parameters == {"a": 1}
    assert match(cfg, "Cart", "checkout", EVENT) == [{"a": 1}, {"b": 2}]


def test_kind_must_match_exactly():
    cfg = Configuration([Rule(STATE, target="Home", parameters={"s": 1})])
    assert match(cfg, "Home", None, EVENT) == []
    assert match(cfg, "Home", None, STATE) == [{"s": 1}]


def test_state_rule_without_member_matches_any_transition_of_target():
    cfg = Configuration([Rule(STATE, target="Home", parameters={"s": 1})])
    assert match(cfg, "Home", "on_load", STATE) == [{"s": 1}]
    assert match(cfg, "Home", "on_did_appear", STATE) == [{"s": 1}]
    assert match(cfg, "Other", "on_did_appear", STATE) == []


def test_keyword_isolation():
    cfg = Configuration([
        Rule(EVENT, keyword="x", parameters={"kw": "x"}),
        Rule(EVENT, parameters={"kw": None}),
    ])
    assert match(cfg, None, None, EVENT, "x") == [{"kw": "x"}]
    assert match(cfg, None, None, EVENT, "y") == []
    assert match(cfg, None, None, EVENT) == [{"kw": None}]


def test_all_conditions_required():
    cfg = Configuration([Rule(EVENT, target="Cart", member="checkout", parameters={"p": 1})])
    assert match(cfg, "Cart", "remove", EVENT) == []
    assert match(cfg, "Home", "checkout", EVENT) == []
    assert match(cfg, None, "checkout", EVENT) == []


def test_empty_configuration_matches_nothing():
    assert match(Configuration(), "Home", "on_load", STATE) == []


def test_match_occurrence_uses_all_fields():
    cfg = Configuration([Rule(EVENT, keyword="purchase", parameters={"category": "commerce"})])
    occ = Occurrence(kind=EVENT, keyword="purchase", custom_arguments={"sku": "abc"})
    assert match_occurrence(cfg, occ) == [{"category": "commerce"}]
