from __future__ import annotations
from typing import Any, Dict, List, Optional, Protocol

from apptrack.core.event import Occurrence, OccurrenceKind
from apptrack.core.rules import Configuration, Rule


class FieldMatcher(Protocol):
    def matches(self, expected: Optional[str], actual: Optional[str]) -> bool: ...


class WildcardExactMatcher:
    """An absent rule field matches anything; a present one needs string equality."""

    def matches(self, expected: Optional[str], actual: Optional[str]) -> bool:
        if expected is None:
            return True
        return actual is not None and expected == actual


_DEFAULT_MATCHER = WildcardExactMatcher()


def rule_applies(
    rule: Rule,
    target: Optional[str],
    member: Optional[str],
    kind: OccurrenceKind,
    keyword: Optional[str] = None,
    field_matcher: FieldMatcher | None = None,
) -> bool:
    fm = field_matcher or _DEFAULT_MATCHER
    if rule.kind is not kind:
        return False
    # Keywords are scoped both ways: keyworded occurrences only hit keyworded rules.
    if rule.keyword != keyword:
        return False
    return fm.matches(rule.target, target) and fm.matches(rule.member, member)


def match(
    configuration: Configuration,
    target: Optional[str],
    member: Optional[str],
    kind: OccurrenceKind,
    keyword: Optional[str] = None,
    field_matcher: FieldMatcher | None = None,
) -> List[Dict[str, Any]]:
    """
    Return the parameters of every rule that applies to the occurrence, in
    configuration order. The configuration is never modified; callers get
    shallow copies of the parameter mappings.
    """
    return [
        dict(rule.parameters)
        for rule in configuration
        if rule_applies(rule, target, member, kind, keyword, field_matcher)
    ]


def match_occurrence(
    configuration: Configuration,
    occurrence: Occurrence,
    field_matcher: FieldMatcher | None = None,
) -> List[Dict[str, Any]]:
    return match(
        configuration,
        occurrence.target,
        occurrence.member,
        occurrence.kind,
        occurrence.keyword,
        field_matcher,
    )
