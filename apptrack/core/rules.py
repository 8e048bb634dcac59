from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple
import logging

from apptrack.core.event import OccurrenceKind

logger = logging.getLogger(__name__)

_TARGET_KEYS = ("target", "class")
_MEMBER_KEYS = ("member", "method", "selector")
_KEYWORD_KEYS = ("keyword", "app_specific_keyword")
_PARAMETER_KEYS = ("parameters", "params")


@dataclass(frozen=True)
class Rule:
    kind: OccurrenceKind
    target: Optional[str] = None
    member: Optional[str] = None
    keyword: Optional[str] = None
    parameters: Dict[str, Any] = field(default_factory=dict)


class Configuration:
    """
    Ordered, read-only collection of tracking rules.

    Rules keep the order in which they appear in the source mapping; matching
    walks them in that order.
    """

    def __init__(self, rules: Iterable[Rule] | None = None) -> None:
        self._rules: Tuple[Rule, ...] = tuple(rules or ())

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    @property
    def is_empty(self) -> bool:
        return not self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __repr__(self) -> str:
        return f"Configuration({len(self._rules)} rules)"

    @staticmethod
    def empty() -> "Configuration":
        return Configuration()

    @staticmethod
    def load(raw: Any) -> "Configuration":
        """
        Build a Configuration from an already-decoded mapping.

        Two shapes are accepted:
          - {"State": [rule, ...], "Event": [rule, ...]}
          - {"rules": [{"type": "State", ...}, ...]}
        Anything that is not a mapping yields an empty Configuration.
        """
        if not isinstance(raw, Mapping):
            if raw is not None:
                logger.warning("Ignoring tracking configuration of type %s", type(raw).__name__)
            return Configuration()

        rules: List[Rule] = []
        if "rules" in raw:
            entries = raw.get("rules")
            if not isinstance(entries, list):
                logger.warning("'rules' must be a list, got %s", type(entries).__name__)
                return Configuration()
            for entry in entries:
                kind_raw = entry.get("type") if isinstance(entry, Mapping) else None
                rule = _rule_from_entry(entry, kind_raw)
                if rule is not None:
                    rules.append(rule)
            return Configuration(rules)

        for key, entries in raw.items():
            if key == "tracking":
                continue
            try:
                kind = OccurrenceKind.parse(key)
            except ValueError:
                logger.warning("Skipping unknown configuration section %r", key)
                continue
            if not isinstance(entries, list):
                logger.warning("Section %r must be a list, got %s", key, type(entries).__name__)
                continue
            for entry in entries:
                rule = _rule_from_entry(entry, kind)
                if rule is not None:
                    rules.append(rule)
        return Configuration(rules)


def _first(entry: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for k in keys:
        if k in entry:
            return entry[k]
    return None


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _rule_from_entry(entry: Any, kind_raw: Any) -> Optional[Rule]:
    if not isinstance(entry, Mapping):
        logger.warning("Skipping rule entry of type %s", type(entry).__name__)
        return None
    try:
        kind = OccurrenceKind.parse(kind_raw)
    except ValueError:
        logger.warning("Skipping rule with unknown type %r", kind_raw)
        return None
    params = _first(entry, _PARAMETER_KEYS)
    if params is None:
        params = {}
    if not isinstance(params, Mapping):
        logger.warning("Skipping rule with non-mapping parameters: %r", params)
        return None
    return Rule(
        kind=kind,
        target=_opt_str(_first(entry, _TARGET_KEYS)),
        member=_opt_str(_first(entry, _MEMBER_KEYS)),
        keyword=_opt_str(_first(entry, _KEYWORD_KEYS)),
        parameters=dict(params),
    )
