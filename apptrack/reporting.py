from __future__ import annotations
from typing import Any, Dict, List, Optional

from apptrack.core.event import Occurrence
from apptrack.core.matching import match_occurrence, rule_applies
from apptrack.core.rules import Configuration, Rule


def _rule_to_dict(rule: Rule) -> Dict[str, Any]:
    return {
        "type": rule.kind.value,
        "target": rule.target,
        "member": rule.member,
        "keyword": rule.keyword,
        "parameters": dict(rule.parameters),
    }


def _occurrence_to_dict(o: Occurrence) -> Dict[str, Any]:
    return {
        "type": o.kind.value,
        "target": o.target,
        "member": o.member,
        "keyword": o.keyword,
        "custom_arguments": o.custom_arguments,
    }


def build_rule_rows(configuration: Configuration, occurrence: Occurrence) -> List[Dict[str, Any]]:
    """
    One row per rule, in configuration order, flagged with whether it applies
    to the occurrence.
    """
    rows: List[Dict[str, Any]] = []
    for idx, rule in enumerate(configuration, start=1):
        row = _rule_to_dict(rule)
        row["index"] = idx
        row["match"] = rule_applies(rule, occurrence.target, occurrence.member, occurrence.kind, occurrence.keyword)
        rows.append(row)
    return rows


def _trim(s: str, width: int) -> str:
    return s if len(s) <= width else (s[: max(0, width - 1)] + "…")


def format_rule_table(
    rows: List[Dict[str, Any]],
    *,
    max_rows: int = 50,
    col_widths: Optional[Dict[str, int]] = None,
) -> str:
    """
    Text table of rule rows:
      IDX | TYPE | TARGET | MEMBER | KEYWORD | PARAMETERS | MATCH
    Absent (wildcard) fields print as '*'.
    """
    widths = {
        "idx": 4,
        "type": 5,
        "target": 20,
        "member": 20,
        "keyword": 12,
        "params": 30,
        "match": 5,
    }
    if col_widths:
        widths.update(col_widths)

    header = (
        f"{'IDX':>{widths['idx']}} | {'TYPE':<{widths['type']}} | "
        f"{'TARGET':<{widths['target']}} | {'MEMBER':<{widths['member']}} | "
        f"{'KEYWORD':<{widths['keyword']}} | {'PARAMETERS':<{widths['params']}} | "
        f"{'MATCH':^{widths['match']}}"
    )
    out_lines = [header, "-" * len(header)]

    def cell(value: Any, key: str) -> str:
        return _trim("*" if value is None else str(value), widths[key])

    shown = 0
    for r in rows:
        if shown >= max_rows:
            break
        match_s = "✓" if r.get("match") else "·"
        out_lines.append(
            f"{r['index']:>{widths['idx']}} | {cell(r['type'], 'type'):<{widths['type']}} | "
            f"{cell(r['target'], 'target'):<{widths['target']}} | {cell(r['member'], 'member'):<{widths['member']}} | "
            f"{cell(r['keyword'], 'keyword'):<{widths['keyword']}} | {cell(r['parameters'], 'params'):<{widths['params']}} | "
            f"{match_s:^{widths['match']}}"
        )
        shown += 1

    if shown < len(rows):
        out_lines.append(f"... ({len(rows) - shown} more rows)")
    return "\n".join(out_lines)


def build_json_report(configuration: Configuration, occurrence: Occurrence) -> Dict[str, Any]:
    parameters = match_occurrence(configuration, occurrence)
    return {
        "occurrence": _occurrence_to_dict(occurrence),
        "rule_count": len(configuration),
        "matched": len(parameters),
        "configuration": parameters,
        "rules": build_rule_rows(configuration, occurrence),
    }


def format_text_report(
    configuration: Configuration,
    occurrence: Occurrence,
    *,
    max_rows: int = 50,
    title: Optional[str] = None,
) -> str:
    lines: List[str] = []
    lines.append("=" * 80)
    lines.append(title or "apptrack match report")
    lines.append("=" * 80)
    o = _occurrence_to_dict(occurrence)
    lines.append(
        f"Occurrence: {o['type']} target={o['target'] or '-'} member={o['member'] or '-'} keyword={o['keyword'] or '-'}"
    )
    parameters = match_occurrence(configuration, occurrence)
    lines.append(f"Matched:    {len(parameters)} of {len(configuration)} rules")
    if parameters:
        lines.append("")
        lines.append("Emitted parameters (in order):")
        for p in parameters:
            lines.append(f"  · {p}")
    lines.append("")
    lines.append("Rules:")
    lines.append(format_rule_table(build_rule_rows(configuration, occurrence), max_rows=max_rows))
    lines.append("=" * 80)
    return "\n".join(lines)
