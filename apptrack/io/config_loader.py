from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple
import json
import logging
from pathlib import Path

import yaml

from apptrack.core.event import StateTrackingMethod, TrackingType
from apptrack.core.rules import Configuration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackingOptions:
    state_tracking: TrackingType = TrackingType.MANUAL
    state_tracking_method: StateTrackingMethod = StateTrackingMethod.ON_NOTHING
    method_tracking: TrackingType = TrackingType.MANUAL


def load_config(path: str | Path) -> Dict[str, Any]:
    """
    Read a JSON or YAML (.yaml/.yml) configuration file. An empty file is an
    empty mapping. Parse errors surface as ValueError.
    """
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        text = f.read()
    suffix = p.suffix.lower()
    if suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {p}: {e}") from e
        return data or {}
    # default to JSON
    return json.loads(text or "{}")


def _make_options(section: Mapping[str, Any] | None) -> TrackingOptions:
    if not isinstance(section, Mapping):
        return TrackingOptions()
    try:
        return TrackingOptions(
            state_tracking=TrackingType.parse(section.get("state_tracking", "manual")),
            state_tracking_method=StateTrackingMethod.parse(section.get("state_tracking_method", "on_nothing")),
            method_tracking=TrackingType.parse(section.get("method_tracking", "manual")),
        )
    except ValueError as e:
        logger.warning("Ignoring tracking section: %s", e)
        return TrackingOptions()


def build_from_config(cfg: Any) -> Tuple[Configuration, TrackingOptions]:
    """Split a decoded config mapping into its rules and its tracking-mode section."""
    configuration = Configuration.load(cfg)
    tracking = cfg.get("tracking") if isinstance(cfg, Mapping) else None
    return configuration, _make_options(tracking)
