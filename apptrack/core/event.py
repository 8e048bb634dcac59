from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
import time


class OccurrenceKind(Enum):
    STATE = "State"
    EVENT = "Event"

    @classmethod
    def parse(cls, value: "OccurrenceKind | str") -> "OccurrenceKind":
        if isinstance(value, cls):
            return value
        t = str(value).strip().lower()
        if t in ("state", "screen"):
            return cls.STATE
        if t in ("event", "action", "method"):
            return cls.EVENT
        raise ValueError(f"Unknown occurrence kind: {value!r}")


class TrackingType(Enum):
    OFF = "off"
    AUTOMATIC = "automatic"
    MANUAL = "manual"

    @classmethod
    def parse(cls, value: "TrackingType | str | None") -> "TrackingType":
        if value is None:
            return cls.OFF
        if isinstance(value, cls):
            return value
        t = str(value).strip().lower()
        if t in ("auto", "automatic"):
            return cls.AUTOMATIC
        if t == "manual":
            return cls.MANUAL
        if t in ("off", "none", "disabled"):
            return cls.OFF
        raise ValueError(f"Unknown tracking type: {value!r}")


class StateTrackingMethod(Enum):
    ON_LOAD = "on_load"
    ON_WILL_APPEAR = "on_will_appear"
    ON_DID_APPEAR = "on_did_appear"
    ON_NOTHING = "on_nothing"

    @classmethod
    def parse(cls, value: "StateTrackingMethod | str | None") -> "StateTrackingMethod":
        if value is None:
            return cls.ON_NOTHING
        if isinstance(value, cls):
            return value
        t = str(value).strip().lower().replace("-", "_")
        for m in cls:
            if m.value == t or m.name.lower() == t:
                return m
        raise ValueError(f"Unknown state tracking method: {value!r}")


@dataclass(frozen=True)
class Occurrence:
    kind: OccurrenceKind
    target: Optional[str] = None
    member: Optional[str] = None
    keyword: Optional[str] = None
    custom_arguments: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class AppInfo:
    version: Optional[str] = None
    build: Optional[str] = None
    bundle_id: Optional[str] = None
    app_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "build": self.build,
            "bundleID": self.bundle_id,
            "app_name": self.app_name,
        }


@dataclass(frozen=True)
class TrackingEvent:
    parameters: List[Dict[str, Any]]
    custom_arguments: Optional[Dict[str, Any]]
    app_info: AppInfo
    occurrence: Optional[Occurrence] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "EventTracking",
            "configuration": [dict(p) for p in self.parameters],
            "custom_arguments": dict(self.custom_arguments) if self.custom_arguments is not None else None,
            "app_info": self.app_info.to_dict(),
        }


@dataclass(frozen=True)
class CrashReport:
    text: str
    app_info: AppInfo

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "CrashLogTracking",
            "crash_report": self.text,
            "app_info": self.app_info.to_dict(),
        }
