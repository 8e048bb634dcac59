from .errors import TrackingError, ConfigurationError, HookInstallError
from .event import (
    OccurrenceKind,
    TrackingType,
    StateTrackingMethod,
    Occurrence,
    AppInfo,
    TrackingEvent,
    CrashReport,
)
from .rules import Rule, Configuration
from .matching import FieldMatcher, WildcardExactMatcher, match, match_occurrence
from .crashlog import CrashLogManager, FaultStreamBinder, FaulthandlerBinder, NullBinder
from .appinfo import AppInfoProvider, StaticAppInfoProvider, DistributionAppInfoProvider, MainAppInfoProvider
from .emitter import Topic, EventEmitter, EventBus, RecordingEmitter
from .interception import InterceptionAdapter, NullAdapter, PatchingAdapter, PatchHook, HookHandle
from .engine import TrackingEngine, TrackingSession

__all__ = [
    "TrackingError",
    "ConfigurationError",
    "HookInstallError",
    "OccurrenceKind",
    "TrackingType",
    "StateTrackingMethod",
    "Occurrence",
    "AppInfo",
    "TrackingEvent",
    "CrashReport",
    "Rule",
    "Configuration",
    "FieldMatcher",
    "WildcardExactMatcher",
    "match",
    "match_occurrence",
    "CrashLogManager",
    "FaultStreamBinder",
    "FaulthandlerBinder",
    "NullBinder",
    "AppInfoProvider",
    "StaticAppInfoProvider",
    "DistributionAppInfoProvider",
    "MainAppInfoProvider",
    "Topic",
    "EventEmitter",
    "EventBus",
    "RecordingEmitter",
    "InterceptionAdapter",
    "NullAdapter",
    "PatchingAdapter",
    "PatchHook",
    "HookHandle",
    "TrackingEngine",
    "TrackingSession",
]
