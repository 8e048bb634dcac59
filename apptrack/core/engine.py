from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional
import logging

from apptrack.core.appinfo import AppInfoProvider, MainAppInfoProvider
from apptrack.core.crashlog import CrashLogManager
from apptrack.core.emitter import EventBus, EventEmitter, Topic
from apptrack.core.errors import ConfigurationError, HookInstallError
from apptrack.core.event import (
    CrashReport,
    Occurrence,
    OccurrenceKind,
    StateTrackingMethod,
    TrackingEvent,
    TrackingType,
)
from apptrack.core.interception import ExcludePredicate, HookHandle, InterceptionAdapter, NullAdapter
from apptrack.core.matching import match_occurrence
from apptrack.core.rules import Configuration

logger = logging.getLogger(__name__)


@dataclass
class TrackingSession:
    configuration: Configuration = field(default_factory=Configuration.empty)
    state_tracking: TrackingType = TrackingType.OFF
    state_tracking_method: StateTrackingMethod = StateTrackingMethod.ON_NOTHING
    method_tracking: TrackingType = TrackingType.OFF
    state_hook: Optional[HookHandle] = None
    method_hook: Optional[HookHandle] = None
    active: bool = False

    @property
    def state_hook_installed(self) -> bool:
        return self.state_hook is not None and self.state_hook.installed

    @property
    def method_hook_installed(self) -> bool:
        return self.method_hook is not None and self.method_hook.installed

    @property
    def state_member(self) -> Optional[str]:
        """Name of the hooked lifecycle method, reported as the member of State occurrences."""
        if self.state_hook is None:
            return None
        return self.state_hook.hook.name


class TrackingEngine:
    """
    Turns observed occurrences into tracking events.

    One engine is meant to exist per process; construct it once and hand it to
    whatever needs it. All calls are expected on the host's dispatch thread.
    """

    def __init__(
        self,
        adapter: InterceptionAdapter | None = None,
        emitter: EventEmitter | None = None,
        app_info_provider: AppInfoProvider | None = None,
        crash_log: CrashLogManager | None = None,
        state_exclude: ExcludePredicate | None = None,
    ) -> None:
        self.adapter = adapter or NullAdapter()
        self.emitter = emitter if emitter is not None else EventBus()
        self.app_info_provider = app_info_provider or MainAppInfoProvider()
        self.crash_log = crash_log or CrashLogManager()
        self.state_exclude = state_exclude
        self._session = TrackingSession()

    @property
    def session(self) -> TrackingSession:
        return self._session

    @property
    def is_tracking(self) -> bool:
        return self._session.active

    def start(
        self,
        configuration: Configuration | Mapping[str, Any] | None = None,
        state_tracking: TrackingType | str = TrackingType.MANUAL,
        state_tracking_method: StateTrackingMethod | str = StateTrackingMethod.ON_NOTHING,
        method_tracking: TrackingType | str = TrackingType.MANUAL,
    ) -> TrackingSession:
        """
        Replace the current session. Hooks from the previous session are
        removed before new ones go in, so restarting never stacks hooks.

        Raises ConfigurationError for an unknown mode, leaving the current
        session untouched. Raises HookInstallError if an Automatic axis could
        not be hooked; the new session (and the other axis) is in place
        regardless.
        """
        try:
            state_mode = TrackingType.parse(state_tracking)
            state_point = StateTrackingMethod.parse(state_tracking_method)
            method_mode = TrackingType.parse(method_tracking)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if not isinstance(configuration, Configuration):
            configuration = Configuration.load(configuration)

        self._teardown()
        session = TrackingSession(
            configuration=configuration,
            state_tracking=state_mode,
            state_tracking_method=state_point,
            method_tracking=method_mode,
            active=True,
        )
        self._session = session
        logger.info(
            "Tracking started with %d rules (state=%s/%s, method=%s)",
            len(configuration),
            session.state_tracking.value,
            session.state_tracking_method.value,
            session.method_tracking.value,
        )

        failures: List[HookInstallError] = []
        if (
            session.state_tracking is TrackingType.AUTOMATIC
            and session.state_tracking_method is not StateTrackingMethod.ON_NOTHING
        ):
            try:
                session.state_hook = self.adapter.install_state_hook(
                    session.state_tracking_method, self.on_state_hook_fired, self.state_exclude
                )
            except HookInstallError as e:
                logger.error("State tracking disabled: %s", e)
                failures.append(e)

        if session.method_tracking is TrackingType.AUTOMATIC:
            try:
                session.method_hook = self.adapter.install_method_hook(self.on_method_hook_fired)
            except HookInstallError as e:
                logger.error("Method tracking disabled: %s", e)
                failures.append(e)

        if failures:
            if len(failures) == 1:
                raise failures[0]
            raise HookInstallError(
                "+".join(f.axis for f in failures),
                "; ".join(f.reason for f in failures),
            )
        return session

    def start_from_file(
        self,
        path: str | Path | None,
        state_tracking: TrackingType | str | None = None,
        state_tracking_method: StateTrackingMethod | str | None = None,
        method_tracking: TrackingType | str | None = None,
    ) -> TrackingSession:
        """
        Load a JSON/YAML configuration file and start. Explicit mode arguments
        override the file's "tracking" section.
        """
        if path is None:
            raise ConfigurationError("a configuration file path is required")

        # io imports core; resolve lazily to keep either import order working
        from apptrack.io.config_loader import build_from_config, load_config

        try:
            cfg = load_config(path)
        except (OSError, ValueError) as e:
            logger.warning("Could not load tracking configuration %s: %s", path, e)
            cfg = {}
        configuration, options = build_from_config(cfg)
        return self.start(
            configuration,
            state_tracking if state_tracking is not None else options.state_tracking,
            state_tracking_method if state_tracking_method is not None else options.state_tracking_method,
            method_tracking if method_tracking is not None else options.method_tracking,
        )

    def stop(self) -> None:
        self._teardown()
        self._session = TrackingSession()

    def register_manual_event(
        self,
        keyword: Optional[str],
        custom_arguments: Optional[Dict[str, Any]] = None,
    ) -> Optional[TrackingEvent]:
        """Works in any tracking mode; only rules carrying this keyword apply."""
        return self._track(
            Occurrence(
                kind=OccurrenceKind.EVENT,
                keyword=keyword,
                custom_arguments=custom_arguments,
            )
        )

    def register_crash_logging(self, today: Optional[date] = None) -> Optional[CrashReport]:
        """Call once per launch, after the app becomes active."""
        text = self.crash_log.capture_and_rotate(today)
        if not text:
            return None
        report = CrashReport(text=text, app_info=self.app_info_provider.app_info())
        self._publish(Topic.CRASH_REPORT, report)
        return report

    def on_state_hook_fired(self, target: str) -> Optional[TrackingEvent]:
        return self._track(
            Occurrence(
                kind=OccurrenceKind.STATE,
                target=target,
                member=self._session.state_member,
            )
        )

    def on_method_hook_fired(self, target: str, member: str, call_original: Callable[[], Any]) -> Any:
        """Track the invocation, then run the original behavior exactly once."""
        try:
            self._track(Occurrence(kind=OccurrenceKind.EVENT, target=target, member=member))
        except Exception:
            logger.warning("Tracking failed for %s.%s", target, member, exc_info=True)
        return call_original()

    def _track(self, occurrence: Occurrence) -> Optional[TrackingEvent]:
        parameters = match_occurrence(self._session.configuration, occurrence)
        if not parameters:
            return None
        logger.debug(
            "%s %s.%s matched %d rules",
            occurrence.kind.value,
            occurrence.target,
            occurrence.member,
            len(parameters),
        )
        event = TrackingEvent(
            parameters=parameters,
            custom_arguments=occurrence.custom_arguments,
            app_info=self.app_info_provider.app_info(),
            occurrence=occurrence,
        )
        self._publish(Topic.TRACKING, event)
        return event

    def _publish(self, topic: str, payload: Any) -> None:
        logger.info("Publishing %s", topic)
        try:
            self.emitter.publish(topic, payload)
        except Exception:
            logger.warning("Emitter failed for %s", topic, exc_info=True)

    def _teardown(self) -> None:
        for handle in (self._session.state_hook, self._session.method_hook):
            if handle is not None:
                self.adapter.uninstall(handle)
        self._session.state_hook = None
        self._session.method_hook = None
