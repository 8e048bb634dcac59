"""
Interception adapters: observe state transitions and action dispatch in a
host object model and report them to the tracking engine.

PatchingAdapter does this by replacing methods on live Python classes. The
action hook must let the original dispatch run exactly once per call, with
the hook itself absent while it runs (see PatchHook.call_original).
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Protocol, Tuple
import inspect
import logging
import threading

from apptrack.core.errors import HookInstallError
from apptrack.core.event import StateTrackingMethod

logger = logging.getLogger(__name__)

STATE_AXIS = "state"
METHOD_AXIS = "method"

StateCallback = Callable[[str], None]
ExcludePredicate = Callable[[Any], bool]
MethodCallback = Callable[[str, str, Callable[[], Any]], Any]

DEFAULT_LIFECYCLE_METHODS: Dict[StateTrackingMethod, str] = {
    StateTrackingMethod.ON_LOAD: "on_load",
    StateTrackingMethod.ON_WILL_APPEAR: "on_will_appear",
    StateTrackingMethod.ON_DID_APPEAR: "on_did_appear",
}


class PatchHook:
    """
    One replaced attribute on one class.

    install()/uninstall() are idempotent and record whether the hook should be
    in place. call_original() swaps the patch out privately, runs the
    un-patched attribute and patches again afterwards (even if the original
    raises) only if nobody uninstalled the hook meanwhile.
    """

    def __init__(self, owner: type, name: str, make_replacement: Callable[["PatchHook"], Callable[..., Any]]) -> None:
        try:
            self.original = inspect.getattr_static(owner, name)
        except AttributeError:
            raise HookInstallError(owner.__name__, f"{owner.__name__} has no attribute {name!r}") from None
        self.owner = owner
        self.name = name
        self._owned = name in owner.__dict__
        self.replacement = make_replacement(self)
        self.installed = False
        self._patched = False
        self._lock = threading.RLock()
        self._local = threading.local()

    @property
    def in_original_call(self) -> bool:
        return getattr(self._local, "depth", 0) > 0

    def install(self) -> None:
        with self._lock:
            self.installed = True
            if not self.in_original_call:
                self._patch()

    def uninstall(self) -> None:
        with self._lock:
            self.installed = False
            self._unpatch()

    def _patch(self) -> None:
        if not self._patched:
            setattr(self.owner, self.name, self.replacement)
            self._patched = True

    def _unpatch(self) -> None:
        if not self._patched:
            return
        if self._owned:
            setattr(self.owner, self.name, self.original)
        else:
            delattr(self.owner, self.name)
        self._patched = False

    def bound_original(self, instance: Any) -> Callable[..., Any]:
        return self.original.__get__(instance, type(instance))

    def call_original(self, instance: Any, *args: Any, **kwargs: Any) -> Any:
        # Swap-call-restore under one lock: nested dispatch triggered by the
        # original reaches the un-patched method, never this hook.
        with self._lock:
            self._unpatch()
            self._local.depth = getattr(self._local, "depth", 0) + 1
            try:
                return getattr(instance, self.name)(*args, **kwargs)
            finally:
                self._local.depth -= 1
                # the original may have stopped or restarted tracking
                if self.installed and not self.in_original_call:
                    self._patch()


@dataclass
class HookHandle:
    axis: str
    hook: PatchHook

    @property
    def installed(self) -> bool:
        return self.hook.installed


class InterceptionAdapter(Protocol):
    def install_state_hook(
        self, point: StateTrackingMethod, callback: StateCallback, exclude: ExcludePredicate | None = None
    ) -> HookHandle: ...

    def install_method_hook(self, callback: MethodCallback) -> HookHandle: ...

    def uninstall(self, handle: HookHandle) -> None: ...


class NullAdapter:
    """For hosts with no interception support: only manual tracking works."""

    def install_state_hook(
        self, point: StateTrackingMethod, callback: StateCallback, exclude: ExcludePredicate | None = None
    ) -> HookHandle:
        raise HookInstallError(STATE_AXIS, "no interception adapter configured")

    def install_method_hook(self, callback: MethodCallback) -> HookHandle:
        raise HookInstallError(METHOD_AXIS, "no interception adapter configured")

    def uninstall(self, handle: HookHandle) -> None:
        handle.hook.uninstall()


def action_name(action: Any) -> str:
    if isinstance(action, str):
        return action
    return getattr(action, "__name__", None) or str(action)


class PatchingAdapter:
    """
    Hooks a host object model by patching two classes:

      - screen_class: its lifecycle method (per StateTrackingMethod) reports
        type(instance).__name__ after the original runs, unless the instance
        is one of container_classes or the exclude predicate given at install
        time accepts it (containers forward lifecycle calls to their children
        and would double-report).
      - dispatcher_class: dispatch_method(self, action, target, sender=None,
        event=None) reports (type(target).__name__, action name) and then
        runs the original dispatch once.
    """

    def __init__(
        self,
        screen_class: type | None = None,
        dispatcher_class: type | None = None,
        lifecycle_methods: Dict[StateTrackingMethod, str] | None = None,
        dispatch_method: str = "send_action",
        container_classes: Iterable[type] = (),
    ) -> None:
        self.screen_class = screen_class
        self.dispatcher_class = dispatcher_class
        self.lifecycle_methods = dict(lifecycle_methods or DEFAULT_LIFECYCLE_METHODS)
        self.dispatch_method = dispatch_method
        self.container_classes: Tuple[type, ...] = tuple(container_classes)
        self._active: Dict[Tuple[type, str], PatchHook] = {}

    def is_container(self, instance: Any) -> bool:
        return bool(self.container_classes) and isinstance(instance, self.container_classes)

    def install_state_hook(
        self, point: StateTrackingMethod, callback: StateCallback, exclude: ExcludePredicate | None = None
    ) -> HookHandle:
        if self.screen_class is None:
            raise HookInstallError(STATE_AXIS, "no screen class to patch")
        name = self.lifecycle_methods.get(point)
        if name is None:
            raise HookInstallError(STATE_AXIS, f"unsupported lifecycle point {point!r}")

        adapter = self

        def make_replacement(hook: PatchHook) -> Callable[..., Any]:
            def lifecycle(instance: Any, *args: Any, **kwargs: Any) -> Any:
                result = hook.bound_original(instance)(*args, **kwargs)
                if not adapter.is_container(instance) and not (exclude is not None and exclude(instance)):
                    callback(type(instance).__name__)
                return result

            lifecycle.__name__ = name
            return lifecycle

        return self._install(STATE_AXIS, self.screen_class, name, make_replacement)

    def install_method_hook(self, callback: MethodCallback) -> HookHandle:
        if self.dispatcher_class is None:
            raise HookInstallError(METHOD_AXIS, "no dispatcher class to patch")

        def make_replacement(hook: PatchHook) -> Callable[..., Any]:
            def dispatch(instance: Any, action: Any, target: Any = None, *args: Any, **kwargs: Any) -> Any:
                def call_original() -> Any:
                    return hook.call_original(instance, action, target, *args, **kwargs)

                if target is None or hook.in_original_call:
                    return call_original()
                return callback(type(target).__name__, action_name(action), call_original)

            dispatch.__name__ = self.dispatch_method
            return dispatch

        return self._install(METHOD_AXIS, self.dispatcher_class, self.dispatch_method, make_replacement)

    def uninstall(self, handle: HookHandle) -> None:
        handle.hook.uninstall()
        key = (handle.hook.owner, handle.hook.name)
        if self._active.get(key) is handle.hook:
            del self._active[key]
        logger.debug("Uninstalled %s hook on %s.%s", handle.axis, handle.hook.owner.__name__, handle.hook.name)

    def _install(
        self,
        axis: str,
        owner: type,
        name: str,
        make_replacement: Callable[[PatchHook], Callable[..., Any]],
    ) -> HookHandle:
        previous: Optional[PatchHook] = self._active.pop((owner, name), None)
        if previous is not None:
            previous.uninstall()
        try:
            hook = PatchHook(owner, name, make_replacement)
        except HookInstallError as e:
            raise HookInstallError(axis, e.reason) from None
        try:
            hook.install()
        except (AttributeError, TypeError) as e:
            raise HookInstallError(axis, str(e)) from e
        self._active[(owner, name)] = hook
        logger.debug("Installed %s hook on %s.%s", axis, owner.__name__, name)
        return HookHandle(axis, hook)
