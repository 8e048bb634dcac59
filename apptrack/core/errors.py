from __future__ import annotations


class TrackingError(Exception):
    """Base class for errors the tracking engine reports to its caller."""


class ConfigurationError(TrackingError):
    """Raised for structurally invalid configuration input (e.g. no file path at all)."""


class HookInstallError(TrackingError):
    """A hook for one tracking axis could not be installed.

    The engine keeps running for the other axis; this only signals that nothing
    will be observed automatically for ``axis``.
    """

    def __init__(self, axis: str, reason: str) -> None:
        super().__init__(f"cannot install {axis} hook: {reason}")
        self.axis = axis
        self.reason = reason
