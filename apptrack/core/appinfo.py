from __future__ import annotations
from typing import Any, Mapping, Optional, Protocol
from importlib import metadata
from pathlib import Path
import sys

from apptrack.core.event import AppInfo


class AppInfoProvider(Protocol):
    def app_info(self) -> AppInfo: ...


def _get(info: Mapping[str, Any], *keys: str) -> Optional[str]:
    for k in keys:
        v = info.get(k)
        if v is not None:
            return str(v)
    return None


class StaticAppInfoProvider:
    def __init__(
        self,
        version: Optional[str] = None,
        build: Optional[str] = None,
        bundle_id: Optional[str] = None,
        app_name: Optional[str] = None,
    ) -> None:
        self.version = version
        self.build = build
        self.bundle_id = bundle_id
        self.app_name = app_name

    @staticmethod
    def from_mapping(info: Mapping[str, Any]) -> "StaticAppInfoProvider":
        """Accepts Info.plist-style keys as well as the plain payload keys."""
        return StaticAppInfoProvider(
            version=_get(info, "CFBundleShortVersionString", "version"),
            build=_get(info, "CFBundleVersion", "build"),
            bundle_id=_get(info, "CFBundleIdentifier", "bundleID", "bundle_id"),
            app_name=_get(info, "CFBundleName", "app_name"),
        )

    def app_info(self) -> AppInfo:
        return AppInfo(self.version, self.build, self.bundle_id, self.app_name)


class DistributionAppInfoProvider:
    """Reads installed package metadata on every call; nothing is cached."""

    def __init__(self, distribution: str) -> None:
        self.distribution = distribution

    def app_info(self) -> AppInfo:
        try:
            md = metadata.metadata(self.distribution)
        except metadata.PackageNotFoundError:
            return AppInfo(bundle_id=self.distribution)
        version = md.get("Version")
        return AppInfo(
            version=version,
            build=version,
            bundle_id=self.distribution,
            app_name=md.get("Name"),
        )


class MainAppInfoProvider:
    """
    Identifies the host application from the running ``__main__`` module: its
    top-level package mapped to an installed distribution, or the script name
    when the host is not installed. Resolved again on every call.
    """

    def distribution_name(self) -> str:
        main = sys.modules.get("__main__")
        package = (getattr(main, "__package__", None) or "").partition(".")[0]
        if package:
            dists = metadata.packages_distributions().get(package)
            return dists[0] if dists else package
        script = sys.argv[0] if sys.argv else ""
        return Path(script).stem if script else "__main__"

    def app_info(self) -> AppInfo:
        return DistributionAppInfoProvider(self.distribution_name()).app_info()
