"""
Wires a TrackingEngine into a tiny screen/dispatcher object model and prints
every payload published on the bus.
"""
from pathlib import Path
import tempfile
import apptrack
from apptrack.core import (
    CrashLogManager,
    EventBus,
    NullBinder,
    PatchingAdapter,
    StaticAppInfoProvider,
    Topic,
    TrackingEngine,
)


class Screen:
    def on_did_appear(self) -> None:
        pass


class NavigationContainer(Screen):
    def __init__(self, *children: Screen) -> None:
        self.children = children

    def on_did_appear(self) -> None:
        super().on_did_appear()
        for child in self.children:
            child.on_did_appear()


class CatalogScreen(Screen):
    pass


class CartScreen(Screen):
    def checkout(self) -> str:
        return "ordered"


class Application:
    def send_action(self, action, target, sender=None, event=None):
        return getattr(target, action)()


def main() -> None:
    pkg_dir = Path(apptrack.__file__).resolve().parent
    bus = EventBus()
    bus.subscribe(Topic.TRACKING, lambda ev: print("tracking:", ev.to_dict()))
    bus.subscribe(Topic.CRASH_REPORT, lambda rep: print("crash:", rep.to_dict()))

    engine = TrackingEngine(
        adapter=PatchingAdapter(Screen, Application, container_classes=(NavigationContainer,)),
        emitter=bus,
        app_info_provider=StaticAppInfoProvider("1.0", "42", "com.example.shop", "Shop"),
        crash_log=CrashLogManager(tempfile.mkdtemp(prefix="apptrack-"), binder=NullBinder()),
    )
    engine.start_from_file(pkg_dir / "examples" / "configs" / "shop.yaml")
    engine.register_crash_logging()

    cart = CartScreen()
    NavigationContainer(CatalogScreen(), cart).on_did_appear()
    print("dispatch returned:", Application().send_action("checkout", cart))
    engine.register_manual_event("purchase", {"sku": "abc"})
    engine.stop()


if __name__ == "__main__":
    main()
