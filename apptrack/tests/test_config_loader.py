import json
from pathlib import Path

from apptrack.core.event import OccurrenceKind, StateTrackingMethod, TrackingType
from apptrack.io import load_config, build_from_config


def test_build_from_json_config(tmp_path: Path):
    cfg = {
        "tracking": {
            "state_tracking": "automatic",
            "state_tracking_method": "on_will_appear",
            "method_tracking": "off",
        },
        "State": [{"target": "HomeScreen", "parameters": {"screen": "home"}}],
        "Event": [{"keyword": "purchase", "parameters": {"category": "commerce"}}],
    }
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(json.dumps(cfg), encoding="utf-8")

    loaded = load_config(cfg_path)
    configuration, options = build_from_config(loaded)
    assert len(configuration) == 2
    assert configuration.rules[0].kind is OccurrenceKind.STATE
    assert configuration.rules[1].keyword == "purchase"
    assert options.state_tracking is TrackingType.AUTOMATIC
    assert options.state_tracking_method is StateTrackingMethod.ON_WILL_APPEAR
    assert options.method_tracking is TrackingType.OFF


def test_build_from_yaml_config(tmp_path: Path):
    cfg_path = tmp_path / "config.yml"
    cfg_path.write_text(
        "rules:\n"
        "  - type: event\n"
        "    class: CartScreen\n"
        "    method: checkout\n"
        "    params:\n"
        "      action: checkout\n",
        encoding="utf-8",
    )
    configuration, options = build_from_config(load_config(cfg_path))
    assert configuration.rules[0].target == "CartScreen"
    assert configuration.rules[0].member == "checkout"
    assert configuration.rules[0].parameters == {"action": "checkout"}
    assert options.state_tracking is TrackingType.MANUAL
    assert options.state_tracking_method is StateTrackingMethod.ON_NOTHING
    assert options.method_tracking is TrackingType.MANUAL


def test_empty_files_are_empty_mappings(tmp_path: Path):
    for name in ("empty.json", "empty.yaml"):
        p = tmp_path / name
        p.write_text("", encoding="utf-8")
        assert load_config(p) == {}


def test_invalid_tracking_section_falls_back_to_defaults():
    configuration, options = build_from_config({"tracking": {"state_tracking": "sometimes"}})
    assert configuration.is_empty
    assert options.state_tracking is TrackingType.MANUAL


def test_non_mapping_config():
    configuration, options = build_from_config(["State"])
    assert configuration.is_empty
    assert options.method_tracking is TrackingType.MANUAL


def test_io_exports_only_what_callers_use():
    import apptrack.io as io_pkg

    assert sorted(io_pkg.__all__) == ["TrackingOptions", "build_from_config", "load_config", "save_json"]
    assert not hasattr(io_pkg, "load_json")
